# src/nes_core/cartridge/__init__.py
"""
Cartridge / Mapper Package
"""
from .cartridge import Cartridge
from .header import INesHeader, Mirroring
from .mapper import Mapper, create_mapper
