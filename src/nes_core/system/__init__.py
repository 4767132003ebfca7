# src/nes_core/system/__init__.py
from .console import NesSystem
