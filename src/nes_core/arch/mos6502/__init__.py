# src/nes_core/arch/mos6502/__init__.py
"""
MOS 6502 (2A03) Architecture Package
"""
from .cpu import Mos6502Cpu
from .state import Mos6502CpuState, StatusFlags, encode_flags, decode_flags
