# src/nes_core/config/models.py
from dataclasses import dataclass, field
from typing import Dict, Optional

@dataclass
class CpuInitialState:
    use_reset_vector: bool = True # False の場合は pc / sp / registers を適用
    pc: int = 0x0000
    sp: int = 0xFF
    registers: Dict[str, int] = field(default_factory=dict) # a, x, y, p

@dataclass
class SystemConfig:
    rom: Optional[str] = None
    trace: bool = False
    initial_state: CpuInitialState = field(default_factory=CpuInitialState)
