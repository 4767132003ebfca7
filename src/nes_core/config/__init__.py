# src/nes_core/config/__init__.py
from .models import SystemConfig, CpuInitialState
from .loader import ConfigLoader
from .builder import SystemBuilder
