# src/nes_core/config/loader.py
import logging
from typing import Dict, Any

import yaml

from .models import SystemConfig, CpuInitialState

logger = logging.getLogger(__name__)

REGISTER_NAMES = ("a", "x", "y", "p")

# @intent:responsibility YAML形式のシステム構成ファイルを読み込み、SystemConfigへ変換します。
class ConfigLoader:
    def load_from_file(self, path: str) -> SystemConfig:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        logger.debug("Loaded config from %s", path)
        return self._parse_config(data or {})

    def load_from_string(self, text: str) -> SystemConfig:
        return self._parse_config(yaml.safe_load(text) or {})

    def _parse_config(self, data: Dict[str, Any]) -> SystemConfig:
        if not isinstance(data, dict):
            raise ValueError(f"Config root must be a mapping, got {type(data).__name__}")

        rom = data.get("rom")
        if rom is not None and not isinstance(rom, str):
            raise ValueError(f"Invalid rom path: {rom!r}")

        # Parse Initial State
        initial_state_data = data.get("initial_state") or {}
        registers = {}
        for name, value in (initial_state_data.get("registers") or {}).items():
            key = str(name).lower()
            if key not in REGISTER_NAMES:
                raise ValueError(f"Unknown register in initial_state: {name}")
            registers[key] = self._parse_int(value) & 0xFF

        initial_state = CpuInitialState(
            use_reset_vector=bool(initial_state_data.get("use_reset_vector", True)),
            pc=self._parse_int(initial_state_data.get("pc", 0)) & 0xFFFF,
            sp=self._parse_int(initial_state_data.get("sp", 0xFF)) & 0xFF,
            registers=registers
        )

        return SystemConfig(
            rom=rom,
            trace=bool(data.get("trace", False)),
            initial_state=initial_state
        )

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            if value.lower().startswith("0x"):
                return int(value, 16)
            if value.startswith("$"):
                return int(value[1:], 16)
            return int(value)
        raise ValueError(f"Invalid integer format: {value}")
