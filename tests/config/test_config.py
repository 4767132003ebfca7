# tests/config/test_config.py
"""
YAML構成の読み込みと SystemBuilder によるシステム組み立てのテスト。
"""
import pytest
from nes_core.cartridge import Cartridge
from nes_core.config import ConfigLoader, SystemBuilder, SystemConfig, CpuInitialState
from nes_core.system import NesSystem

# @intent:test_suite 構成ファイルの解析と、構成に従った初期状態の適用を検証します。

class TestConfigLoader:
    def test_load_from_file(self, tmp_path):
        path = tmp_path / "system.yaml"
        path.write_text(
            "rom: roms/game.nes\n"
            "trace: true\n"
            "initial_state:\n"
            "  use_reset_vector: false\n"
            "  pc: 0xC000\n"
            "  sp: 0xFD\n"
            "  registers:\n"
            "    A: 0x10\n"
            "    x: 2\n"
        )

        config = ConfigLoader().load_from_file(str(path))

        assert config.rom == "roms/game.nes"
        assert config.trace is True
        assert config.initial_state.use_reset_vector is False
        assert config.initial_state.pc == 0xC000
        assert config.initial_state.sp == 0xFD
        assert config.initial_state.registers == {"a": 0x10, "x": 2}

    # YAML は 0xC000 を整数として読むため、引用符付きの文字列でも同じ値になること。
    def test_hex_strings(self):
        config = ConfigLoader().load_from_string(
            "initial_state:\n  pc: '0xC000'\n  sp: '$FD'\n"
        )
        assert config.initial_state.pc == 0xC000
        assert config.initial_state.sp == 0xFD

    def test_defaults(self):
        config = ConfigLoader().load_from_string("")
        assert config.rom is None
        assert config.trace is False
        assert config.initial_state == CpuInitialState()
        assert config.initial_state.use_reset_vector is True

    def test_invalid_integer(self):
        with pytest.raises(ValueError, match="Invalid integer format"):
            ConfigLoader().load_from_string("initial_state:\n  pc: [1, 2]\n")

    def test_unknown_register(self):
        with pytest.raises(ValueError, match="Unknown register"):
            ConfigLoader().load_from_string("initial_state:\n  registers:\n    q: 1\n")

    def test_root_must_be_mapping(self):
        with pytest.raises(ValueError):
            ConfigLoader().load_from_string("- 1\n- 2\n")


class TestSystemBuilder:
    def test_build_with_reset_vector(self, ines_image):
        cartridge = Cartridge.from_bytes(ines_image(prg_patches={0x3FFC: b"\x34\xC2"}))

        system = SystemBuilder().build_system(SystemConfig(), cartridge=cartridge)

        assert isinstance(system, NesSystem)
        assert system.cartridge is cartridge
        assert system.bus.cartridge is cartridge
        assert system.cpu.get_state().pc == 0xC234

    def test_build_with_overrides(self, ines_image):
        config = SystemConfig(
            trace=True,
            initial_state=CpuInitialState(
                use_reset_vector=False, pc=0x8100, sp=0xFD, registers={"a": 0x10, "y": 0x20, "p": 0x03},
            ),
        )

        system = SystemBuilder().build_system(config, cartridge=Cartridge.from_bytes(ines_image()))

        state = system.cpu.get_state()
        assert state.pc == 0x8100
        assert state.sp == 0x01FD
        assert state.a == 0x10
        assert state.y == 0x20
        assert state.flag_c and state.flag_z
        assert not state.flag_i
        assert system.cpu.trace_enabled

    def test_build_from_rom_path(self, ines_image, tmp_path):
        path = tmp_path / "game.nes"
        path.write_bytes(ines_image(prg_banks=2, prg_patches={0x7FFC: b"\x00\x90"}))

        system = SystemBuilder().build_system(SystemConfig(rom=str(path)))

        assert system.cartridge.prg_size == 32768
        assert system.cpu.get_state().pc == 0x9000

    def test_build_without_rom(self):
        with pytest.raises(ValueError, match="No ROM"):
            SystemBuilder().build_system(SystemConfig())
