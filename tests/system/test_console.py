# tests/system/test_console.py
import pytest
from nes_core.cartridge import Cartridge
from nes_core.common.errors import UnimplementedOpcode
from nes_core.system import NesSystem
from nes_core.transport.bus import PictureDevice

# @intent:test_suite カートリッジ上のプログラムをシステム経由で実行する結合テスト。

PROGRAM = bytes([
    0xA9, 0x05,        # LDA #$05
    0x69, 0x03,        # ADC #$03
    0x8D, 0x00, 0x02,  # STA $0200
    0x02,              # 未定義オペコード
])

@pytest.fixture
def system(ines_image):
    image = ines_image(prg_patches={0x0000: PROGRAM, 0x3FFC: b"\x00\x80"})
    system = NesSystem(Cartridge.from_bytes(image))
    system.reset()
    return system

def test_run_program_from_rom(system):
    snapshots = system.run(3)

    assert len(snapshots) == 3
    assert [s.operation.mnemonic for s in snapshots] == ["LDA", "ADC", "STA"]
    assert system.bus.read(0x0200) == 0x08
    assert system.cycles == 8
    assert snapshots[-1].metadata.cycle_count == 8

def test_run_propagates_unimplemented_opcode(system):
    with pytest.raises(UnimplementedOpcode) as excinfo:
        system.run(10)
    assert excinfo.value.pc == 0x8007
    assert system.cpu.get_state().pc == 0x8007

def test_run_rejects_negative_steps(system):
    with pytest.raises(ValueError):
        system.run(-1)

def test_step(system):
    snapshot = system.step()
    assert snapshot.state.a == 0x05
    assert snapshot.state.pc == 0x8002

# @intent:test_case_power_on 組み立て直後は reset() を呼ばなくてもリセットベクタから開始する。
def test_starts_from_reset_vector_on_construction(ines_image):
    image = ines_image(prg_patches={0x0000: PROGRAM, 0x3FFC: b"\x00\x80"})
    system = NesSystem(Cartridge.from_bytes(image))

    assert system.cpu.get_state().pc == 0x8000
    assert system.cpu.get_state().sp == 0x01FF
    assert system.cycles == 0
    assert system.step().operation.mnemonic == "LDA"

def test_reset_restarts_from_vector(system):
    system.run(2)
    system.reset()
    assert system.cpu.get_state().pc == 0x8000
    assert system.cycles == 0

def test_collaborators_are_connected(ines_image):
    class Ppu(PictureDevice):
        def read(self, address):
            return 0x80 | address

    system = NesSystem(Cartridge.from_bytes(ines_image()), ppu=Ppu())
    assert system.bus.read(0x2002) == 0x82
