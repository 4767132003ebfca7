# tests/core/test_cpu.py
"""
nes_core.core.cpuモジュールの単体テスト。
"""
import pytest
from typing import List, Tuple

from nes_core.core.state import CpuState
from nes_core.core.cpu import AbstractCpu
from nes_core.core.snapshot import Operation
from nes_core.transport.bus import Bus, BusAccessType
from nes_core.common.errors import UnimplementedOpcode

# @intent:test_suite 抽象CPUのテンプレートメソッド（step）の流れを検証します。

class StubCpu(AbstractCpu):
    """
    $00 を2サイクルのNOP、$01 を $0020 へ $FF を書く3サイクル命令 (+1) として扱う最小のCPU。
    """
    def _create_initial_state(self) -> CpuState:
        return CpuState(pc=0x0000, sp=0x00FF)

    def _fetch(self) -> int:
        return self._bus.read(self._state.pc)

    def _decode(self, opcode: int) -> Operation:
        if opcode == 0x00:
            return Operation(opcode_hex="00", mnemonic="NOP", cycle_count=2)
        if opcode == 0x01:
            return Operation(opcode_hex="01", mnemonic="POKE", cycle_count=3, length=2)
        raise UnimplementedOpcode(opcode, self._state.pc)

    def _execute(self, operation: Operation) -> int:
        if operation.mnemonic == "POKE":
            self._bus.write(0x0020, 0xFF)
            return 1
        return 0

    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        return []


@pytest.fixture
def cpu():
    return StubCpu(Bus())

# @intent:test_case_step PCは命令長だけ進み、サイクルは基本値と追加分の合計。
def test_step_advances_pc_and_cycles(cpu):
    cpu._bus.write(0x0000, 0x01)
    cpu._bus.get_and_clear_activity_log()

    snapshot = cpu.step()

    assert cpu.get_state().pc == 0x0002
    assert snapshot.metadata.step_cycles == 4
    assert cpu.cycles == 4
    assert snapshot.writes()[0].address == 0x0020

def test_step_discards_stale_bus_activity(cpu):
    cpu._bus.write(0x0100, 0x01) # ステップ前のアクセス

    snapshot = cpu.step()

    assert all(entry.address != 0x0100 for entry in snapshot.bus_activity)
    assert snapshot.bus_activity[0].access_type == BusAccessType.READ

def test_failed_decode_leaves_state(cpu):
    cpu._bus.write(0x0000, 0x02)
    with pytest.raises(UnimplementedOpcode):
        cpu.step()
    assert cpu.get_state().pc == 0x0000
    assert cpu.cycles == 0

def test_pc_wraps(cpu):
    cpu.restore_state(CpuState(pc=0xFFFF))
    cpu.step()
    assert cpu.get_state().pc == 0x0000

def test_reset_clears_cycles(cpu):
    cpu.step()
    cpu.reset()
    assert cpu.cycles == 0
    assert cpu.get_state().sp == 0x00FF

def test_symbol_info_is_mnemonic(cpu):
    assert cpu.step().metadata.symbol_info == "NOP"

# @intent:test_case_dma ステップの外で積まれた停止サイクルは step の開始時に破棄される。
def test_step_discards_stall_cycles_from_outside(cpu):
    cpu._bus.write(0x4014, 0x00)

    snapshot = cpu.step()

    assert snapshot.metadata.step_cycles == 2
    assert cpu.cycles == 2
