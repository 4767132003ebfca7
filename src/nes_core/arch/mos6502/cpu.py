# src/nes_core/arch/mos6502/cpu.py
"""
MOS 6502 (2A03) CPUエミュレーションの中心モジュール。
"""
import logging
from typing import List, Tuple

from nes_core.core.snapshot import Operation
from nes_core.common.types import NMI_VECTOR, RESET_VECTOR, IRQ_VECTOR, read_word
from nes_core.core.cpu import AbstractCpu
from nes_core.transport.bus import Bus
from nes_core.arch.mos6502.state import Mos6502CpuState, StatusFlags
from nes_core.arch.mos6502.instructions.maps import decode_opcode, execute_instruction
from nes_core.arch.mos6502.instructions.control import enter_interrupt
from nes_core.arch.mos6502 import disassembler

logger = logging.getLogger(__name__)

INTERRUPT_CYCLES = 7


# @intent:responsibility MOS 6502 CPUの具体的なエミュレーションロジックを提供する。
class Mos6502Cpu(AbstractCpu):
    """
    MOS 6502 CPUをエミュレートするクラス。

    リセット時は $FFFC/$FFFD のリセットベクタをバス経由で読み、PCに設定する。
    カートリッジが未接続の場合、ベクタはオープンバス値 (0) となる。
    """
    def __init__(self, bus: Bus):
        super().__init__(bus)

    # @intent:responsibility MOS 6502の初期状態を生成する。
    def _create_initial_state(self) -> Mos6502CpuState:
        # SP=$FF, P=$24 (U=1, I=1)
        return Mos6502CpuState(pc=0, sp=0xFF, flags=StatusFlags())

    # @intent:responsibility リセット処理。レジスタを初期化し、リセットベクタからPCをロードする。
    def reset(self) -> None:
        super().reset()
        self._state = self._state.replace(pc=read_word(self._bus.read, RESET_VECTOR))
        self._bus.get_and_clear_activity_log()
        logger.debug("CPU reset, PC=$%04X", self._state.pc)

    # @intent:responsibility 外部公開用のStateを取得する際、SPを物理アドレスに補正する。
    def get_state(self) -> Mos6502CpuState:
        # 内部のSPは8bitだが、外部には物理アドレス（$0100 + SP）として見せる。
        # 補正した新しいStateを返し、_stateそのものは変更しない。
        return self._state.replace(sp=0x0100 | (self._state.sp & 0xFF))

    # @intent:responsibility 外部からの状態復元。get_state()の物理アドレス表現も受け付ける。
    def restore_state(self, state: Mos6502CpuState) -> None:
        self._state = state.replace(sp=state.sp & 0xFF)

    # @intent:responsibility 命令フェッチ。
    def _fetch(self) -> int:
        return self._bus.read(self._state.pc)

    # @intent:responsibility 命令デコード。アドレッシングはこの時点のレジスタ値で解決される。
    def _decode(self, opcode: int) -> Operation:
        return decode_opcode(opcode, self._bus, self._state.pc, self._state)

    # @intent:responsibility 命令実行
    # @intent:note _execute呼び出し時点でPCは既に次の命令を指している。分岐・ジャンプ系の命令のみPCを書き換える。
    def _execute(self, operation: Operation) -> int:
        self._state, extra_cycles = execute_instruction(operation, self._state, self._bus)
        # OAM DMA によるCPU停止分
        return extra_cycles + self._bus.consume_stall_cycles()

    # --- 割り込み ---

    # @intent:responsibility ノンマスカブル割り込み。Iフラグに関係なく受け付ける。
    def nmi(self) -> None:
        self._interrupt(NMI_VECTOR)

    # @intent:responsibility マスカブル割り込み。Iフラグがセットされている間は無視する。
    # @intent:return 割り込みを受け付けた場合True。
    def irq(self) -> bool:
        if self._state.flag_i:
            return False
        self._interrupt(IRQ_VECTOR)
        return True

    def _interrupt(self, vector: int) -> None:
        self._state = enter_interrupt(self._state, self._bus, self._state.pc, vector, brk=False)
        self._cycle_count += INTERRUPT_CYCLES
        logger.debug("Interrupt via $%04X -> PC=$%04X", vector, self._state.pc)

    # @intent:responsibility 指定範囲の逆アセンブル結果を返す。
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        return disassembler.disassemble(self._bus, start_addr, length)
