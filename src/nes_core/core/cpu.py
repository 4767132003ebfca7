# nes_core/core/cpu.py
"""
Core Layer (抽象CPU)

このモジュールは、CPUの基本的な状態管理と命令サイクルの駆動に関する抽象化を提供します。
具体的な命令の振る舞いはInstruction Layerに移譲されます。
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Tuple

from nes_core.transport.bus import Bus
from nes_core.core.snapshot import Snapshot, Operation, Metadata
from nes_core.core.state import CpuState

logger = logging.getLogger(__name__)


# @intent:responsibility 抽象CPUの基本機能とインターフェースを定義します。
class AbstractCpu(ABC):
    """
    全てのCPUエミュレーションの基底となる抽象クラス。
    Busとのインターフェース、基本的な状態管理、命令サイクルの抽象化を提供します。
    """
    # @intent:responsibility CPUの状態とバスへの参照を初期化します。
    # @intent:pre-condition `bus`は有効なBusオブジェクトであり、CPUより長く生存する必要があります。
    def __init__(self, bus: Bus):
        self._bus = bus
        self._state: CpuState = self._create_initial_state()
        self._cycle_count: int = 0
        self.trace_enabled: bool = False
        # @intent:rationale Stateオブジェクトの直接操作を避けるため、protectedな命名規則を採用。
        #                  外部からのアクセスは`get_state()`メソッドを介して行う。

    @property
    def cycles(self) -> int:
        """リセット以降に消費した累計サイクル数。"""
        return self._cycle_count

    # @intent:responsibility 初期状態のCpuStateオブジェクトを生成します。
    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        """
        CPUの初期状態を生成して返します。
        具体的なCPUアーキテクチャはこのメソッドを実装し、
        そのアーキテクチャに特化したCpuStateのサブクラスを返します。
        """
        pass

    # @intent:responsibility CPUをリセットし、初期状態に戻します。
    def reset(self) -> None:
        """
        CPUの状態を初期値に戻し、サイクルカウンタをクリアします。
        """
        self._state = self._create_initial_state()
        self._cycle_count = 0

    # @intent:responsibility 現在のCPUの状態を返します。
    def get_state(self) -> CpuState:
        return self._state

    # @intent:responsibility 外部から与えられた状態でCPUの状態を置き換えます。
    def restore_state(self, state: CpuState) -> None:
        self._state = state

    # @intent:responsibility メモリから次の命令（オペコード）をフェッチします。
    @abstractmethod
    def _fetch(self) -> int:
        """
        現在のPCからメモリの次の命令（オペコード）をフェッチし、その値を返します。
        """
        pass

    # @intent:responsibility フェッチしたオペコードを解析し、Operationオブジェクトに変換します。
    # @intent:post-condition 命令表に存在しないオペコードの場合はUnimplementedOpcodeを送出します。
    @abstractmethod
    def _decode(self, opcode: int) -> Operation:
        pass

    # @intent:responsibility デコードされた命令を実行し、CPUの状態を更新します。
    # @intent:return 実行結果により動的に加算されるサイクル数（分岐成立など）。
    @abstractmethod
    def _execute(self, operation: Operation) -> int:
        pass

    # @intent:responsibility CPUを1命令進め、その結果のスナップショットを返します。
    # @intent:rationale Template Methodパターンを採用し、共通の実行フロー（ログクリア→フェッチ→デコード→PC更新→実行→Snapshot生成）を定義します。
    def step(self) -> Snapshot:
        """
        CPUを1命令進め、その時点でのCPUとバスの状態を含むSnapshotオブジェクトを返します。
        デコードに失敗した場合、レジスタとサイクルカウンタは変更されません。
        """
        # 1. 前処理: 前ステップまでの残存ログと、ステップ外のDMAによる停止サイクルを破棄
        self._bus.get_and_clear_activity_log()
        self._bus.consume_stall_cycles()
        initial_pc = self._state.pc

        # 2. フェッチ
        opcode = self._fetch()

        # 3. デコード
        operation = self._decode(opcode)

        if self.trace_enabled:
            self._trace(initial_pc, operation)

        # 4. PC更新
        self._update_pc(operation)

        # 5. 実行
        extra_cycles = self._execute(operation)

        # 6. 後処理 & Snapshot生成
        return self._create_snapshot(initial_pc, operation, operation.cycle_count + extra_cycles)

    # @intent:responsibility 命令実行前にPCを更新します。
    def _update_pc(self, operation: Operation) -> None:
        self._state.pc = (self._state.pc + operation.length) & 0xFFFF

    def _trace(self, pc: int, operation: Operation) -> None:
        hex_bytes = " ".join([operation.opcode_hex] + [f"{b:02X}" for b in operation.operand_bytes])
        text = f"{operation.mnemonic} {', '.join(operation.operands)}".strip()
        logger.debug("$%04X  %-8s  %-14s CYC:%d", pc, hex_bytes, text, self._cycle_count)

    # @intent:responsibility スナップショットを生成します。
    def _create_snapshot(self, initial_pc: int, operation: Operation, step_cycles: int) -> Snapshot:
        """
        実行結果からSnapshotオブジェクトを生成する共通ロジック。
        """
        # このステップで発生したバスアクティビティを取得
        bus_activity = self._bus.get_and_clear_activity_log()

        self._cycle_count += step_cycles

        symbol_info = operation.mnemonic
        if operation.operands:
            symbol_info += " " + ", ".join(operation.operands)

        return Snapshot(
            state=self.get_state(),
            operation=operation,
            metadata=Metadata(cycle_count=self._cycle_count, step_cycles=step_cycles, symbol_info=symbol_info),
            bus_activity=bus_activity
        )

    @abstractmethod
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        """
        指定されたメモリ範囲を逆アセンブルし、(address, hex_bytes, mnemonic) のタプルリストを返す。
        """
        pass
