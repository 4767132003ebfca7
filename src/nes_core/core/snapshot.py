# nes_core/core/snapshot.py
"""
実行状態の不変スナップショット

このモジュールは、1ステップ実行後のCPUとバスの状態を記録した不変のデータ構造を定義します。
ドライバやトレース出力への情報提供と、デバッグ時の状態記録に用いる責務を負います。
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional

from nes_core.core.state import CpuState
from nes_core.transport.bus import BusAccessType, BusAccess


# @intent:responsibility デコードされた命令の詳細を記録します。
@dataclass(frozen=True) # 不変データ構造
class Operation:
    """
    デコードされた命令の詳細（HEX、ニーモニック、オペランド）を記録するデータクラス。
    """
    opcode_hex: str # 例: "4C"
    mnemonic: str # 例: "JMP"
    operands: List[str] = field(default_factory=list) # 例: ["$1234"]
    operand_bytes: List[int] = field(default_factory=list) # 生のオペランドバイト
    cycle_count: int = 0 # デコード時点で確定するサイクル数（ページ交差ペナルティを含む）
    length: int = 1 # 命令のバイト長
    # @intent:rationale アドレッシングはデコード時に一度だけ解決し、その結果を実行フェーズへ引き渡す。
    #                  I/Oレジスタへの二重読み出しを避けるため、実行時に再解決しない。
    resolved: Optional[Any] = None

    @property
    def opcode(self) -> int:
        return int(self.opcode_hex, 16)


# @intent:responsibility 実行に関するメタデータを記録します。
@dataclass(frozen=True) # 不変データ構造
class Metadata:
    """
    実行に関するメタデータ（累計サイクル数、この命令のサイクル数、シンボル情報）を記録するデータクラス。
    """
    cycle_count: int
    step_cycles: int = 0
    symbol_info: Optional[str] = None # 例: "main_loop: JMP $C000"


# @intent:responsibility ある一時点におけるCPUとバスの完全な状態を不変に記録します。
@dataclass(frozen=True) # 不変データ構造
class Snapshot:
    """
    ある一時点における、CPUとバスの完全な状態を記録した不変のデータ構造。
    """
    state: CpuState
    operation: Operation
    metadata: Metadata
    bus_activity: List[BusAccess] = field(default_factory=list)

    # 書き込みアクセスのみを抽出するヘルパー。
    def writes(self) -> List[BusAccess]:
        return [access for access in self.bus_activity if access.access_type == BusAccessType.WRITE]
