# nes_core/transport/bus.py
"""
Transport Layer (CPUバス)

このモジュールは、CPUから見える16bitアドレス空間を抽象化し、
読み書きアクセスを内蔵RAM・周辺デバイス・カートリッジに委譲する責務を負います。
アドレスデコードは全域で定義されており、未マップ領域は既定値 0 を返します。
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from nes_core.cartridge.cartridge import Cartridge

logger = logging.getLogger(__name__)

RAM_SIZE = 0x0800
RAM_MIRROR_MASK = 0x07FF
PPU_REGISTER_MASK = 0x0007
OAM_DMA_PORT = 0x4014
CONTROLLER_PORT_1 = 0x4016
CONTROLLER_PORT_2 = 0x4017
OAM_DMA_CYCLES = 513
OPEN_BUS_VALUE = 0x00


# @intent:responsibility バスアクセスを記録するためのタイプを定義します。
class BusAccessType(Enum):
    READ = "READ"
    WRITE = "WRITE"
    UNMAPPED_READ = "UNMAPPED_READ"
    UNMAPPED_WRITE = "UNMAPPED_WRITE"

# @intent:responsibility 個々のバスアクセス操作を記録します。
@dataclass(frozen=True) # 不変データ構造
class BusAccess:
    """
    バス上で行われた単一のアクセス（読み込みまたは書き込み）を記録するデータクラス。
    """
    address: int
    data: int # 8bit value
    access_type: BusAccessType

# @intent:responsibility バスに接続されるデバイスの抽象インターフェースを定義します。
class Device(ABC):
    """
    バスに接続されるデバイスの抽象基底クラス。
    全てのデバイスはreadとwriteのインターフェースを実装する必要があります。
    アドレスはデバイス内でのオフセットとして扱われます。
    """
    @abstractmethod
    def read(self, address: int) -> int:
        pass

    @abstractmethod
    def write(self, address: int, data: int) -> None:
        pass

    # @intent:responsibility 副作用なしで値を観測します。
    # @intent:rationale 読み出しに副作用を持つレジスタ（PPUステータス等）はオーバーライドして副作用を避ける。
    def peek(self, address: int) -> int:
        return self.read(address)

# @intent:responsibility 外部協調サブシステムが未接続の場合の既定デバイス。
class OpenBusDevice(Device):
    """
    読み出しは常に 0 を返し、書き込みは無視するスタブデバイス。
    """
    def read(self, address: int) -> int:
        return OPEN_BUS_VALUE

    def write(self, address: int, data: int) -> None:
        # Intentional: 未接続のサブシステムへの書き込みは捨てる。
        pass

# @intent:responsibility 画像処理サブシステム（PPU）のレジスタポートを表すインターフェース。
class PictureDevice(OpenBusDevice):
    """
    $2000-$3FFF に 8 バイト周期でミラーされるレジスタポート。
    オフセットは 0-7 です。既定実装は全て 0 を返すスタブです。
    """
    # @intent:responsibility $4014 への書き込みで転送される 256 バイトのスプライトデータを受け取ります。
    def oam_dma(self, data: bytes) -> None:
        pass

# @intent:responsibility 基本的なRAMデバイスの機能を提供します。
class RAM(Device):
    """
    バイト配列を保持する読み書き可能なメモリデバイス。
    """
    # @intent:pre-condition sizeは正の整数である必要があります。
    def __init__(self, size: int):
        if not isinstance(size, int) or size <= 0:
            raise ValueError("RAM size must be a positive integer.")
        self._memory = bytearray(size)
        self._size = size

    def read(self, address: int) -> int:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for RAM of size {self._size}.")
        return self._memory[address]

    def write(self, address: int, data: int) -> None:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for RAM of size {self._size}.")
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        self._memory[address] = data

    def get_size(self) -> int:
        return self._size

# @intent:responsibility CPUアドレス空間を管理し、固定のデコード表に従ってアクセスをディスパッチするバス。
# @intent:rationale バスの全てのアクセスを記録し、Snapshotに含めることでシステムの観測可能性を高めます。
class Bus:
    """
    CPUアドレス空間のルーター。

    | 範囲            | 担当                                  |
    |-----------------|---------------------------------------|
    | $0000-$1FFF     | 内蔵RAM 2KiB ($07FF でミラー)         |
    | $2000-$3FFF     | PPU レジスタ (8 バイト周期でミラー)   |
    | $4000-$4017     | APU / OAM DMA / コントローラ          |
    | $4018-$401F     | 無効化されたテストモード (未マップ)   |
    | $4020-$5FFF     | 拡張領域 (未マップ)                   |
    | $6000-$FFFF     | カートリッジ                          |

    内蔵RAMはBusが所有します。カートリッジと周辺デバイスは参照のみを保持します。
    """
    def __init__(self):
        self._ram = RAM(RAM_SIZE)
        self._cartridge: Optional["Cartridge"] = None
        self._ppu: PictureDevice = PictureDevice()
        self._apu: Device = OpenBusDevice()
        self._controllers: Device = OpenBusDevice()
        self._bus_activity_log: List[BusAccess] = []
        self._stall_cycles = 0

    # --- 接続 ---

    # @intent:responsibility カートリッジを接続します。セッション中に1度だけ行う想定です。
    def connect_cartridge(self, cartridge: "Cartridge") -> None:
        self._cartridge = cartridge

    def connect_ppu(self, device: PictureDevice) -> None:
        if not isinstance(device, PictureDevice):
            raise TypeError("PPU device must be an instance of PictureDevice.")
        self._ppu = device

    def connect_apu(self, device: Device) -> None:
        if not isinstance(device, Device):
            raise TypeError("Device must be an instance of a class derived from Device.")
        self._apu = device

    def connect_controllers(self, device: Device) -> None:
        if not isinstance(device, Device):
            raise TypeError("Device must be an instance of a class derived from Device.")
        self._controllers = device

    @property
    def cartridge(self) -> Optional["Cartridge"]:
        return self._cartridge

    # --- アクティビティログ ---

    def _log_access(self, address: int, data: int, access_type: BusAccessType) -> None:
        self._bus_activity_log.append(BusAccess(address=address, data=data, access_type=access_type))

    # @intent:responsibility 記録されたバスアクティビティログを取得し、クリアします。
    def get_and_clear_activity_log(self) -> List[BusAccess]:
        log = self._bus_activity_log
        self._bus_activity_log = []
        return log

    # @intent:responsibility OAM DMAなどによってCPUが停止すべきサイクル数を取り出し、ゼロに戻します。
    def consume_stall_cycles(self) -> int:
        cycles = self._stall_cycles
        self._stall_cycles = 0
        return cycles

    # --- 読み書き ---

    # @intent:responsibility 指定されたアドレスから8bitのデータを読み出します。
    # @intent:post-condition 常に 0-255 の値を返します。未マップ領域は 0。
    def read(self, address: int) -> int:
        address &= 0xFFFF
        data = self._dispatch_read(address, peek=False)
        if data is None:
            logger.debug("Unmapped read at $%04X", address)
            self._log_access(address, OPEN_BUS_VALUE, BusAccessType.UNMAPPED_READ)
            return OPEN_BUS_VALUE
        self._log_access(address, data, BusAccessType.READ)
        return data

    # @intent:responsibility ログを記録せず、デバイスの副作用も起こさずに値を観測します。
    def peek(self, address: int) -> int:
        """
        デバッグ表示や逆アセンブル用の読み出し。
        """
        data = self._dispatch_read(address & 0xFFFF, peek=True)
        return OPEN_BUS_VALUE if data is None else data

    # @intent:responsibility 指定されたアドレスに8bitのデータを書き込みます。
    def write(self, address: int, data: int) -> None:
        address &= 0xFFFF
        data &= 0xFF
        if self._dispatch_write(address, data):
            self._log_access(address, data, BusAccessType.WRITE)
        else:
            logger.debug("Unmapped write of $%02X at $%04X ignored", data, address)
            self._log_access(address, data, BusAccessType.UNMAPPED_WRITE)

    # @intent:responsibility アドレス範囲から担当デバイスを選び、読み出しを委譲します。
    # @intent:return 未マップ領域の場合はNone。
    def _dispatch_read(self, address: int, peek: bool) -> Optional[int]:
        if address < 0x2000:
            return self._ram.read(address & RAM_MIRROR_MASK)
        if address < 0x4000:
            offset = address & PPU_REGISTER_MASK
            return self._ppu.peek(offset) if peek else self._ppu.read(offset)
        if address < 0x4018:
            if address in (CONTROLLER_PORT_1, CONTROLLER_PORT_2):
                offset = address - CONTROLLER_PORT_1
                return self._controllers.peek(offset) if peek else self._controllers.read(offset)
            offset = address - 0x4000
            return self._apu.peek(offset) if peek else self._apu.read(offset)
        if address < 0x6000:
            # $4018-$401F (テストモード) と $4020-$5FFF (拡張領域) は未マップ
            return None
        if self._cartridge is None:
            return None
        return self._cartridge.read(address)

    # @intent:return 書き込み先が存在した場合True。
    def _dispatch_write(self, address: int, data: int) -> bool:
        if address < 0x2000:
            self._ram.write(address & RAM_MIRROR_MASK, data)
            return True
        if address < 0x4000:
            self._ppu.write(address & PPU_REGISTER_MASK, data)
            return True
        if address < 0x4018:
            if address == OAM_DMA_PORT:
                self._oam_dma(data)
            elif address == CONTROLLER_PORT_1:
                self._controllers.write(0, data)
            else:
                # $4017 への書き込みはAPUのフレームカウンタ
                self._apu.write(address - 0x4000, data)
            return True
        if address < 0x6000 or self._cartridge is None:
            return False
        self._cartridge.write(address, data)
        return True

    # @intent:responsibility 指定ページの256バイトをPPUのスプライトメモリへ転送します。
    def _oam_dma(self, page: int) -> None:
        base = page << 8
        data = bytes(self.read(base + i) for i in range(256))
        self._ppu.oam_dma(data)
        self._stall_cycles += OAM_DMA_CYCLES
