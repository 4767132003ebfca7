# nes_core/cartridge/header.py
"""
iNES ヘッダ (16 バイト) の解析。
"""
from dataclasses import dataclass
from enum import Enum

from nes_core.common.errors import InvalidRomFormat

HEADER_SIZE = 16
TRAINER_SIZE = 512
PRG_BANK_SIZE = 16 * 1024
CHR_BANK_SIZE = 8 * 1024
SIGNATURE = b"NES\x1a"

FLAG6_VERTICAL_MIRRORING = 0x01
FLAG6_BATTERY = 0x02
FLAG6_TRAINER = 0x04


# @intent:responsibility カートリッジ配線で決まるネームテーブルのミラーリング方式。
class Mirroring(Enum):
    HORIZONTAL = "HORIZONTAL"
    VERTICAL = "VERTICAL"


# @intent:responsibility 解析済みのヘッダ情報を保持します。
@dataclass(frozen=True)
class INesHeader:
    """
    iNES ヘッダのうち、コアが使用するフィールド。
    バイト 8-15 は予約領域として無視します。
    """
    prg_banks: int  # 16 KiB 単位
    chr_banks: int  # 8 KiB 単位
    mapper_id: int
    mirroring: Mirroring
    has_trainer: bool = False
    has_battery: bool = False

    @property
    def prg_size(self) -> int:
        return self.prg_banks * PRG_BANK_SIZE

    @property
    def chr_size(self) -> int:
        return self.chr_banks * CHR_BANK_SIZE

    # @intent:responsibility 16 バイトのヘッダを解析します。
    # @intent:pre-condition `data` は少なくとも16バイトで、先頭4バイトが "NES" 0x1A である必要があります。
    @classmethod
    def parse(cls, data: bytes) -> "INesHeader":
        if len(data) < HEADER_SIZE:
            raise InvalidRomFormat(f"Header too short: expected {HEADER_SIZE} bytes, got {len(data)}.")
        if bytes(data[0:4]) != SIGNATURE:
            raise InvalidRomFormat(f"Invalid iNES signature: {bytes(data[0:4])!r}")

        flags6 = data[6]
        flags7 = data[7]
        # 下位ニブルはバイト6の上位4bit、上位ニブルはバイト7の上位4bit
        mapper_id = (flags6 >> 4) | (flags7 & 0xF0)
        mirroring = Mirroring.VERTICAL if flags6 & FLAG6_VERTICAL_MIRRORING else Mirroring.HORIZONTAL

        return cls(
            prg_banks=data[4],
            chr_banks=data[5],
            mapper_id=mapper_id,
            mirroring=mirroring,
            has_trainer=bool(flags6 & FLAG6_TRAINER),
            has_battery=bool(flags6 & FLAG6_BATTERY),
        )
