# nes_core/cartridge/mapper.py
"""
カートリッジのマッパー（アドレス変換戦略）。

マッパーはCPUアドレス ($8000-$FFFF) とPPUアドレス ($0000-$1FFF) を
PRG/CHR 配列の物理オフセットへ変換します。バンク切り替えを持つ基板では
PRG領域への書き込みがバンク選択レジスタとして解釈されます。
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, Type

from nes_core.common.errors import UnsupportedMapper

logger = logging.getLogger(__name__)

PRG_ROM_START = 0x8000
PRG_BANK_WINDOW = 0x4000
CHR_BANK_WINDOW = 0x2000


# @intent:responsibility 全マッパーに共通の変換インターフェースを定義します。
class Mapper(ABC):
    """
    マッパーの抽象基底クラス。
    `prg_size` と `chr_size` はカートリッジが保持する配列のバイト長です。
    """
    mapper_id: int = -1
    name: str = ""

    # @intent:pre-condition prg_size, chr_size は正の整数である必要があります。
    def __init__(self, prg_size: int, chr_size: int):
        if prg_size <= 0 or chr_size <= 0:
            raise ValueError("Mapper requires non-empty PRG and CHR storage.")
        self._prg_size = prg_size
        self._chr_size = chr_size

    # @intent:responsibility CPUアドレス ($8000-$FFFF) をPRG配列のオフセットに変換します。
    @abstractmethod
    def translate(self, address: int) -> int:
        pass

    # @intent:responsibility PPUアドレス ($0000-$1FFF) をCHR配列のオフセットに変換します。
    @abstractmethod
    def translate_graphics(self, address: int) -> int:
        pass

    # @intent:responsibility PRG領域への書き込みをバンク選択レジスタとして処理します。
    # 既定ではバンクレジスタを持たないため何もしません。
    def write_register(self, address: int, data: int) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(prg_size={self._prg_size}, chr_size={self._chr_size})"


# @intent:responsibility マッパー0 (NROM)。バンク切り替えなし。
class NromMapper(Mapper):
    """
    PRG 16KiB の場合は $8000-$BFFF と $C000-$FFFF に同じバンクが見えます。
    """
    mapper_id = 0
    name = "NROM"

    def translate(self, address: int) -> int:
        return (address - PRG_ROM_START) % self._prg_size

    def translate_graphics(self, address: int) -> int:
        return address % self._chr_size


# @intent:responsibility マッパー2 (UxROM)。$8000-$BFFF が切り替え可能、$C000-$FFFF は最終バンク固定。
class UxRomMapper(Mapper):
    mapper_id = 2
    name = "UxROM"

    def __init__(self, prg_size: int, chr_size: int):
        super().__init__(prg_size, chr_size)
        self._bank_count = max(1, prg_size // PRG_BANK_WINDOW)
        self._bank = 0

    @property
    def bank(self) -> int:
        return self._bank

    def translate(self, address: int) -> int:
        if address < 0xC000:
            bank = self._bank
        else:
            bank = self._bank_count - 1
        return (bank * PRG_BANK_WINDOW + (address & (PRG_BANK_WINDOW - 1))) % self._prg_size

    def translate_graphics(self, address: int) -> int:
        return address % self._chr_size

    def write_register(self, address: int, data: int) -> None:
        bank = data % self._bank_count
        if bank != self._bank:
            logger.debug("UxROM PRG bank switch %d -> %d", self._bank, bank)
        self._bank = bank


# @intent:responsibility マッパー3 (CNROM)。PRGはNROMと同じ、CHRが8KiB単位で切り替え可能。
class CnRomMapper(NromMapper):
    mapper_id = 3
    name = "CNROM"

    def __init__(self, prg_size: int, chr_size: int):
        super().__init__(prg_size, chr_size)
        self._bank_count = max(1, chr_size // CHR_BANK_WINDOW)
        self._bank = 0

    @property
    def bank(self) -> int:
        return self._bank

    def translate_graphics(self, address: int) -> int:
        return (self._bank * CHR_BANK_WINDOW + (address & (CHR_BANK_WINDOW - 1))) % self._chr_size

    def write_register(self, address: int, data: int) -> None:
        bank = data % self._bank_count
        if bank != self._bank:
            logger.debug("CNROM CHR bank switch %d -> %d", self._bank, bank)
        self._bank = bank


# @intent:responsibility マッパー番号から実装クラスを引く閉じた登録表。
MAPPERS: Dict[int, Type[Mapper]] = {
    NromMapper.mapper_id: NromMapper,
    UxRomMapper.mapper_id: UxRomMapper,
    CnRomMapper.mapper_id: CnRomMapper,
}


# @intent:responsibility マッパー番号に対応するマッパーを生成します。
# @intent:post-condition 未登録の番号に対してはUnsupportedMapperを送出し、既定マッパーで代用しません。
def create_mapper(mapper_id: int, prg_size: int, chr_size: int) -> Mapper:
    mapper_class = MAPPERS.get(mapper_id)
    if mapper_class is None:
        raise UnsupportedMapper(mapper_id)
    return mapper_class(prg_size, chr_size)
