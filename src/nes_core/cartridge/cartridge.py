# nes_core/cartridge/cartridge.py
"""
カートリッジ (iNES イメージ) のロードとアクセス。

カートリッジはPRG/CHR配列とマッパーを排他的に所有し、
CPUバスとPPUバスからの読み書きをマッパー経由の物理オフセットで処理します。
"""
import io
import logging
from typing import BinaryIO, Optional

from nes_core.common.errors import InvalidRomFormat
from nes_core.cartridge.header import (
    INesHeader, Mirroring, HEADER_SIZE, TRAINER_SIZE, CHR_BANK_SIZE,
)
from nes_core.cartridge.mapper import Mapper, create_mapper

logger = logging.getLogger(__name__)

PRG_RAM_START = 0x6000
PRG_RAM_SIZE = 0x2000
PRG_ROM_START = 0x8000
TRAINER_OFFSET = 0x1000  # PRG RAM 内のオフセット ($7000)
CHR_ADDRESS_LIMIT = 0x2000


# @intent:responsibility 固定長のデータをストリームから読み出します。足りなければInvalidRomFormat。
def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise InvalidRomFormat(f"Truncated ROM image: expected {size} bytes of {what}, got {len(data)}.")
    return data


# @intent:responsibility ROMイメージを保持し、CPU/PPUからのアクセスをマッパーに委譲します。
class Cartridge:
    """
    iNES 形式のカートリッジ。

    CPU側:
      $6000-$7FFF  PRG RAM (8KiB)
      $8000-$FFFF  PRG ROM (マッパーで変換)
    PPU側:
      $0000-$1FFF  CHR ROM/RAM (マッパーで変換)
    """
    # @intent:pre-condition prg_rom の長さは header.prg_size、chr_rom の長さは header.chr_size と一致している必要があります。
    def __init__(self, header: INesHeader, prg_rom: bytes, chr_rom: bytes, trainer: Optional[bytes] = None):
        if header.prg_banks == 0:
            raise InvalidRomFormat("ROM image declares no PRG ROM banks.")
        if len(prg_rom) != header.prg_size or len(chr_rom) != header.chr_size:
            raise InvalidRomFormat("PRG/CHR data size does not match the header.")

        self._header = header
        self._prg_rom = bytearray(prg_rom)
        self._prg_ram = bytearray(PRG_RAM_SIZE)
        self._trainer = bytes(trainer) if trainer else b""
        if self._trainer:
            self._prg_ram[TRAINER_OFFSET:TRAINER_OFFSET + TRAINER_SIZE] = self._trainer

        # CHR バンク数 0 の基板は 8KiB の CHR RAM を持つ
        self._chr_is_ram = header.chr_banks == 0
        self._chr = bytearray(CHR_BANK_SIZE) if self._chr_is_ram else bytearray(chr_rom)

        # @intent:rationale マッパーはロード時に1度だけ生成し、以後差し替えない。
        self._mapper: Mapper = create_mapper(header.mapper_id, len(self._prg_rom), len(self._chr))

    # --- ロード ---

    # @intent:responsibility ファイルからカートリッジを生成します。ファイルは全ての経路で閉じられます。
    @classmethod
    def from_file(cls, path: str) -> "Cartridge":
        logger.info("Loading ROM: %s", path)
        with open(path, "rb") as f:
            cartridge = cls.from_stream(f)
        logger.info(
            "Loaded %s: PRG %d bytes, CHR %d bytes, mapper %d (%s), %s mirroring",
            path, cartridge.prg_size, len(cartridge._chr), cartridge.mapper_id,
            cartridge.mapper.name, cartridge.mirroring.value.lower(),
        )
        return cartridge

    @classmethod
    def from_bytes(cls, data: bytes) -> "Cartridge":
        return cls.from_stream(io.BytesIO(data))

    # @intent:responsibility ヘッダ、トレーナー、PRG、CHR の順でストリームを読みます。
    @classmethod
    def from_stream(cls, stream: BinaryIO) -> "Cartridge":
        header = INesHeader.parse(stream.read(HEADER_SIZE))
        trainer = _read_exact(stream, TRAINER_SIZE, "trainer") if header.has_trainer else None
        prg_rom = _read_exact(stream, header.prg_size, "PRG ROM")
        chr_rom = _read_exact(stream, header.chr_size, "CHR ROM")
        return cls(header, prg_rom, chr_rom, trainer)

    # --- 属性 ---

    @property
    def header(self) -> INesHeader:
        return self._header

    @property
    def mapper(self) -> Mapper:
        return self._mapper

    @property
    def mapper_id(self) -> int:
        return self._header.mapper_id

    @property
    def mirroring(self) -> Mirroring:
        return self._header.mirroring

    @property
    def prg_size(self) -> int:
        return len(self._prg_rom)

    @property
    def prg_rom(self) -> bytes:
        return bytes(self._prg_rom)

    @property
    def chr_data(self) -> bytes:
        return bytes(self._chr)

    @property
    def chr_is_ram(self) -> bool:
        return self._chr_is_ram

    @property
    def trainer(self) -> bytes:
        return self._trainer

    # --- CPU側アクセス ($6000-$FFFF) ---

    # @intent:pre-condition address は $6000-$FFFF の範囲である必要があります。
    def read(self, address: int) -> int:
        if address >= PRG_ROM_START:
            return self._prg_rom[self._mapper.translate(address)]
        if address >= PRG_RAM_START:
            return self._prg_ram[address - PRG_RAM_START]
        raise ValueError(f"Address {address:#06x} is outside the cartridge range.")

    def write(self, address: int, data: int) -> None:
        if address >= PRG_ROM_START:
            # ROMへの書き込みはマッパーのバンクレジスタとして扱い、ROMの内容は変化しない
            self._mapper.write_register(address, data)
        elif address >= PRG_RAM_START:
            self._prg_ram[address - PRG_RAM_START] = data
        else:
            raise ValueError(f"Address {address:#06x} is outside the cartridge range.")

    # --- PPU側アクセス ($0000-$1FFF) ---

    def read_graphics(self, address: int) -> int:
        if not 0 <= address < CHR_ADDRESS_LIMIT:
            raise ValueError(f"Address {address:#06x} is outside the pattern table range.")
        return self._chr[self._mapper.translate_graphics(address)]

    def write_graphics(self, address: int, data: int) -> None:
        if not 0 <= address < CHR_ADDRESS_LIMIT:
            raise ValueError(f"Address {address:#06x} is outside the pattern table range.")
        if self._chr_is_ram:
            self._chr[self._mapper.translate_graphics(address)] = data
        # CHR ROM への書き込みは無視
