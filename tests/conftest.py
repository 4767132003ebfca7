# tests/conftest.py
"""
テスト共通のフィクスチャ。ROMイメージはファイルを用意せず、メモリ上で組み立てる。
"""
import pytest

from nes_core.cartridge import Cartridge
from nes_core.cartridge.header import PRG_BANK_SIZE, CHR_BANK_SIZE
from nes_core.system import NesSystem


# @intent:responsibility iNES イメージを組み立てる関数を返します。
# PRGの各バンクはバンク番号で、CHRの各バンクは 0x80 | バンク番号で埋められます。
@pytest.fixture
def ines_image():
    def build(prg_banks=1, chr_banks=1, mapper_id=0, vertical=False, battery=False,
              trainer=None, prg_patches=None):
        flags6 = (mapper_id & 0x0F) << 4
        if vertical:
            flags6 |= 0x01
        if battery:
            flags6 |= 0x02
        if trainer is not None:
            flags6 |= 0x04
        flags7 = mapper_id & 0xF0
        header = b"NES\x1a" + bytes([prg_banks, chr_banks, flags6, flags7]) + bytes(8)

        prg = bytearray()
        for bank in range(prg_banks):
            prg += bytes([bank]) * PRG_BANK_SIZE
        for offset, data in (prg_patches or {}).items():
            prg[offset:offset + len(data)] = data

        chr_data = bytearray()
        for bank in range(chr_banks):
            chr_data += bytes([0x80 | bank]) * CHR_BANK_SIZE

        return header + (trainer if trainer is not None else b"") + bytes(prg) + bytes(chr_data)
    return build


# @intent:responsibility 16KiB NROM、リセットベクタ $8000 のカートリッジを持つシステム。
@pytest.fixture
def nes(ines_image):
    image = ines_image(prg_patches={0x3FFC: b"\x00\x80"})
    system = NesSystem(Cartridge.from_bytes(image))
    system.reset()
    return system


# @intent:responsibility 実行中のカートリッジのPRG ROMを直接書き換える関数を返します。
# CPUからの書き込みはROMに反映されないため、ベクタや割り込みハンドラの配置に使います。
@pytest.fixture
def poke_rom():
    def poke(cartridge, address, data):
        cartridge._prg_rom[cartridge.mapper.translate(address)] = data & 0xFF
    return poke
