# tests/cartridge/test_mapper.py
import pytest
from nes_core.cartridge import Cartridge, create_mapper
from nes_core.cartridge.mapper import MAPPERS, NromMapper, UxRomMapper, CnRomMapper
from nes_core.common.errors import UnsupportedMapper
from nes_core.transport.bus import Bus

# @intent:test_suite マッパーのアドレス変換とバンク切り替え、登録表を検証します。

def test_registry_is_value_keyed():
    assert set(MAPPERS) == {0, 2, 3}
    assert isinstance(create_mapper(0, 16384, 8192), NromMapper)
    assert isinstance(create_mapper(2, 65536, 8192), UxRomMapper)
    assert isinstance(create_mapper(3, 32768, 32768), CnRomMapper)

@pytest.mark.parametrize("mapper_id", [1, 4, 99, 255])
def test_unknown_mapper(mapper_id):
    with pytest.raises(UnsupportedMapper):
        create_mapper(mapper_id, 16384, 8192)

def test_mapper_requires_storage():
    with pytest.raises(ValueError):
        NromMapper(0, 8192)

class TestNrom:
    def test_translate_16k(self):
        mapper = NromMapper(16384, 8192)
        assert mapper.translate(0x8000) == 0x0000
        assert mapper.translate(0xC123) == 0x0123
        assert mapper.translate(0xFFFF) == 0x3FFF

    def test_translate_32k(self):
        mapper = NromMapper(32768, 8192)
        assert mapper.translate(0xC123) == 0x4123

    def test_translate_graphics(self):
        assert NromMapper(16384, 8192).translate_graphics(0x1ABC) == 0x1ABC

class TestUxRom:
    def test_bank_switch(self):
        mapper = UxRomMapper(4 * 16384, 8192)
        assert mapper.translate(0x8000) == 0
        mapper.write_register(0x8000, 2)
        assert mapper.bank == 2
        assert mapper.translate(0x8010) == 2 * 0x4000 + 0x10
        # 上位ウィンドウは最終バンク固定
        assert mapper.translate(0xC000) == 3 * 0x4000

    def test_bank_number_wraps(self):
        mapper = UxRomMapper(4 * 16384, 8192)
        mapper.write_register(0xFFFF, 6)
        assert mapper.bank == 2

    def test_through_bus(self, ines_image):
        bus = Bus()
        bus.connect_cartridge(Cartridge.from_bytes(ines_image(prg_banks=4, mapper_id=2)))
        assert bus.read(0x8000) == 0
        assert bus.read(0xFFFF) == 3
        bus.write(0x8000, 1)
        assert bus.read(0x8000) == 1
        assert bus.read(0xC000) == 3

class TestCnRom:
    def test_chr_bank_switch(self):
        mapper = CnRomMapper(32768, 4 * 8192)
        mapper.write_register(0x8000, 3)
        assert mapper.bank == 3
        assert mapper.translate_graphics(0x0010) == 3 * 0x2000 + 0x10
        # PRG は NROM と同じ
        assert mapper.translate(0xC000) == 0x4000

    def test_through_cartridge(self, ines_image):
        cartridge = Cartridge.from_bytes(ines_image(prg_banks=2, chr_banks=4, mapper_id=3))
        assert cartridge.read_graphics(0x0000) == 0x80
        cartridge.write(0x8000, 2)
        assert cartridge.read_graphics(0x0000) == 0x82
