# tests/transport/test_bus.py
"""
nes_core.transport.busモジュールの単体テスト。
"""
import logging

import pytest
from nes_core.cartridge import Cartridge
from nes_core.transport.bus import (
    Bus, Device, RAM, OpenBusDevice, PictureDevice, BusAccessType, OAM_DMA_CYCLES,
)

# @intent:test_suite 内蔵RAM、固定のアドレスデコード表、周辺デバイスへの委譲を検証します。

class RecordingDevice(OpenBusDevice):
    """
    アクセスされたオフセットを記録するテスト用デバイス。
    """
    def __init__(self, value=0x00):
        self.value = value
        self.reads = []
        self.writes = []

    def read(self, address):
        self.reads.append(address)
        return self.value

    def write(self, address, data):
        self.writes.append((address, data))

class RecordingPicture(PictureDevice, RecordingDevice):
    def __init__(self, value=0x00):
        RecordingDevice.__init__(self, value)
        self.dma = None

    def oam_dma(self, data):
        self.dma = data


class TestRAM:
    """
    RAMデバイスの単体テスト。
    """
    # @intent:test_case_init RAMクラスが正しいサイズで初期化されることを検証します。
    def test_ram_init_valid_size(self):
        ram = RAM(16)
        assert ram.get_size() == 16
        assert all(b == 0 for b in ram._memory) # 全て0で初期化される

    # @intent:test_case_init 無効なサイズでRAMを初期化するとValueErrorが発生することを検証します。
    def test_ram_init_invalid_size(self):
        with pytest.raises(ValueError, match="RAM size must be a positive integer."):
            RAM(0)
        with pytest.raises(ValueError, match="RAM size must be a positive integer."):
            RAM(1.5) # float

    # @intent:test_case_oob 境界外アドレスへのアクセス時にIndexErrorが発生することを検証します。
    def test_ram_read_write_out_of_bounds(self):
        ram = RAM(4)
        with pytest.raises(IndexError, match="Address 4 out of bounds for RAM of size 4."):
            ram.read(4)
        with pytest.raises(IndexError, match="Address -1 out of bounds for RAM of size 4."):
            ram.write(-1, 0x00)

    # @intent:test_case_data 8bitを超過するデータの書き込みはValueError。
    def test_ram_write_invalid_data(self):
        ram = RAM(1)
        with pytest.raises(ValueError, match="Data 256 is not an 8-bit value."):
            ram.write(0, 0x100)


class TestBus:
    """
    Busの単体テスト。
    """
    # @intent:test_case_mirror 2KiBの内蔵RAMは$0000-$1FFFで4回ミラーされる。
    def test_ram_mirroring(self):
        bus = Bus()
        bus.write(0x0001, 0xAB)
        for mirror in (0x0801, 0x1001, 0x1801):
            assert bus.read(mirror) == 0xAB
        bus.write(0x1FFF, 0xCD)
        assert bus.read(0x07FF) == 0xCD

    # @intent:test_case_unmapped 未マップ領域は0を返し、ログに UNMAPPED_READ として残る。
    @pytest.mark.parametrize("address", [0x4018, 0x401F, 0x4020, 0x5FFF])
    def test_unmapped_read(self, address):
        bus = Bus()
        assert bus.read(address) == 0
        log = bus.get_and_clear_activity_log()
        assert log[-1].access_type == BusAccessType.UNMAPPED_READ
        assert log[-1].address == address

    def test_unmapped_write_is_ignored(self, caplog):
        bus = Bus()
        with caplog.at_level(logging.DEBUG, logger="nes_core.transport.bus"):
            bus.write(0x5000, 0x12)
        assert bus.read(0x5000) == 0
        log = bus.get_and_clear_activity_log()
        assert log[0].access_type == BusAccessType.UNMAPPED_WRITE
        assert "$5000" in caplog.text

    def test_cartridge_range_without_cartridge(self):
        bus = Bus()
        assert bus.read(0x8000) == 0
        assert bus.get_and_clear_activity_log()[0].access_type == BusAccessType.UNMAPPED_READ

    def test_address_is_masked_to_16_bits(self):
        bus = Bus()
        bus.write(0x10005, 0x77)
        assert bus.read(0x0005) == 0x77

    def test_data_is_masked_to_8_bits(self):
        bus = Bus()
        bus.write(0x0000, 0x1FF)
        assert bus.read(0x0000) == 0xFF

    # @intent:test_case_ppu PPUレジスタは8バイト周期でミラーされる。
    def test_ppu_register_mirroring(self):
        bus = Bus()
        ppu = RecordingPicture(value=0x80)
        bus.connect_ppu(ppu)

        assert bus.read(0x2002) == 0x80
        assert bus.read(0x200A) == 0x80
        bus.write(0x3FFF, 0x11)

        assert ppu.reads == [2, 2]
        assert ppu.writes == [(7, 0x11)]

    def test_default_ppu_stub_returns_zero(self):
        bus = Bus()
        bus.write(0x2000, 0xFF)
        assert bus.read(0x2000) == 0

    def test_connect_ppu_requires_picture_device(self):
        bus = Bus()
        with pytest.raises(TypeError):
            bus.connect_ppu(RecordingDevice())

    def test_connect_apu_requires_device(self):
        bus = Bus()
        with pytest.raises(TypeError):
            bus.connect_apu(object())

    def test_apu_and_controller_ports(self):
        bus = Bus()
        apu = RecordingDevice(value=0x40)
        pads = RecordingDevice(value=0x41)
        bus.connect_apu(apu)
        bus.connect_controllers(pads)

        assert bus.read(0x4015) == 0x40
        assert bus.read(0x4016) == 0x41
        assert bus.read(0x4017) == 0x41
        bus.write(0x4000, 0x30)
        bus.write(0x4016, 0x01)
        bus.write(0x4017, 0x40) # フレームカウンタ

        assert apu.reads == [0x15]
        assert pads.reads == [0, 1]
        assert apu.writes == [(0x00, 0x30), (0x17, 0x40)]
        assert pads.writes == [(0, 0x01)]

    # @intent:test_case_dma $4014 への書き込みで指定ページの256バイトがPPUへ転送される。
    def test_oam_dma(self):
        bus = Bus()
        ppu = RecordingPicture()
        bus.connect_ppu(ppu)
        for i in range(256):
            bus.write(0x0200 + i, i)

        bus.write(0x4014, 0x02)

        assert ppu.dma == bytes(range(256))
        assert bus.consume_stall_cycles() == OAM_DMA_CYCLES
        assert bus.consume_stall_cycles() == 0

    # @intent:test_case_peek peekはログを残さず、デバイスのreadも呼ばない。
    def test_peek_has_no_side_effects(self):
        class StatusRegister(PictureDevice):
            def __init__(self):
                self.read_count = 0
            def read(self, address):
                self.read_count += 1
                return 0x80
            def peek(self, address):
                return 0x80

        bus = Bus()
        ppu = StatusRegister()
        bus.connect_ppu(ppu)
        bus.write(0x0010, 0x12)
        bus.get_and_clear_activity_log()

        assert bus.peek(0x0010) == 0x12
        assert bus.peek(0x2002) == 0x80
        assert bus.peek(0x5000) == 0
        assert ppu.read_count == 0
        assert bus.get_and_clear_activity_log() == []

    def test_activity_log_is_cleared(self):
        bus = Bus()
        bus.write(0x0000, 0x01)
        bus.read(0x0000)
        log = bus.get_and_clear_activity_log()
        assert [entry.access_type for entry in log] == [BusAccessType.WRITE, BusAccessType.READ]
        assert bus.get_and_clear_activity_log() == []

    # @intent:test_case_cartridge $6000以上はカートリッジへ委譲される。
    def test_cartridge_dispatch(self, ines_image):
        cartridge = Cartridge.from_bytes(ines_image(prg_patches={0x0000: b"\xA9", 0x3FFF: b"\x5A"}))
        bus = Bus()
        bus.connect_cartridge(cartridge)

        assert bus.cartridge is cartridge
        assert bus.read(0x8000) == 0xA9
        assert bus.read(0xC000) == 0xA9 # 16KiBはミラー
        assert bus.read(0xFFFF) == 0x5A
        bus.write(0x6000, 0x42)
        assert bus.read(0x6000) == 0x42

    def test_rom_ignores_writes(self, ines_image):
        bus = Bus()
        bus.connect_cartridge(Cartridge.from_bytes(ines_image()))
        bus.write(0x8000, 0x55)
        assert bus.read(0x8000) == 0x00 # ROMへの通常の書き込みは無視

    def test_open_bus_device(self):
        device = OpenBusDevice()
        device.write(0, 0xFF)
        assert device.read(0) == 0
        assert isinstance(device, Device)
