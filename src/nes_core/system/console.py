# src/nes_core/system/console.py
"""
コンソール全体の組み立て。

カートリッジ、Bus、CPUの所有者であり、非所有参照（Bus→カートリッジ、CPU→Bus）の配線を1度だけ行います。
"""
import logging
from typing import List, Optional

from nes_core.cartridge import Cartridge
from nes_core.core.snapshot import Snapshot
from nes_core.transport.bus import Bus, Device, PictureDevice
from nes_core.arch.mos6502.cpu import Mos6502Cpu

logger = logging.getLogger(__name__)


# @intent:responsibility 各コンポーネントを所有し、ステップ実行の入口を提供します。
class NesSystem:
    def __init__(self, cartridge: Cartridge,
                 ppu: Optional[PictureDevice] = None,
                 apu: Optional[Device] = None,
                 controllers: Optional[Device] = None):
        self.cartridge = cartridge
        self.bus = Bus()
        self.bus.connect_cartridge(cartridge)
        if ppu is not None:
            self.bus.connect_ppu(ppu)
        if apu is not None:
            self.bus.connect_apu(apu)
        if controllers is not None:
            self.bus.connect_controllers(controllers)
        self.cpu = Mos6502Cpu(self.bus)
        # 電源投入時はリセットベクタから開始する
        self.cpu.reset()

    def reset(self) -> None:
        self.cpu.reset()

    def step(self) -> Snapshot:
        return self.cpu.step()

    # @intent:responsibility 指定ステップ数だけ実行し、各ステップのSnapshotを返します。
    # @intent:note 実行中に発生した UnimplementedOpcode はそのまま呼び出し元へ伝播します。
    def run(self, max_steps: int) -> List[Snapshot]:
        if max_steps < 0:
            raise ValueError("max_steps must be non-negative.")
        snapshots = [self.cpu.step() for _ in range(max_steps)]
        logger.debug("Ran %d steps, total cycles %d", len(snapshots), self.cpu.cycles)
        return snapshots

    @property
    def cycles(self) -> int:
        return self.cpu.cycles
