# src/nes_core/config/builder.py
import logging
from typing import Optional

from nes_core.cartridge import Cartridge
from nes_core.arch.mos6502.cpu import Mos6502Cpu
from nes_core.system.console import NesSystem
from .models import SystemConfig, CpuInitialState

logger = logging.getLogger(__name__)

# @intent:responsibility システム構成（Config）に基づいて、カートリッジ、Bus、CPUを生成・接続し、初期状態を適用します。
class SystemBuilder:
    def build_system(self, config: SystemConfig, cartridge: Optional[Cartridge] = None) -> NesSystem:
        """
        `cartridge` が渡された場合は config.rom より優先します（テストやメモリ上のイメージ用）。
        """
        if cartridge is None:
            if not config.rom:
                raise ValueError("No ROM specified in config.")
            cartridge = Cartridge.from_file(config.rom)

        system = NesSystem(cartridge)
        system.cpu.trace_enabled = config.trace

        # 初期状態の適用
        self.apply_initial_state(system.cpu, config.initial_state)
        return system

    # @intent:responsibility Configで定義された初期状態をCPUに適用します。
    def apply_initial_state(self, cpu: Mos6502Cpu, config_state: CpuInitialState) -> None:
        """
        CPUをリセットし、Configから指定された初期値を適用します。
        """
        cpu.reset()

        if config_state.use_reset_vector:
            # リセットベクトルからのPCはCPUのリセット処理で設定済み
            return

        registers = dict(config_state.registers)
        p_value = registers.pop("p", None)

        new_state = cpu.get_state().replace(pc=config_state.pc, sp=config_state.sp, **registers)
        if p_value is not None:
            new_state = new_state.with_p(p_value)
        cpu.restore_state(new_state)
        logger.debug("Initial state overridden: PC=$%04X SP=$%02X", config_state.pc, config_state.sp)
