# src/nes_core/arch/mos6502/disassembler.py
"""
MOS 6502 逆アセンブラ。
"""
from typing import List, Tuple

from nes_core.transport.bus import Bus
from nes_core.arch.mos6502.instructions.base import OPERAND_LENGTHS, format_operand
from nes_core.arch.mos6502.instructions.maps import OPCODE_MAP


# @intent:responsibility 指定されたメモリ範囲を逆アセンブルする。
def disassemble(bus: Bus, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
    """
    メモリを解析し、(アドレス, HEX, ニーモニック) のリストを返す。

    読み出しには Bus.peek を使い、アクティビティログやデバイスの状態を変化させない。
    """
    results = []
    current_addr = start_addr
    end_addr = start_addr + length

    # 逆アセンブル時にはレジスタ状態が不明なため、アドレッシングモードの解決は行わず
    # オペランドの字面だけを整形する。
    while current_addr < end_addr:
        addr = current_addr & 0xFFFF
        opcode = bus.peek(addr)
        entry = OPCODE_MAP.get(opcode)

        if not entry:
            results.append((addr, f"{opcode:02X}", f"DB ${opcode:02X}"))
            current_addr += 1
            continue

        op_bytes = [bus.peek((addr + 1 + i) & 0xFFFF) for i in range(OPERAND_LENGTHS[entry.mode])]
        op_str = format_operand(entry.mode, addr, op_bytes)

        hex_str = " ".join(f"{b:02X}" for b in [opcode] + op_bytes)
        mnemonic_full = f"{entry.mnemonic} {op_str}".strip()

        results.append((addr, hex_str, mnemonic_full))
        current_addr += 1 + len(op_bytes)

    return results
