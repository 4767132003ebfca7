# src/nes_core/arch/mos6502/instructions/base.py
"""
MOS 6502 アドレッシングモード解決ロジック。

各解決関数は、命令先頭アドレス `pc` とフェッチ済みのオペランドバイトから
実効アドレスとページ境界交差の有無を求める。
"""
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional

from nes_core.transport.bus import Bus
from nes_core.arch.mos6502.state import Mos6502CpuState


class AddressingMode(Enum):
    IMPLIED = "IMP"
    ACCUMULATOR = "ACC"
    IMMEDIATE = "IMM"
    ZERO_PAGE = "ZPG"
    ZERO_PAGE_X = "ZPX"
    ZERO_PAGE_Y = "ZPY"
    ABSOLUTE = "ABS"
    ABSOLUTE_X = "ABX"
    ABSOLUTE_Y = "ABY"
    INDIRECT = "IND"
    INDEXED_INDIRECT = "IDX"
    INDIRECT_INDEXED = "IDY"
    RELATIVE = "REL"


# @intent:responsibility アドレッシングモードの解決結果。
# address: 実効アドレス (Implied / Accumulator の場合はNone)
# page_crossed: インデックス加算や分岐でページ境界を跨いだか
# accumulator: オペランドがAレジスタそのものであるか
class AddressingResult(NamedTuple):
    address: Optional[int]
    page_crossed: bool = False
    accumulator: bool = False


# オペランドのバイト数
OPERAND_LENGTHS: Dict[AddressingMode, int] = {
    AddressingMode.IMPLIED: 0,
    AddressingMode.ACCUMULATOR: 0,
    AddressingMode.IMMEDIATE: 1,
    AddressingMode.ZERO_PAGE: 1,
    AddressingMode.ZERO_PAGE_X: 1,
    AddressingMode.ZERO_PAGE_Y: 1,
    AddressingMode.ABSOLUTE: 2,
    AddressingMode.ABSOLUTE_X: 2,
    AddressingMode.ABSOLUTE_Y: 2,
    AddressingMode.INDIRECT: 2,
    AddressingMode.INDEXED_INDIRECT: 1,
    AddressingMode.INDIRECT_INDEXED: 1,
    AddressingMode.RELATIVE: 1,
}


# @intent:responsibility ページ境界交差判定。
def is_page_crossed(addr1: int, addr2: int) -> bool:
    return (addr1 & 0xFF00) != (addr2 & 0xFF00)


def _word(operand: List[int]) -> int:
    return (operand[1] << 8) | operand[0]


def _signed(value: int) -> int:
    return value - 0x100 if value >= 0x80 else value


# --- Addressing Modes ---

def addr_implied(pc: int, operand: List[int], bus: Bus, state: Mos6502CpuState) -> AddressingResult:
    return AddressingResult(None)

def addr_accumulator(pc: int, operand: List[int], bus: Bus, state: Mos6502CpuState) -> AddressingResult:
    return AddressingResult(None, accumulator=True)

# @intent:responsibility Immediate Mode (#$xx)。実効アドレスはオペランドバイト自身の位置。
def addr_immediate(pc: int, operand: List[int], bus: Bus, state: Mos6502CpuState) -> AddressingResult:
    return AddressingResult((pc + 1) & 0xFFFF)

def addr_zeropage(pc: int, operand: List[int], bus: Bus, state: Mos6502CpuState) -> AddressingResult:
    return AddressingResult(operand[0])

# @intent:note ゼロページ内でラップアラウンドする ($FF + 1 -> $00)。ページ交差ペナルティはない。
def addr_zeropage_x(pc: int, operand: List[int], bus: Bus, state: Mos6502CpuState) -> AddressingResult:
    return AddressingResult((operand[0] + state.x) & 0xFF)

# LDX, STX only
def addr_zeropage_y(pc: int, operand: List[int], bus: Bus, state: Mos6502CpuState) -> AddressingResult:
    return AddressingResult((operand[0] + state.y) & 0xFF)

def addr_absolute(pc: int, operand: List[int], bus: Bus, state: Mos6502CpuState) -> AddressingResult:
    return AddressingResult(_word(operand))

def addr_absolute_x(pc: int, operand: List[int], bus: Bus, state: Mos6502CpuState) -> AddressingResult:
    base_addr = _word(operand)
    addr = (base_addr + state.x) & 0xFFFF
    return AddressingResult(addr, is_page_crossed(base_addr, addr))

def addr_absolute_y(pc: int, operand: List[int], bus: Bus, state: Mos6502CpuState) -> AddressingResult:
    base_addr = _word(operand)
    addr = (base_addr + state.y) & 0xFFFF
    return AddressingResult(addr, is_page_crossed(base_addr, addr))

# @intent:responsibility Indirect Mode ($xxxx) - JMP only
# @intent:note ポインタ下位が$FFの場合、上位バイトは次ページではなく同じページの先頭から読む（実機のバグを再現）。
def addr_indirect(pc: int, operand: List[int], bus: Bus, state: Mos6502CpuState) -> AddressingResult:
    ptr = _word(operand)
    eff_lo = bus.read(ptr)
    eff_hi = bus.read((ptr & 0xFF00) | ((ptr + 1) & 0x00FF))
    return AddressingResult((eff_hi << 8) | eff_lo)

# @intent:responsibility Indexed Indirect Mode ($xx,X) - "Pre-indexed"
def addr_indexed_indirect(pc: int, operand: List[int], bus: Bus, state: Mos6502CpuState) -> AddressingResult:
    ptr_addr = (operand[0] + state.x) & 0xFF
    lo = bus.read(ptr_addr)
    hi = bus.read((ptr_addr + 1) & 0xFF)
    return AddressingResult((hi << 8) | lo)

# @intent:responsibility Indirect Indexed Mode ($xx),Y - "Post-indexed"
def addr_indirect_indexed(pc: int, operand: List[int], bus: Bus, state: Mos6502CpuState) -> AddressingResult:
    ptr_addr = operand[0]
    lo = bus.read(ptr_addr)
    hi = bus.read((ptr_addr + 1) & 0xFF)
    base_addr = (hi << 8) | lo
    addr = (base_addr + state.y) & 0xFFFF
    return AddressingResult(addr, is_page_crossed(base_addr, addr))

# @intent:responsibility Relative Mode (Branch)
# @intent:note 戻り値のアドレスは分岐先の絶対アドレス。page_crossedは次命令アドレスとの比較結果。
def addr_relative(pc: int, operand: List[int], bus: Bus, state: Mos6502CpuState) -> AddressingResult:
    next_pc = (pc + 2) & 0xFFFF
    dest_addr = (next_pc + _signed(operand[0])) & 0xFFFF
    return AddressingResult(dest_addr, is_page_crossed(next_pc, dest_addr))


AddrFunc = Callable[[int, List[int], Bus, Mos6502CpuState], AddressingResult]

ADDRESSING_MODES: Dict[AddressingMode, AddrFunc] = {
    AddressingMode.IMPLIED: addr_implied,
    AddressingMode.ACCUMULATOR: addr_accumulator,
    AddressingMode.IMMEDIATE: addr_immediate,
    AddressingMode.ZERO_PAGE: addr_zeropage,
    AddressingMode.ZERO_PAGE_X: addr_zeropage_x,
    AddressingMode.ZERO_PAGE_Y: addr_zeropage_y,
    AddressingMode.ABSOLUTE: addr_absolute,
    AddressingMode.ABSOLUTE_X: addr_absolute_x,
    AddressingMode.ABSOLUTE_Y: addr_absolute_y,
    AddressingMode.INDIRECT: addr_indirect,
    AddressingMode.INDEXED_INDIRECT: addr_indexed_indirect,
    AddressingMode.INDIRECT_INDEXED: addr_indirect_indexed,
    AddressingMode.RELATIVE: addr_relative,
}

# @intent:invariant 全てのアドレッシングモードに解決関数とオペランド長が定義されていること。
_missing = (set(AddressingMode) - set(ADDRESSING_MODES)) | (set(AddressingMode) - set(OPERAND_LENGTHS))
if _missing:
    raise RuntimeError(f"Addressing modes without resolver: {sorted(m.name for m in _missing)}")


def resolve(mode: AddressingMode, pc: int, operand: List[int], bus: Bus, state: Mos6502CpuState) -> AddressingResult:
    return ADDRESSING_MODES[mode](pc, operand, bus, state)


# @intent:responsibility 逆アセンブル用のオペランド文字列を生成する。レジスタ状態には依存しない。
def format_operand(mode: AddressingMode, pc: int, operand: List[int]) -> str:
    if mode is AddressingMode.IMPLIED:
        return ""
    if mode is AddressingMode.ACCUMULATOR:
        return "A"
    if mode is AddressingMode.IMMEDIATE:
        return f"#${operand[0]:02X}"
    if mode is AddressingMode.ZERO_PAGE:
        return f"${operand[0]:02X}"
    if mode is AddressingMode.ZERO_PAGE_X:
        return f"${operand[0]:02X},X"
    if mode is AddressingMode.ZERO_PAGE_Y:
        return f"${operand[0]:02X},Y"
    if mode is AddressingMode.ABSOLUTE:
        return f"${_word(operand):04X}"
    if mode is AddressingMode.ABSOLUTE_X:
        return f"${_word(operand):04X},X"
    if mode is AddressingMode.ABSOLUTE_Y:
        return f"${_word(operand):04X},Y"
    if mode is AddressingMode.INDIRECT:
        return f"(${_word(operand):04X})"
    if mode is AddressingMode.INDEXED_INDIRECT:
        return f"(${operand[0]:02X},X)"
    if mode is AddressingMode.INDIRECT_INDEXED:
        return f"(${operand[0]:02X}),Y"
    # RELATIVE
    return f"${(pc + 2 + _signed(operand[0])) & 0xFFFF:04X}"
