# src/nes_core/arch/mos6502/instructions/control.py
"""
MOS 6502 制御系命令 (Branch, Jump, Stack, Flags, Interrupt, NOP)。

実行時点で state.pc は既に次の命令の先頭を指している（AbstractCpu.step() がデコード後に進める）。
"""
from typing import Callable, Dict, Tuple

from nes_core.common.types import IRQ_VECTOR
from nes_core.transport.bus import Bus
from nes_core.arch.mos6502.state import Mos6502CpuState, STACK_BASE, B_FLAG, U_FLAG
from nes_core.arch.mos6502.instructions.base import AddressingResult

# --- Stack helpers ---
# @intent:note 降順・空スタック。push は書き込み後にSPを減らし、pull はSPを増やしてから読む。
#              SPの範囲チェックは行わず、$00 <-> $FF でラップする。

def push_byte(state: Mos6502CpuState, bus: Bus, value: int) -> Mos6502CpuState:
    bus.write(STACK_BASE | state.sp, value & 0xFF)
    return state.replace(sp=(state.sp - 1) & 0xFF)

def pull_byte(state: Mos6502CpuState, bus: Bus) -> Tuple[Mos6502CpuState, int]:
    sp = (state.sp + 1) & 0xFF
    return state.replace(sp=sp), bus.read(STACK_BASE | sp)

def push_word(state: Mos6502CpuState, bus: Bus, value: int) -> Mos6502CpuState:
    state = push_byte(state, bus, (value >> 8) & 0xFF)
    return push_byte(state, bus, value & 0xFF)

def pull_word(state: Mos6502CpuState, bus: Bus) -> Tuple[Mos6502CpuState, int]:
    state, lo = pull_byte(state, bus)
    state, hi = pull_byte(state, bus)
    return state, (hi << 8) | lo

# @intent:responsibility 割り込みシーケンス共通部。PC(上位→下位)、ステータスをプッシュし、Iをセットしてベクタへ飛ぶ。
# @intent:note BRK/PHP 由来のプッシュでのみBをセットする。NMI/IRQではBはクリアされた値が積まれる。
def enter_interrupt(state: Mos6502CpuState, bus: Bus, return_addr: int, vector: int, brk: bool) -> Mos6502CpuState:
    state = push_word(state, bus, return_addr)
    p_val = state.p | U_FLAG
    p_val = (p_val | B_FLAG) if brk else (p_val & ~B_FLAG)
    state = push_byte(state, bus, p_val)
    target = (bus.read((vector + 1) & 0xFFFF) << 8) | bus.read(vector)
    return state.update_flags(i=True).replace(pc=target)

# --- Branch Instructions ---

BRANCH_CONDITIONS: Dict[str, Callable[[Mos6502CpuState], bool]] = {
    "BCC": lambda s: not s.flag_c,
    "BCS": lambda s: s.flag_c,
    "BEQ": lambda s: s.flag_z,
    "BNE": lambda s: not s.flag_z,
    "BMI": lambda s: s.flag_n,
    "BPL": lambda s: not s.flag_n,
    "BVC": lambda s: not s.flag_v,
    "BVS": lambda s: s.flag_v,
}

def branch_taken(mnemonic: str, state: Mos6502CpuState) -> bool:
    return BRANCH_CONDITIONS[mnemonic](state)

# 不成立時は何もしない（PCは既に次の命令を指している）。
def _branch(state: Mos6502CpuState, addr_res: AddressingResult, mnemonic: str) -> Mos6502CpuState:
    if branch_taken(mnemonic, state):
        return state.replace(pc=addr_res.address)
    return state

def bcc(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _branch(state, addr_res, "BCC")

def bcs(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _branch(state, addr_res, "BCS")

def beq(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _branch(state, addr_res, "BEQ")

def bne(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _branch(state, addr_res, "BNE")

def bmi(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _branch(state, addr_res, "BMI")

def bpl(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _branch(state, addr_res, "BPL")

def bvc(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _branch(state, addr_res, "BVC")

def bvs(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _branch(state, addr_res, "BVS")

# --- Jump Instructions ---

def jmp(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return state.replace(pc=addr_res.address)

# @intent:note 積むのは「JSR命令の最後のバイトのアドレス」、つまり戻り先 - 1。
def jsr(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    state = push_word(state, bus, (state.pc - 1) & 0xFFFF)
    return state.replace(pc=addr_res.address)

def rts(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    state, ret_addr = pull_word(state, bus)
    return state.replace(pc=(ret_addr + 1) & 0xFFFF)

# --- Stack Operations (PHA, PHP, PLA, PLP) ---

def pha(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return push_byte(state, bus, state.a)

# PHP pushes status with Break(B) and Unused(U) set to 1.
def php(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return push_byte(state, bus, state.p | B_FLAG | U_FLAG)

def pla(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    state, val = pull_byte(state, bus)
    return state.replace(a=val).update_flags(n=(val & 0x80) != 0, z=(val == 0))

# @intent:note Bはスタック上にのみ存在するビットのため破棄し、Uは常に1とする。
def plp(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    state, val = pull_byte(state, bus)
    return state.with_p((val & ~B_FLAG) | U_FLAG)

# --- Flag Operations (CLC, SEC, etc) ---

def clc(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return state.update_flags(c=False)

def sec(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return state.update_flags(c=True)

def cli(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return state.update_flags(i=False)

def sei(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return state.update_flags(i=True)

def clv(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return state.update_flags(v=False)

def cld(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return state.update_flags(d=False)

def sed(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return state.update_flags(d=True)

# --- System / Other ---

def nop(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return state

# @intent:note BRKは1バイト命令だが、戻り先は次の1バイト（パディング）を飛ばした PC + 2。
def brk(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return enter_interrupt(state, bus, (state.pc + 1) & 0xFFFF, IRQ_VECTOR, brk=True)

def rti(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    state, p_val = pull_byte(state, bus)
    state = state.with_p((p_val & ~B_FLAG) | U_FLAG)
    state, ret_addr = pull_word(state, bus)
    return state.replace(pc=ret_addr)
