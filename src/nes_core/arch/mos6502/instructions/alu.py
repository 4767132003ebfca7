# src/nes_core/arch/mos6502/instructions/alu.py
"""
MOS 6502 算術論理演算命令 (ALU)。

2A03 は10進演算回路を持たないため、Dフラグの状態に関わらず ADC/SBC は2進で演算する。
"""
from nes_core.transport.bus import Bus
from nes_core.arch.mos6502.state import Mos6502CpuState
from nes_core.arch.mos6502.instructions.base import AddressingResult
from nes_core.arch.mos6502.instructions.load import update_nz

# --- Logical Operations (AND, ORA, EOR, BIT) ---

def and_(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    res = state.a & bus.read(addr_res.address)
    return update_nz(state.replace(a=res), res)

def ora(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    res = state.a | bus.read(addr_res.address)
    return update_nz(state.replace(a=res), res)

def eor(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    res = state.a ^ bus.read(addr_res.address)
    return update_nz(state.replace(a=res), res)

# @intent:note BIT命令はメモリの値のビット6, 7をそれぞれV, Nフラグにコピーし、A & Mの結果でZフラグを設定する。
def bit(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    val = bus.read(addr_res.address)
    return state.update_flags(z=(state.a & val) == 0, v=(val & 0x40) != 0, n=(val & 0x80) != 0)

# --- Arithmetic Operations (ADC, SBC) ---

# @intent:responsibility 2進加算。V は両オペランドと結果の符号の食い違いで判定する。
def _add_with_carry(state: Mos6502CpuState, val: int) -> Mos6502CpuState:
    a = state.a
    res_wide = a + val + (1 if state.flag_c else 0)
    res = res_wide & 0xFF

    # V is set if the sign of the result differs from the sign of both operands.
    v = (~(a ^ val) & (a ^ res) & 0x80) != 0

    new_state = state.replace(a=res)
    return new_state.update_flags(c=res_wide > 0xFF, z=(res == 0), n=(res & 0x80) != 0, v=v)

def adc(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _add_with_carry(state, bus.read(addr_res.address))

# SBC A, M  ==  ADC A, ~M
def sbc(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _add_with_carry(state, bus.read(addr_res.address) ^ 0xFF)

# --- Compare Operations (CMP, CPX, CPY) ---
# @intent:note 比較は結果を格納しない減算。N, Z, C のみ更新し、C は Reg >= Val (借りなし) でセット。

def _compare(state: Mos6502CpuState, reg_val: int, mem_val: int) -> Mos6502CpuState:
    diff = reg_val - mem_val
    res = diff & 0xFF
    return state.update_flags(c=diff >= 0, z=(res == 0), n=(res & 0x80) != 0)

def cmp(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _compare(state, state.a, bus.read(addr_res.address))

def cpx(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _compare(state, state.x, bus.read(addr_res.address))

def cpy(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _compare(state, state.y, bus.read(addr_res.address))

# --- Shift / Rotate Operations (ASL, LSR, ROL, ROR) ---
# @intent:note Accumulator mode or Memory mode.

def _read_modify_write(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult, op) -> Mos6502CpuState:
    if addr_res.accumulator:
        val = state.a
    else:
        val = bus.read(addr_res.address)

    res, carry = op(val, state.flag_c)
    new_state = state.update_flags(c=carry, z=(res == 0), n=(res & 0x80) != 0)

    if addr_res.accumulator:
        return new_state.replace(a=res)
    bus.write(addr_res.address, res)
    return new_state

def asl(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _read_modify_write(state, bus, addr_res, lambda v, c: ((v << 1) & 0xFF, (v & 0x80) != 0))

# N is always 0 for LSR
def lsr(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _read_modify_write(state, bus, addr_res, lambda v, c: (v >> 1, (v & 0x01) != 0))

def rol(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _read_modify_write(state, bus, addr_res,
                              lambda v, c: (((v << 1) | (1 if c else 0)) & 0xFF, (v & 0x80) != 0))

def ror(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    return _read_modify_write(state, bus, addr_res,
                              lambda v, c: ((v >> 1) | (0x80 if c else 0), (v & 0x01) != 0))

# --- Increment / Decrement (INC, DEC, INX, DEX, INY, DEY) ---

def inc(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    res = (bus.read(addr_res.address) + 1) & 0xFF
    bus.write(addr_res.address, res)
    return update_nz(state, res)

def dec(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    res = (bus.read(addr_res.address) - 1) & 0xFF
    bus.write(addr_res.address, res)
    return update_nz(state, res)

def inx(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    res = (state.x + 1) & 0xFF
    return update_nz(state.replace(x=res), res)

def dex(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    res = (state.x - 1) & 0xFF
    return update_nz(state.replace(x=res), res)

def iny(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    res = (state.y + 1) & 0xFF
    return update_nz(state.replace(y=res), res)

def dey(state: Mos6502CpuState, bus: Bus, addr_res: AddressingResult) -> Mos6502CpuState:
    res = (state.y - 1) & 0xFF
    return update_nz(state.replace(y=res), res)
