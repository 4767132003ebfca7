# src/nes_core/arch/mos6502/state.py
"""
MOS 6502 (2A03) CPUの状態定義。
"""
from dataclasses import dataclass, field, replace
from nes_core.core.state import CpuState

# Flag bit masks
C_FLAG = 0x01  # Carry
Z_FLAG = 0x02  # Zero
I_FLAG = 0x04  # Interrupt Disable
D_FLAG = 0x08  # Decimal Mode
B_FLAG = 0x10  # Break Command
U_FLAG = 0x20  # Unused (Always 1 when pushed)
V_FLAG = 0x40  # Overflow
N_FLAG = 0x80  # Negative

STACK_BASE = 0x0100


# @intent:responsibility 8つの独立したステータスフラグを保持する。
@dataclass(frozen=True)
class StatusFlags:
    c: bool = False
    z: bool = False
    i: bool = True
    d: bool = False
    b: bool = False
    u: bool = True
    v: bool = False
    n: bool = False


# @intent:responsibility フラグをステータスバイトへ符号化する。Unusedビットは常に1。
def encode_flags(flags: StatusFlags) -> int:
    value = U_FLAG
    if flags.c: value |= C_FLAG
    if flags.z: value |= Z_FLAG
    if flags.i: value |= I_FLAG
    if flags.d: value |= D_FLAG
    if flags.b: value |= B_FLAG
    if flags.v: value |= V_FLAG
    if flags.n: value |= N_FLAG
    return value


# @intent:responsibility ステータスバイトをビット単位でそのままフラグへ復号する。
def decode_flags(value: int) -> StatusFlags:
    return StatusFlags(
        c=bool(value & C_FLAG),
        z=bool(value & Z_FLAG),
        i=bool(value & I_FLAG),
        d=bool(value & D_FLAG),
        b=bool(value & B_FLAG),
        u=bool(value & U_FLAG),
        v=bool(value & V_FLAG),
        n=bool(value & N_FLAG),
    )


# @intent:responsibility MOS 6502 CPUの状態（レジスタ、フラグ）を保持する。
@dataclass
class Mos6502CpuState(CpuState):
    """
    MOS 6502 CPUのレジスタ状態。
    SPは8bit値で保持し、スタックの物理アドレスは STACK_BASE | sp となる。
    """
    sp: int = 0xFF
    a: int = 0
    x: int = 0
    y: int = 0
    flags: StatusFlags = field(default_factory=StatusFlags)

    # @intent:responsibility ステータスレジスタのバイト表現。
    @property
    def p(self) -> int:
        return encode_flags(self.flags)

    @property
    def flag_c(self) -> bool: return self.flags.c
    @property
    def flag_z(self) -> bool: return self.flags.z
    @property
    def flag_i(self) -> bool: return self.flags.i
    @property
    def flag_d(self) -> bool: return self.flags.d
    @property
    def flag_b(self) -> bool: return self.flags.b
    @property
    def flag_u(self) -> bool: return self.flags.u
    @property
    def flag_v(self) -> bool: return self.flags.v
    @property
    def flag_n(self) -> bool: return self.flags.n

    # @intent:responsibility 指定フラグを変更した新しいインスタンスを返す（不変性の維持）。
    def update_flags(self, **kwargs) -> 'Mos6502CpuState':
        return self.replace(flags=replace(self.flags, **kwargs))

    # @intent:responsibility ステータスバイトから全フラグを置き換えた新しいインスタンスを返す。
    def with_p(self, value: int) -> 'Mos6502CpuState':
        return self.replace(flags=decode_flags(value))

    # @intent:responsibility dataclasses.replaceのラッパー。
    def replace(self, **changes) -> 'Mos6502CpuState':
        return replace(self, **changes)
