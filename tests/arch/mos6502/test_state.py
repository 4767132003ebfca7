# tests/arch/mos6502/test_state.py
import itertools

import pytest
from nes_core.arch.mos6502.state import (
    Mos6502CpuState, StatusFlags, encode_flags, decode_flags, U_FLAG, B_FLAG,
)

# @intent:test_suite ステータスフラグの符号化/復号と状態の不変更新を検証します。

# @intent:test_case_roundtrip Uがセットされた全組み合わせで decode(encode(f)) == f。
def test_flags_roundtrip_all_combinations():
    for bits in itertools.product([False, True], repeat=7):
        c, z, i, d, b, v, n = bits
        flags = StatusFlags(c=c, z=z, i=i, d=d, b=b, u=True, v=v, n=n)
        assert decode_flags(encode_flags(flags)) == flags

def test_encode_forces_unused_bit():
    assert encode_flags(StatusFlags(i=False, u=False)) == U_FLAG
    for value in range(256):
        assert encode_flags(decode_flags(value)) == value | U_FLAG

def test_bit_layout():
    assert encode_flags(StatusFlags(c=True, i=False)) == 0x21
    assert encode_flags(StatusFlags(n=True, v=True, i=False)) == 0xE0
    assert decode_flags(B_FLAG).b

def test_initial_state():
    state = Mos6502CpuState()
    assert state.sp == 0xFF
    assert state.p == 0x24
    assert state.flag_i and state.flag_u

def test_update_flags_returns_new_instance():
    state = Mos6502CpuState()
    updated = state.update_flags(c=True)
    assert updated.flag_c
    assert not state.flag_c

def test_with_p():
    state = Mos6502CpuState().with_p(0x83)
    assert state.flag_n and state.flag_z and state.flag_c
    assert not state.flag_i
    assert state.p == 0xA3

def test_status_flags_are_immutable():
    with pytest.raises(AttributeError):
        StatusFlags().c = True
