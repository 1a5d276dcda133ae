import pytest

from choma.arm64 import EncodingError
from choma.arm64_memory import (
    dec_cb_n_z,
    dec_ldr_imm,
    dec_ldr_lit,
    dec_ldrs_imm,
    dec_str_imm,
    dec_tb_n_z,
    gen_cb_n_z,
    gen_ldr_imm,
    gen_ldr_lit,
    gen_ldrs_imm,
    gen_str_imm,
    gen_tb_n_z,
)
from choma.registers import LdrStrType, Register, RegisterType


def test_wildcard_ldr_pattern_from_kpf():
    pattern = gen_ldr_imm(None, LdrStrType.ANY, Register.ANY, Register.ANY, None)
    assert (pattern.value, pattern.mask) == (0x38400000, 0x3A400000)
    assert pattern.matches(0xF9400210)
    assert not pattern.matches(0xF9000020)


def test_wildcard_str_pattern_from_kpf():
    pattern = gen_str_imm(None, LdrStrType.ANY, Register.ANY, Register.ANY, None)
    assert (pattern.value, pattern.mask) == (0x38000000, 0x3A400000)
    assert pattern.matches(0xF90007E0)


def test_stub_ldr_pattern():
    pattern = gen_ldr_imm(None, LdrStrType.UNSIGNED, Register.x(16), Register.x(16))
    assert pattern.value == 0xF9400210
    assert pattern.mask == 0xFFC003FF
    assert pattern.matches(0xF9408E10)
    assert not pattern.matches(0xF9408E11)


def test_gen_ldr_full_immediate():
    pattern = gen_ldr_imm(None, LdrStrType.UNSIGNED, Register.q(0), Register.x(1), 16)
    assert pattern.value == 0x3DC00420


def test_gen_str_sp_offset():
    pattern = gen_str_imm(None, LdrStrType.UNSIGNED, Register.x(0), Register.x(31), 8)
    assert pattern.value == 0xF90007E0


def test_pre_index_pattern_excludes_post_index():
    pattern = gen_ldr_imm(None, LdrStrType.PRE_INDEX, Register.x(0), Register.x(1))
    assert pattern.matches(0xF8410C20)
    assert not pattern.matches(0xF85F8420)


def test_gen_ldr_errors():
    with pytest.raises(EncodingError):
        gen_ldr_imm("b", LdrStrType.UNSIGNED, Register.q(0), Register.x(1))
    with pytest.raises(EncodingError):
        gen_ldr_imm(None, LdrStrType.UNSIGNED, Register.x(0), Register.w(1))
    with pytest.raises(EncodingError):
        gen_ldr_imm(None, LdrStrType.UNSIGNED, Register.x(0), Register.ANY_VECTOR)
    with pytest.raises(EncodingError):
        gen_ldr_imm(None, LdrStrType.UNSIGNED, Register.x(0), Register.x(1), 0x8000)


def test_dec_ldr_unsigned_x():
    result = dec_ldr_imm(0xF9408E10)
    assert result.register == Register.x(16)
    assert result.address == Register.x(16)
    assert result.imm == 0x118
    assert result.kind is None
    assert result.inst_type == LdrStrType.UNSIGNED


def test_dec_ldr_unsigned_w():
    result = dec_ldr_imm(0xB9400420)
    assert result.register == Register.w(0)
    assert result.address == Register.x(1)
    assert result.imm == 4


def test_dec_ldr_byte_kind():
    result = dec_ldr_imm(0x39400020)
    assert result.kind == "b"
    assert result.register == Register.w(0)
    assert dec_ldr_imm(0x79400420).kind == "h"


def test_dec_ldr_pre_and_post_index():
    pre = dec_ldr_imm(0xF8410C20)
    assert pre.inst_type == LdrStrType.PRE_INDEX
    assert pre.imm == 16
    post = dec_ldr_imm(0xF85F8420)
    assert post.inst_type == LdrStrType.POST_INDEX
    assert post.imm == -8


def test_dec_ldur_is_rejected():
    assert dec_ldr_imm(0xF85F8020) is None


def test_dec_ldr_vector():
    q = dec_ldr_imm(0x3DC00420)
    assert q.register.type == RegisterType.Q
    assert q.imm == 16
    d = dec_ldr_imm(0xFD400420)
    assert d.register == Register.d(0)
    assert d.imm == 8


def test_ldrs_and_ldr_are_distinct():
    result = dec_ldrs_imm(0xB9800420)
    assert result.register == Register.w(0)
    assert result.imm == 4
    assert dec_ldr_imm(0xB9800420) is None
    assert gen_ldrs_imm().matches(0xB9800420)


def test_dec_str():
    result = dec_str_imm(0xB9000020)
    assert result.register == Register.w(0)
    assert result.imm == 0
    assert dec_ldr_imm(0xB9000020) is None
    assert dec_str_imm(0xF9400210) is None


def test_ldr_literal_forward():
    pattern = gen_ldr_lit(Register.x(0), 0x1000, 0x1008)
    assert pattern.value == 0x58000040
    assert pattern.mask == 0xFFFFFFFF
    result = dec_ldr_lit(0x58000040, 0x1000)
    assert result.target == 0x1008
    assert result.register == Register.x(0)


def test_ldr_literal_backward_round_trip():
    pattern = gen_ldr_lit(Register.x(0), 0x1000, 0xFF8)
    assert pattern.value == 0x58FFFFC0
    assert dec_ldr_lit(pattern.value, 0x1000).target == 0xFF8


def test_ldr_literal_w_and_non_match():
    assert dec_ldr_lit(0x18000021, 0x2000).register == Register.w(1)
    assert dec_ldr_lit(0xD503201F, 0) is None
    with pytest.raises(EncodingError):
        gen_ldr_lit(Register.ANY_VECTOR)


def test_cbz_decode():
    result = dec_cb_n_z(0xB4000040, 0x1000)
    assert result.is_cbnz is False
    assert result.register == Register.x(0)
    assert result.target == 0x1008


def test_cbnz_backward_decode():
    result = dec_cb_n_z(0x35FFFFE3, 0x1000)
    assert result.is_cbnz is True
    assert result.register == Register.w(3)
    assert result.target == 0xFFC


def test_gen_cbnz():
    pattern = gen_cb_n_z(True, Register.x(0), 8)
    assert pattern.value == 0xB5000040
    assert pattern.mask == 0xFFFFFFFF
    assert dec_cb_n_z(0x12345678, 0) is None


def test_gen_cb_errors():
    with pytest.raises(EncodingError):
        gen_cb_n_z(False, Register.x(0), 0x200000)
    with pytest.raises(EncodingError):
        gen_cb_n_z(None, Register.ANY_VECTOR)


def test_tbnz_decode():
    result = dec_tb_n_z(0x37180040, 0x1000)
    assert result.is_tbnz is True
    assert result.register == Register.w(0)
    assert result.target == 0x1008
    assert result.bit == 3


def test_tb_register_pattern():
    pattern = gen_tb_n_z(None, Register.w(0))
    assert (pattern.value, pattern.mask) == (0x36000000, 0xFE00001F)
    assert pattern.matches(0x36180040)
    assert not pattern.matches(0x36180041)
    assert dec_tb_n_z(0xB4000040, 0) is None


def test_gen_tb_errors():
    with pytest.raises(EncodingError):
        gen_tb_n_z(None, Register.w(0), bit=32)
    with pytest.raises(EncodingError):
        gen_tb_n_z(None, Register.x(0), bit=3)
    with pytest.raises(EncodingError):
        gen_tb_n_z(None, Register.w(0), target=0x10000)
    with pytest.raises(EncodingError):
        gen_tb_n_z(None, Register.ANY_VECTOR)