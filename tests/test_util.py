import pytest

from choma.util import (
    align_to_size,
    count_digits,
    enumerate_range,
    format_hash,
    memcmp_masked,
    print_hash,
    sxt64,
)


def test_sxt64_all_ones_is_minus_one():
    assert sxt64(0x3FFFFFF, 26) == -1


@pytest.mark.parametrize("bits", [9, 14, 19, 26, 33, 64])
def test_sxt64_sign_bit_gives_most_negative(bits):
    assert sxt64(1 << (bits - 1), bits) == -(1 << (bits - 1))


@pytest.mark.parametrize("bits", [9, 19, 26, 33])
def test_sxt64_positive_values_unchanged(bits):
    value = (1 << (bits - 1)) - 1
    assert sxt64(value, bits) == value


def test_sxt64_ignores_bits_above_width():
    assert sxt64((0xABC << 19) | 0x123, 19) == sxt64(0x123, 19)


@pytest.mark.parametrize("bits", [0, 65])
def test_sxt64_rejects_bad_width(bits):
    with pytest.raises(ValueError):
        sxt64(1, bits)


def test_memcmp_masked_equal_without_mask():
    assert memcmp_masked(b"\x01\x02\x03", b"\x01\x02\x03") is True
    assert memcmp_masked(b"\x01\x02\x03", b"\x01\x02\x04") is False


def test_memcmp_masked_ignores_bits_outside_mask():
    assert memcmp_masked(b"\xf0\x0f", b"\xff\x00", b"\xf0\xf0") is True


def test_memcmp_masked_detects_difference_inside_mask():
    assert memcmp_masked(b"\xf0\x0f", b"\xe0\x0f", b"\xf0\xf0") is False


def test_memcmp_masked_length_mismatch():
    with pytest.raises(ValueError):
        memcmp_masked(b"\x00", b"\x00\x00")


def test_memcmp_masked_short_mask():
    with pytest.raises(ValueError):
        memcmp_masked(b"\x00\x00", b"\x00\x00", b"\xff")


@pytest.mark.parametrize("size", [0, 1, 4095, 4096, 4097, 12345])
@pytest.mark.parametrize("alignment", [1, 4, 0x1000, 0x4000])
def test_align_to_size_invariants(size, alignment):
    aligned = align_to_size(size, alignment)
    assert aligned % alignment == 0
    assert size <= aligned < size + alignment


def test_align_to_size_already_aligned():
    assert align_to_size(0x4000, 0x4000) == 0x4000


def test_count_digits_zero():
    assert count_digits(0) == 1


def test_count_digits_negative_counts_sign():
    assert count_digits(-5) == 2


def test_count_digits_positive():
    assert count_digits(12345) == 5


@pytest.mark.parametrize("power", range(1, 19))
def test_count_digits_grows_at_powers_of_ten(power):
    assert count_digits(10**power) == count_digits(10**power - 1) + 1


def test_format_hash():
    assert format_hash(bytes.fromhex("deadbeef00")) == "deadbeef00"


def test_print_hash_writes_without_newline(capsys):
    print_hash(bytes.fromhex("0a0b"))
    assert capsys.readouterr().out == "0a0b"


def test_enumerate_range_forward_invariants():
    result = list(enumerate_range(0x1000, 0x1040, 4, 4))
    assert result[0] == 0x1000
    assert all(addr % 4 == 0 for addr in result)
    assert all(b - a == 4 for a, b in zip(result, result[1:]))
    assert max(result) + 4 < 0x1040


def test_enumerate_range_backward_invariants():
    result = list(enumerate_range(0x1040, 0x1000, 4, 4))
    assert result[0] == 0x1040 - 4
    assert all(a - b == 4 for a, b in zip(result, result[1:]))
    assert min(result) > 0x1000


def test_enumerate_range_can_stop_early():
    taken = []
    for addr in enumerate_range(0, 0x100, 4, 4):
        taken.append(addr)
        if len(taken) == 3:
            break
    assert taken == [0, 4, 8]


@pytest.mark.parametrize(
    "args",
    [
        (0x10, 0x10, 4, 4),
        (0, 0x100, 0, 4),
        (0, 0x100, 4, 0),
        (0, 0x100, 4, 6),
        (0, 4, 4, 4),
        (4, 0, 4, 4),
    ],
)
def test_enumerate_range_empty_cases(args):
    assert list(enumerate_range(*args)) == []