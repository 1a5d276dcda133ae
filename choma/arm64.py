"""Encoding of ARM64 branch, address and arithmetic instructions into match
patterns, and decoding of such instructions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from choma.registers import Condition, Register, RegisterType
from choma.util import sxt64

__all__ = [
    "EncodingError",
    "Pattern",
    "Branch",
    "ConditionalBranch",
    "AddressLoad",
    "MoveImmediate",
    "AddImmediate",
    "gen_b_l",
    "dec_b_l",
    "gen_b_c_cond",
    "dec_b_c_cond",
    "gen_adr_p",
    "dec_adr_p",
    "gen_mov_imm",
    "dec_mov_imm",
    "gen_add_imm",
    "dec_add_imm",
]

ADRP_PAGE_SIZE = 0x1000
ADRP_PAGE_MASK = 0x0FFF

_U32 = 0xFFFFFFFF
_U64 = (1 << 64) - 1


class EncodingError(ValueError):
    """The requested operands cannot be encoded."""


@dataclass(frozen=True)
class Pattern:
    """An instruction word together with the bits of it that must match."""

    value: int
    mask: int

    def matches(self, inst: int) -> bool:
        """Whether ``inst`` agrees with the pattern on every masked bit."""
        return (inst & self.mask) == self.value


@dataclass(frozen=True)
class Branch:
    target: int
    is_bl: bool


@dataclass(frozen=True)
class ConditionalBranch:
    target: int
    cond: Condition
    is_bc: bool


@dataclass(frozen=True)
class AddressLoad:
    target: int
    register: Register
    is_adrp: bool


@dataclass(frozen=True)
class MoveImmediate:
    destination: Register
    imm: int
    shift: int
    kind: str


@dataclass(frozen=True)
class AddImmediate:
    destination: Register
    source: Register
    imm: int


def _s64(value: int) -> int:
    return sxt64(value, 64)


def _tdiv(a: int, b: int) -> int:
    """Integer division truncating towards zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def gen_b_l(is_bl: Optional[bool] = None, origin: Optional[int] = None,
            target: Optional[int] = None) -> Pattern:
    """Pattern for ``b``/``bl``; unset arguments are left unmatched."""
    link = bool(is_bl)
    if origin is not None and target is not None:
        mask = 0xFFFFFFFF
    else:
        origin = target = 0
        mask = 0x7C000000 if is_bl is None else 0xFC000000
    offset = _tdiv(_s64(target) - _s64(origin), 4)
    value = (0x94000000 if link else 0x14000000) | (offset & 0x3FFFFFF)
    return Pattern(value, mask)


def dec_b_l(inst: int, origin: int) -> Optional[Branch]:
    """Decode ``b``/``bl``; None if ``inst`` is neither."""
    top = inst & 0xFC000000
    if top == 0x14000000:
        link = False
    elif top == 0x94000000:
        link = True
    else:
        return None
    offset = sxt64(inst & 0x3FFFFFF, 26)
    return Branch((origin + offset * 4) & _U64, link)


def gen_b_c_cond(is_bc: Optional[bool] = None, origin: Optional[int] = None,
                 target: Optional[int] = None,
                 cond: Union[Condition, int, None] = None) -> Pattern:
    """Pattern for ``b.cond``/``bc.cond``."""
    inst = 0x54000000
    mask = 0xFF000000

    if is_bc is not None:
        mask |= 1 << 4
        inst |= int(bool(is_bc)) << 4

    if origin is not None and target is not None:
        offset = _s64(target) - _s64(origin)
        if offset < -0x100000 or offset > 0x100000:
            raise EncodingError("conditional branch target is out of range")
        inst = (inst | (_tdiv(offset, 4) << 5)) & _U32
        mask |= 0x7FFFF << 5

    if isinstance(cond, int):
        cond = Condition(cond)
    if cond is not None and cond.is_set:
        mask |= 0xF
        inst |= cond.value()

    return Pattern(inst, mask)


def dec_b_c_cond(inst: int, origin: int) -> Optional[ConditionalBranch]:
    """Decode ``b.cond``/``bc.cond``; None if ``inst`` is neither."""
    if (inst & 0xFF000000) != 0x54000000:
        return None
    offset = sxt64((inst >> 5) & 0x7FFFF, 19)
    return ConditionalBranch(
        (origin + offset * 4) & _U64,
        Condition(inst & 0xF),
        bool(inst & (1 << 4)),
    )


def gen_adr_p(is_adrp: Optional[bool] = None, origin: Optional[int] = None,
              target: Optional[int] = None, reg: Register = Register.ANY) -> Pattern:
    """Pattern for ``adr``/``adrp``."""
    if reg.is_any_vector():
        raise EncodingError("adr/adrp cannot target a vector register")

    page = False
    inst = 1 << 28
    mask = 0x1F000000

    if is_adrp is not None:
        mask |= 1 << 31
        page = bool(is_adrp)
        if page:
            inst |= 1 << 31

    if origin is not None and target is not None:
        mask |= 0x60FFFFE0
        if page:
            origin &= ~ADRP_PAGE_MASK
            target &= ~ADRP_PAGE_MASK
        offset = _s64(target) - _s64(origin)
        if page:
            offset >>= 12
        if offset & ~0x7FFFF:
            raise EncodingError("adr/adrp offset is too big")
        inst |= (offset & 0x3) << 29
        inst |= (offset & 0x7FFFC) << 3

    if not reg.is_any():
        if reg.is_w():
            raise EncodingError("adr/adrp needs a 64-bit register")
        inst |= reg.number()
        mask |= 0x1F

    return Pattern(inst, mask)


def dec_adr_p(inst: int, origin: int) -> Optional[AddressLoad]:
    """Decode ``adr``/``adrp``; None if ``inst`` is neither."""
    top = inst & 0x9F000000
    if top == 0x90000000:
        page = True
    elif top == 0x10000000:
        page = False
    else:
        return None

    offset = ((inst >> 29) & 0x3) | ((inst >> 3) & 0x1FFFFC)
    if page:
        offset <<= 12
        origin &= ~ADRP_PAGE_MASK
    target = (origin + sxt64(offset, 33)) & _U64
    return AddressLoad(target, Register.x(inst & 0x1F), page)


_MOV_KINDS = {"k": (1 << 30) | (1 << 29), "n": 0, "z": 1 << 30}


def gen_mov_imm(kind: str, destination: Register = Register.ANY,
                imm: Optional[int] = None, shift: Optional[int] = None) -> Pattern:
    """Pattern for ``movk``/``movn``/``movz`` selected by ``kind``."""
    if destination.is_any_vector():
        raise EncodingError("mov cannot target a vector register")

    inst = 0x12800000
    mask = 0x7F800000  # the kind is always part of the match
    if kind not in _MOV_KINDS:
        raise EncodingError(f"unknown mov kind {kind!r}")
    inst |= _MOV_KINDS[kind]

    if not destination.is_any():
        mask |= 1 << 31
        if destination.is_w():
            if shift is not None and shift not in (0, 16):
                raise EncodingError("invalid shift for a 32-bit register")
        else:
            inst |= 1 << 31
            if shift is not None and shift not in (0, 16, 32, 48):
                raise EncodingError("invalid shift for a 64-bit register")
        mask |= 0x1F
        inst |= destination.number()

    if imm is not None:
        if not 0 <= imm <= 0xFFFF:
            raise EncodingError("mov immediate does not fit in 16 bits")
        mask |= 0x1FFFE0
        inst |= imm << 5

    if shift is not None:
        inst |= ((shift // 16) & 0b11) << 21
        mask |= 0b11 << 21

    return Pattern(inst, mask)


_MOV_OPC = {0b11: "k", 0b00: "n", 0b10: "z"}


def dec_mov_imm(inst: int) -> Optional[MoveImmediate]:
    """Decode ``movk``/``movn``/``movz``; None otherwise."""
    if (inst & 0x1F800000) != 0x12800000:
        return None
    kind = _MOV_OPC.get((inst >> 29) & 0b11)
    if kind is None:
        return None
    reg_type = RegisterType.X if inst & (1 << 31) else RegisterType.W
    return MoveImmediate(
        destination=Register(type=reg_type, num=inst & 0x1F),
        imm=(inst >> 5) & 0xFFFF,
        shift=((inst >> 21) & 0b11) * 16,
        kind=kind,
    )


def gen_add_imm(destination: Register = Register.ANY, source: Register = Register.ANY,
                imm: Optional[int] = None) -> Pattern:
    """Pattern for ``add`` with an immediate operand."""
    if destination.is_any_vector() or source.is_any_vector():
        raise EncodingError("add cannot use vector registers")

    if not destination.is_any() and not source.is_any():
        if destination.is_w() != source.is_w():
            raise EncodingError("add registers have mismatching widths")

    inst = 0x11000000
    mask = 0x7F800000

    if not destination.is_any():
        mask |= 1 << 31
        inst |= int(destination.is_x()) << 31
    elif not source.is_any():
        mask |= 1 << 31
        inst |= int(source.is_x()) << 31

    if not destination.is_any():
        mask |= 0x1F
        inst |= destination.number()
    if not source.is_any():
        mask |= 0x1F << 5
        # The source field is filled from the destination number.
        inst |= destination.number() << 5

    if imm is not None:
        if imm & ~0xFFF:
            raise EncodingError("add immediate does not fit in 12 bits")
        mask |= 0xFFF << 10
        inst |= imm << 10

    return Pattern(inst, mask)


def dec_add_imm(inst: int) -> Optional[AddImmediate]:
    """Decode ``add`` with an immediate operand; None otherwise."""
    if (inst & 0x7F800000) != 0x11000000:
        return None
    reg_type = RegisterType.X if inst & 0x80000000 else RegisterType.W
    imm = (inst >> 10) & 0xFFF
    if inst & 0x400000:
        imm = (imm << 12) & 0xFFFF
    return AddImmediate(
        destination=Register(type=reg_type, num=inst & 0x1F),
        source=Register(type=reg_type, num=(inst >> 5) & 0x1F),
        imm=imm,
    )