"""Encoding of ARM64 load/store, literal load and compare/test branch
instructions into match patterns, and decoding of such instructions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from choma.arm64 import EncodingError, Pattern
from choma.registers import LdrStrType, Register, RegisterType
from choma.util import sxt64

__all__ = [
    "LoadStore",
    "LiteralLoad",
    "CompareBranch",
    "TestBranch",
    "gen_ldr_imm",
    "dec_ldr_imm",
    "gen_ldrs_imm",
    "dec_ldrs_imm",
    "gen_str_imm",
    "dec_str_imm",
    "gen_ldr_lit",
    "dec_ldr_lit",
    "gen_cb_n_z",
    "dec_cb_n_z",
    "gen_tb_n_z",
    "dec_tb_n_z",
]

_U64 = (1 << 64) - 1


@dataclass(frozen=True)
class LoadStore:
    """A decoded immediate-offset load or store."""

    register: Register
    address: Register
    imm: int
    kind: Optional[str]
    inst_type: LdrStrType


@dataclass(frozen=True)
class LiteralLoad:
    target: int
    register: Register


@dataclass(frozen=True)
class CompareBranch:
    is_cbnz: bool
    register: Register
    target: int


@dataclass(frozen=True)
class TestBranch:
    is_tbnz: bool
    register: Register
    target: int
    bit: int


_VECTOR_SIZES = {
    RegisterType.Q: 0b00,
    RegisterType.D: 0b11,
    RegisterType.S: 0b10,
    RegisterType.H: 0b01,
    RegisterType.B: 0b00,
}


def _gen_ldr_str(inst: int, mask: int, kind: Optional[str], inst_type: LdrStrType,
                 data: Register, address: Register, imm: Optional[int]) -> Pattern:
    if address.is_any_vector():
        raise EncodingError("address register cannot be a vector register")

    if not data.is_any():
        if data.is_any_vector():
            mask |= 1 << 26
            inst |= 1 << 26
        else:
            inst |= data.number()
            mask |= 0x1F

            vector = data.is_vector()
            if vector and kind:
                raise EncodingError("vector registers take no load/store kind")
            mask |= (1 << 23) | (1 << 26) | (0b11 << 30)
            inst |= int(vector) << 26

            reg_type = RegisterType(data.type)
            size = 0b00
            if vector:
                size = _VECTOR_SIZES[reg_type]
                if reg_type == RegisterType.Q:
                    inst |= 1 << 23
            elif reg_type == RegisterType.X:
                size = 0b11
            elif reg_type == RegisterType.W:
                size = 0b10
            elif kind == "h":
                size = 0b01
            elif kind == "b":
                size = 0b00
            inst |= size << 30

    if inst_type != LdrStrType.ANY:
        mask |= 1 << 24
        if inst_type in (LdrStrType.PRE_INDEX, LdrStrType.POST_INDEX):
            # Bit 10 excludes LDUR/STUR, bit 11 selects pre- or post-index.
            mask |= (1 << 10) | (1 << 11)
            inst |= (1 << 10) | (int(inst_type == LdrStrType.PRE_INDEX) << 11)
        elif inst_type == LdrStrType.UNSIGNED:
            inst |= 1 << 24

    if not address.is_any():
        if not address.is_x():
            raise EncodingError("address register must be a 64-bit register")
        inst |= address.number() << 5
        mask |= 0x1F << 5

    if imm is not None:
        scaled = (imm & _U64) // RegisterType(data.type).width()
        if scaled & ~0xFFF:
            raise EncodingError("load/store immediate does not fit in 12 bits")
        inst |= scaled << 10
        mask |= 0xFFF << 10

    return Pattern(inst, mask)


def _dec_ldr_str(inst: int) -> Optional[LoadStore]:
    vector = bool(inst & (1 << 26))
    unsigned = bool(inst & (1 << 24))
    if not unsigned and not inst & (1 << 10):
        return None  # unscaled LDUR/STUR

    size = (inst >> 30) & 0b11
    kind: Optional[str] = None
    if vector:
        if size == 0b00:
            reg_type = RegisterType.Q if inst & (1 << 23) else RegisterType.B
        else:
            reg_type = {0b01: RegisterType.H, 0b10: RegisterType.S,
                        0b11: RegisterType.D}[size]
    else:
        reg_type = RegisterType.X if size == 0b11 else RegisterType.W
        kind = {0b00: "b", 0b01: "h"}.get(size)

    if unsigned:
        imm = ((inst >> 10) & 0xFFF) * reg_type.width()
        inst_type = LdrStrType.UNSIGNED
    else:
        imm = sxt64((inst >> 12) & 0x1FF, 9)
        inst_type = LdrStrType.PRE_INDEX if inst & (1 << 11) else LdrStrType.POST_INDEX

    return LoadStore(
        register=Register(type=reg_type, num=inst & 0x1F),
        address=Register.x((inst >> 5) & 0x1F),
        imm=imm,
        kind=kind,
        inst_type=inst_type,
    )


def gen_ldr_imm(kind: Optional[str] = None, inst_type: LdrStrType = LdrStrType.ANY,
                destination: Register = Register.ANY, address: Register = Register.ANY,
                imm: Optional[int] = None) -> Pattern:
    """Pattern for ``ldr`` with an immediate offset."""
    return _gen_ldr_str(0x38400000, 0x3A400000, kind, inst_type, destination, address, imm)


def dec_ldr_imm(inst: int) -> Optional[LoadStore]:
    """Decode ``ldr`` with an immediate offset; None otherwise."""
    if (inst & 0x3A400000) != 0x38400000:
        return None
    return _dec_ldr_str(inst)


def gen_ldrs_imm(kind: Optional[str] = None, inst_type: LdrStrType = LdrStrType.ANY,
                 destination: Register = Register.ANY, address: Register = Register.ANY,
                 imm: Optional[int] = None) -> Pattern:
    """Pattern for sign-extending ``ldrs*`` with an immediate offset."""
    return _gen_ldr_str(0x38800000, 0x3AC00000, kind, inst_type, destination, address, imm)


def dec_ldrs_imm(inst: int) -> Optional[LoadStore]:
    """Decode sign-extending ``ldrs*`` with an immediate offset; None otherwise."""
    if (inst & 0x3AC00000) != 0x38800000:
        return None
    return _dec_ldr_str(inst)


def gen_str_imm(kind: Optional[str] = None, inst_type: LdrStrType = LdrStrType.ANY,
                source: Register = Register.ANY, address: Register = Register.ANY,
                imm: Optional[int] = None) -> Pattern:
    """Pattern for ``str`` with an immediate offset."""
    return _gen_ldr_str(0x38000000, 0x3A400000, kind, inst_type, source, address, imm)


def dec_str_imm(inst: int) -> Optional[LoadStore]:
    """Decode ``str`` with an immediate offset; None otherwise."""
    if (inst & 0x3A400000) != 0x38000000:
        return None
    return _dec_ldr_str(inst)


def gen_ldr_lit(destination: Register = Register.ANY, origin: Optional[int] = None,
                target: Optional[int] = None) -> Pattern:
    """Pattern for a PC-relative literal ``ldr``."""
    if destination.is_any_vector():
        raise EncodingError("literal ldr cannot target a vector register")

    inst = 0x18000000
    mask = 0xBF000000

    if not destination.is_any():
        mask |= 1 << 30
        inst |= int(destination.is_x()) << 30
        mask |= 0x1F
        inst |= destination.number()

    if origin is not None and target is not None:
        mask |= 0x7FFFF << 5
        inst |= ((((target - origin) & _U64) // 4) & 0x7FFFF) << 5

    return Pattern(inst, mask)


def dec_ldr_lit(inst: int, origin: int) -> Optional[LiteralLoad]:
    """Decode a PC-relative literal ``ldr``; None otherwise."""
    if (inst & 0xBF000000) != 0x18000000:
        return None
    reg_type = RegisterType.X if inst & (1 << 30) else RegisterType.W
    offset = sxt64((inst >> 5) & 0x7FFFF, 19)
    return LiteralLoad(
        target=(origin + offset * 4) & _U64,
        register=Register(type=reg_type, num=inst & 0x1F),
    )


def gen_cb_n_z(is_cbnz: Optional[bool] = None, reg: Register = Register.ANY,
               target: Optional[int] = None) -> Pattern:
    """Pattern for ``cbz``/``cbnz``; ``target`` is the offset from the instruction."""
    if reg.is_any_vector():
        raise EncodingError("cbz/cbnz cannot use a vector register")

    inst = 0x34000000
    mask = 0x7E000000

    if is_cbnz is not None:
        mask |= 1 << 24
        if is_cbnz:
            inst |= 1 << 24

    if not reg.is_any():
        mask |= 0x1F | (1 << 31)
        inst |= int(reg.is_x()) << 31
        inst |= reg.number()

    if target is not None:
        words = (target & _U64) // 4
        if words & ~0x7FFFF:
            raise EncodingError("cbz/cbnz target is out of range")
        mask |= 0x7FFFF << 5
        inst |= words << 5

    return Pattern(inst, mask)


def dec_cb_n_z(inst: int, origin: int) -> Optional[CompareBranch]:
    """Decode ``cbz``/``cbnz``; None otherwise."""
    if (inst & 0x7E000000) != 0x34000000:
        return None
    reg_type = RegisterType.X if (inst >> 31) & 1 else RegisterType.W
    # The field is scaled before sign extension, at 19 bits.
    offset = sxt64(((inst >> 5) & 0x7FFFF) * 4, 19)
    return CompareBranch(
        is_cbnz=bool((inst >> 24) & 1),
        register=Register(type=reg_type, num=inst & 0x1F),
        target=(origin + offset) & _U64,
    )


def gen_tb_n_z(is_tbnz: Optional[bool] = None, reg: Register = Register.ANY,
               target: Optional[int] = None, bit: Optional[int] = None) -> Pattern:
    """Pattern for ``tbz``/``tbnz``; ``target`` is the offset from the instruction."""
    if reg.is_any_vector():
        raise EncodingError("tbz/tbnz cannot use a vector register")

    inst = 0x36000000
    mask = 0x7E000000

    if is_tbnz is not None:
        mask |= 1 << 25
        inst |= int(bool(is_tbnz)) << 25

    if not reg.is_any():
        mask |= 0x1F | (1 << 31)
        inst |= int(reg.is_x()) << 31
        inst |= reg.number()

    if target is not None:
        words = (target & _U64) // 4
        if words & ~0x3FFF:
            raise EncodingError("tbz/tbnz target is out of range")
        mask |= 0x3FFF << 5
        inst |= words << 5

    if bit is not None:
        if bit & ~0x1F:
            raise EncodingError("tbz/tbnz bit number is out of range")
        bit_is_64 = bool(bit & (1 << 5))
        if not reg.is_any() and reg.is_x() != bit_is_64:
            raise EncodingError("tbz/tbnz bit number does not match the register width")
        mask |= (1 << 31) | (0xF << 19)
        inst |= (int(bit_is_64) << 31) | ((bit & 0xF) << 5)

    return Pattern(inst, mask)


def dec_tb_n_z(inst: int, origin: int) -> Optional[TestBranch]:
    """Decode ``tbz``/``tbnz``; None otherwise."""
    if (inst & 0x7E000000) != 0x36000000:
        return None
    is64 = bool(inst & (1 << 31))
    reg_type = RegisterType.X if is64 else RegisterType.W
    offset = sxt64(((inst >> 5) & 0x3FFF) * 4, 14)
    return TestBranch(
        is_tbnz=bool(inst >> 25),
        register=Register(type=reg_type, num=inst & 0x1F),
        target=(origin + offset) & _U64,
        bit=(int(is64) << 5) | ((inst >> 19) & 0xF),
    )