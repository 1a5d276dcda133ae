"""ARM64 register operands, load/store addressing kinds and condition codes."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar, Optional

__all__ = [
    "RegisterType",
    "RegisterMask",
    "LdrStrType",
    "Register",
    "Condition",
    "REG_NUM_SP",
]

REG_NUM_SP = 31


class RegisterType(enum.IntEnum):
    """Width class of a general purpose or vector register."""

    X = 0
    W = 1
    Q = 2
    D = 3
    S = 4
    H = 5
    B = 6

    def width(self) -> int:
        """Size of the register in bytes."""
        return _WIDTHS[self]

    def letter(self) -> str:
        """The assembler prefix of the register, such as ``x`` or ``q``."""
        return self.name.lower()

    def is_vector(self) -> bool:
        """Whether this is a SIMD/floating point register class."""
        return self not in (RegisterType.X, RegisterType.W)


_WIDTHS = {
    RegisterType.X: 8,
    RegisterType.W: 4,
    RegisterType.Q: 16,
    RegisterType.D: 8,
    RegisterType.S: 4,
    RegisterType.H: 2,
    RegisterType.B: 1,
}


class RegisterMask(enum.IntFlag):
    """Which register classes an operand stands for."""

    ANY_FLAG = 1 << 0
    X_W = 1 << 1
    VECTOR = 1 << 2
    ALL = X_W | VECTOR

    ANY_X_W = X_W | ANY_FLAG
    ANY_VECTOR = VECTOR | ANY_FLAG
    ANY_ALL = ALL | ANY_FLAG


class LdrStrType(enum.IntEnum):
    """Addressing form of an immediate load or store.

    ``ANY`` also matches the unscaled LDUR and STUR forms.
    """

    ANY = 0
    POST_INDEX = 1
    PRE_INDEX = 2
    UNSIGNED = 3


@dataclass(frozen=True)
class Register:
    """A register operand, or a wildcard standing for any register of a class."""

    ANY: ClassVar["Register"]
    ANY_X_W: ClassVar["Register"]
    ANY_VECTOR: ClassVar["Register"]

    mask: RegisterMask = RegisterMask.ALL
    type: RegisterType = RegisterType.X
    num: int = 0

    @classmethod
    def x(cls, num: int) -> "Register":
        """64-bit general purpose register."""
        return cls(RegisterMask.ALL, RegisterType.X, num)

    @classmethod
    def w(cls, num: int) -> "Register":
        """32-bit general purpose register."""
        return cls(RegisterMask.ALL, RegisterType.W, num)

    @classmethod
    def q(cls, num: int) -> "Register":
        """128-bit vector register."""
        return cls(RegisterMask.ALL, RegisterType.Q, num)

    @classmethod
    def d(cls, num: int) -> "Register":
        """64-bit vector register."""
        return cls(RegisterMask.ALL, RegisterType.D, num)

    @classmethod
    def s(cls, num: int) -> "Register":
        """32-bit vector register."""
        return cls(RegisterMask.ALL, RegisterType.S, num)

    @classmethod
    def h(cls, num: int) -> "Register":
        """16-bit vector register."""
        return cls(RegisterMask.ALL, RegisterType.H, num)

    @classmethod
    def b(cls, num: int) -> "Register":
        """8-bit vector register."""
        return cls(RegisterMask.ALL, RegisterType.B, num)

    def is_any(self) -> bool:
        """Whether this is the wildcard for every register."""
        return self.mask == RegisterMask.ANY_ALL

    def is_any_x_w(self) -> bool:
        """Whether this is the wildcard for any general purpose register."""
        return self.mask == RegisterMask.ANY_X_W

    def is_any_vector(self) -> bool:
        """Whether this is the wildcard for any vector register."""
        return self.mask == RegisterMask.ANY_VECTOR

    def is_x(self) -> bool:
        return self.type == RegisterType.X

    def is_w(self) -> bool:
        return self.type == RegisterType.W

    def is_vector(self) -> bool:
        return RegisterType(self.type).is_vector()

    def number(self) -> int:
        """Register number as encoded in five instruction bits."""
        return self.num & 0x1F

    def type_string(self) -> str:
        """Assembler prefix of the register class."""
        return RegisterType(self.type).letter()

    def __str__(self) -> str:
        if self.mask & RegisterMask.ANY_FLAG:
            return "any"
        return f"{self.type_string()}{self.number()}"


Register.ANY = Register(RegisterMask.ANY_ALL, RegisterType.X, 0)
Register.ANY_X_W = Register(RegisterMask.ANY_X_W, RegisterType.X, 0)
Register.ANY_VECTOR = Register(RegisterMask.ANY_VECTOR, RegisterType.X, 0)


@dataclass(frozen=True)
class Condition:
    """A condition code, or no condition at all (matching any)."""

    ANY: ClassVar["Condition"]

    code: Optional[int] = None

    @property
    def is_set(self) -> bool:
        return self.code is not None

    def value(self) -> int:
        """The four-bit condition field."""
        if self.code is None:
            raise ValueError("condition is not set")
        return self.code & 0xF


Condition.ANY = Condition()