"""Kinds of cross references found in ARM64 code and data."""

from __future__ import annotations

import enum

__all__ = ["XrefType", "XrefTypeMask"]


class XrefType(enum.IntEnum):
    """A single kind of reference from one address to another."""

    BL = 0
    B = 1
    B_COND = 2
    BC_COND = 3
    CBZ = 4
    CBNZ = 5
    TBZ = 6
    TBNZ = 7
    ADR = 8
    ADRP_ADD = 9
    ADRP_LDR = 10
    ADRP_STR = 11
    POINTER = 12

    def mask(self) -> "XrefTypeMask":
        """The mask bit that selects this kind."""
        return XrefTypeMask(1 << self.value)


class XrefTypeMask(enum.IntFlag):
    """A set of reference kinds to look for."""

    BL = 1 << XrefType.BL
    CALL = BL

    B = 1 << XrefType.B
    B_COND = 1 << XrefType.B_COND
    BC_COND = 1 << XrefType.BC_COND
    CBZ = 1 << XrefType.CBZ
    CBNZ = 1 << XrefType.CBNZ
    TBZ = 1 << XrefType.TBZ
    TBNZ = 1 << XrefType.TBNZ
    # Built from the type value of B rather than its mask bit, as the
    # scanner's own definition is; JUMP therefore carries the BL bit.
    JUMP = int(XrefType.B) | B_COND | BC_COND | CBZ | CBNZ | TBZ | TBNZ

    ADR = 1 << XrefType.ADR
    ADRP_ADD = 1 << XrefType.ADRP_ADD
    ADRP_LDR = 1 << XrefType.ADRP_LDR
    ADRP_STR = 1 << XrefType.ADRP_STR
    REFERENCE = ADR | ADRP_ADD | ADRP_LDR | ADRP_STR

    POINTER = 1 << XrefType.POINTER

    ALL = CALL | JUMP | REFERENCE | POINTER

    def includes(self, xref_type: XrefType) -> bool:
        """Whether this mask selects ``xref_type``."""
        return bool(self & xref_type.mask())