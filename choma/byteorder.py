"""Byte-order conversion of integer fields in Mach-O and code-signing structures."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable, MutableMapping
from typing import Any

__all__ = [
    "big_to_host",
    "host_to_big",
    "little_to_host",
    "host_to_little",
    "apply_byte_order",
    "FAT_HEADER_FIELDS",
    "FAT_ARCH_FIELDS",
    "FAT_ARCH_64_FIELDS",
    "MACH_HEADER_FIELDS",
    "LOAD_COMMAND_FIELDS",
    "LINKEDIT_DATA_COMMAND_FIELDS",
    "ENCRYPTION_INFO_COMMAND_FIELDS",
    "BLOB_INDEX_FIELDS",
    "SUPERBLOB_FIELDS",
    "GENERIC_BLOB_FIELDS",
    "CODE_DIRECTORY_FIELDS",
    "SEGMENT_COMMAND_64_FIELDS",
    "SECTION_64_FIELDS",
    "FILESET_ENTRY_COMMAND_FIELDS",
    "SYMTAB_COMMAND_FIELDS",
    "NLIST_64_FIELDS",
    "DYLIB_FIELDS",
    "DYLIB_COMMAND_FIELDS",
    "RPATH_COMMAND_FIELDS",
]

Converter = Callable[[int, int], int]
FieldLayout = Iterable[tuple[str, int]]

_WIDTHS = (1, 2, 4, 8)


def _host_bytes(value: int, width: int) -> bytes:
    if width not in _WIDTHS:
        raise ValueError(f"unsupported integer width {width}")
    if value < 0:
        value &= (1 << (8 * width)) - 1
    if value >= 1 << (8 * width):
        raise ValueError(f"value {value:#x} does not fit in {width} bytes")
    return value.to_bytes(width, sys.byteorder)


def _convert(value: int, width: int, order: str) -> int:
    raw = _host_bytes(value, width)
    if width == 1:
        return value
    return int.from_bytes(raw, order)


def big_to_host(value: int, width: int) -> int:
    """Interpret a ``width``-byte value stored big-endian as a host integer."""
    return _convert(value, width, "big")


def host_to_big(value: int, width: int) -> int:
    """Produce the value whose in-memory bytes are ``value`` in big-endian order."""
    return _convert(value, width, "big")


def little_to_host(value: int, width: int) -> int:
    """Interpret a ``width``-byte value stored little-endian as a host integer."""
    return _convert(value, width, "little")


def host_to_little(value: int, width: int) -> int:
    """Produce the value whose in-memory bytes are ``value`` in little-endian order."""
    return _convert(value, width, "little")


def _get(obj: Any, name: str) -> Any:
    if isinstance(obj, MutableMapping):
        return obj[name]
    return getattr(obj, name)


def _set(obj: Any, name: str, value: Any) -> None:
    if isinstance(obj, MutableMapping):
        obj[name] = value
    else:
        setattr(obj, name, value)


def apply_byte_order(instance: Any, fields: FieldLayout, converter: Converter) -> Any:
    """Convert every named field of ``instance`` in place and return it.

    ``fields`` holds ``(name, width)`` pairs; a dotted name reaches into a
    nested member. ``instance`` may be a mapping or an object with attributes.
    """
    for path, width in fields:
        *parents, leaf = path.split(".")
        target = instance
        for part in parents:
            target = _get(target, part)
        _set(target, leaf, converter(_get(target, leaf), width))
    return instance


FAT_HEADER_FIELDS = (("magic", 4), ("nfat_arch", 4))

FAT_ARCH_FIELDS = (
    ("cputype", 4),
    ("cpusubtype", 4),
    ("offset", 4),
    ("size", 4),
    ("align", 4),
)

FAT_ARCH_64_FIELDS = (
    ("cputype", 4),
    ("cpusubtype", 4),
    ("offset", 8),
    ("size", 8),
    ("align", 4),
    ("reserved", 4),
)

MACH_HEADER_FIELDS = (
    ("magic", 4),
    ("cputype", 4),
    ("cpusubtype", 4),
    ("filetype", 4),
    ("ncmds", 4),
    ("sizeofcmds", 4),
)

LOAD_COMMAND_FIELDS = (("cmd", 4), ("cmdsize", 4))

LINKEDIT_DATA_COMMAND_FIELDS = LOAD_COMMAND_FIELDS + (("dataoff", 4), ("datasize", 4))

ENCRYPTION_INFO_COMMAND_FIELDS = LOAD_COMMAND_FIELDS + (
    ("cryptoff", 4),
    ("cryptsize", 4),
    ("cryptid", 4),
)

BLOB_INDEX_FIELDS = (("type", 4), ("offset", 4))

SUPERBLOB_FIELDS = (("magic", 4), ("length", 4), ("count", 4))

GENERIC_BLOB_FIELDS = (("magic", 4), ("length", 4))

CODE_DIRECTORY_FIELDS = (
    ("magic", 4),
    ("length", 4),
    ("version", 4),
    ("flags", 4),
    ("hashOffset", 4),
    ("identOffset", 4),
    ("nSpecialSlots", 4),
    ("nCodeSlots", 4),
    ("codeLimit", 4),
    ("hashSize", 1),
    ("hashType", 1),
    ("platform", 1),
    ("pageSize", 1),
    ("spare2", 4),
    ("scatterOffset", 4),
    ("teamOffset", 4),
)

SEGMENT_COMMAND_64_FIELDS = LOAD_COMMAND_FIELDS + (
    ("fileoff", 8),
    ("filesize", 8),
    ("vmaddr", 8),
    ("vmsize", 8),
    ("flags", 4),
    ("initprot", 4),
    ("maxprot", 4),
    ("nsects", 4),
)

SECTION_64_FIELDS = (
    ("addr", 8),
    ("align", 4),
    ("flags", 4),
    ("nreloc", 4),
    ("offset", 4),
    ("reserved1", 4),
    ("reserved2", 4),
    ("reserved3", 4),
    ("size", 8),
)

FILESET_ENTRY_COMMAND_FIELDS = LOAD_COMMAND_FIELDS + (
    ("vmaddr", 8),
    ("fileoff", 8),
    ("entry_id.offset", 4),
    ("reserved", 4),
)

SYMTAB_COMMAND_FIELDS = LOAD_COMMAND_FIELDS + (
    ("nsyms", 4),
    ("stroff", 4),
    ("strsize", 4),
    ("symoff", 4),
)

NLIST_64_FIELDS = (
    ("n_un.n_strx", 4),
    ("n_type", 1),
    ("n_sect", 1),
    ("n_desc", 2),
    ("n_value", 8),
)

DYLIB_FIELDS = (
    ("name.offset", 4),
    ("timestamp", 4),
    ("current_version", 4),
    ("compatibility_version", 4),
)

DYLIB_COMMAND_FIELDS = LOAD_COMMAND_FIELDS + tuple(
    (f"dylib.{name}", width) for name, width in DYLIB_FIELDS
)

RPATH_COMMAND_FIELDS = LOAD_COMMAND_FIELDS + (("path.offset", 4),)