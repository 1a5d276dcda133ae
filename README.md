# choma

Encoders, decoders and match patterns for AArch64 instructions, together with
small byte-order and bit-manipulation helpers, for locating code in binaries.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `choma.util`: `sxt64` (sign extension to 64 bits), `memcmp_masked`
  (compare two byte strings under a mask, returns a bool), `align_to_size`,
  `count_digits`, `format_hash` / `print_hash` (hexadecimal digests) and
  `enumerate_range`, a generator of aligned addresses walking forwards or
  backwards between two bounds.
- `choma.byteorder`: `big_to_host`, `host_to_big`, `little_to_host`,
  `host_to_little` for 1, 2, 4 and 8 byte integers, and `apply_byte_order`,
  which converts named fields of a mapping or object in place. Field layouts
  such as `FAT_HEADER_FIELDS`, `MACH_HEADER_FIELDS`, `CODE_DIRECTORY_FIELDS`,
  `SEGMENT_COMMAND_64_FIELDS` or `NLIST_64_FIELDS` list `(name, width)`
  pairs; dotted names such as `"entry_id.offset"` reach into nested members.
- `choma.xref`: the `XrefType` and `XrefTypeMask` enumerations for kinds of
  cross reference. `XrefType.mask()` gives the mask bit of a kind and
  `XrefTypeMask.includes()` tests for it. Note that `XrefTypeMask.JUMP` is
  built from the value of `XrefType.B` rather than its mask bit, so it also
  carries the `BL` bit.
- `choma.registers`: `Register` (with `Register.x(n)`, `.w(n)`, `.q(n)`,
  `.d(n)`, `.s(n)`, `.h(n)`, `.b(n)` and the wildcards `Register.ANY`,
  `Register.ANY_X_W`, `Register.ANY_VECTOR`), `RegisterType`,
  `RegisterMask`, `LdrStrType` and `Condition`.
- `choma.arm64`: `b`/`bl`, `b.cond`/`bc.cond`, `adr`/`adrp`,
  `movk`/`movn`/`movz` and `add` with an immediate, through `gen_*` and
  `dec_*` functions.
- `choma.arm64_memory`: `ldr`/`ldrs*`/`str` with an immediate offset,
  literal `ldr`, `cbz`/`cbnz` and `tbz`/`tbnz`.

## Patterns and decoding

Every `gen_*` function returns a `Pattern` holding the instruction bits
(`value`) and the bits that must match (`mask`); `Pattern.matches(inst)`
tests a 32-bit word against it. Arguments left as `None` (or a wildcard
register) are not part of the mask. Operands that cannot be encoded raise
`choma.arm64.EncodingError`, a `ValueError`.

Every `dec_*` function returns a small frozen dataclass (`Branch`,
`ConditionalBranch`, `AddressLoad`, `MoveImmediate`, `AddImmediate`,
`LoadStore`, `LiteralLoad`, `CompareBranch`, `TestBranch`) or `None` when
the word is not an instruction of that kind.

```python
from choma.arm64 import gen_b_l, dec_b_l, gen_adr_p
from choma.arm64_memory import gen_ldr_imm, dec_ldr_imm
from choma.registers import LdrStrType, Register

any_branch = gen_b_l(None, None, None)
assert any_branch.matches(0x94000010)

branch = dec_b_l(0x94000010, 0x1000)
print(hex(branch.target), branch.is_bl)   # 0x1040 True

adrp_x16 = gen_adr_p(True, None, None, Register.x(16))
ldr_x16 = gen_ldr_imm(None, LdrStrType.UNSIGNED, Register.x(16), Register.x(16))

load = dec_ldr_imm(0xF9400210)
print(load.register, load.address, load.imm, load.inst_type)
```

`gen_cb_n_z` and `gen_tb_n_z` take the branch target as an offset from the
instruction, not as an absolute address. `gen_add_imm` fills the source
register field from the destination register's number.

## What the package does not do

It works on single 32-bit instruction words only. It does not read Mach-O or
FAT files, code signatures or symbol tables, does not scan sections for
cross references (the `choma.xref` enumerations describe kinds of reference
but nothing here searches for them), and provides no command-line tool.