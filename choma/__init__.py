"""AArch64 instruction encoding, decoding and matching, with byte-order helpers."""

__version__ = "0.1.0"
__all__ = ["arm64", "arm64_memory", "byteorder", "registers", "util", "xref"]