"""Decode failures for iNES images.

Every failure is terminal for the image being decoded. No partial cartridge
is produced; callers decide whether to skip the file, report it or abort.
"""

from __future__ import annotations


class FormatError(ValueError):
    """Base class for malformed cartridge images."""


class BadMagic(FormatError):
    """The first four bytes are not ``NES\\x1A``."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Bad iNES magic: expected 0x{expected:08X}, got 0x{actual:08X}"
        )


class ReservedBitsSet(FormatError):
    """Flags 9 bits 1-7 must be zero."""

    def __init__(self, value: int) -> None:
        self.value = value
        super().__init__(f"Reserved bits set in flags 9: 0x{value:02X}")


class TruncatedFile(FormatError):
    """The buffer ends before a region the header declares."""

    def __init__(self, required: int, actual: int) -> None:
        self.required = required
        self.actual = actual
        super().__init__(
            f"Truncated image: {required} bytes required, {actual} available"
        )


class EmptyPrgRom(FormatError):
    """The header declares zero PRG ROM banks."""

    def __init__(self) -> None:
        super().__init__("Image declares no PRG ROM banks")


class RomTooLarge(FormatError):
    """The file exceeds the configured loader limit."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"ROM file too large: {size} bytes (limit {limit})")
