"""Cartridge models — decoded iNES header and the final cartridge record."""

from __future__ import annotations

import zlib
from dataclasses import dataclass
from enum import StrEnum

PRG_BANK_SIZE = 16384
CHR_BANK_SIZE = 8192
PRG_RAM_BANK_SIZE = 8192
TRAINER_SIZE = 512


class Mirroring(StrEnum):
    """Nametable mirroring mode."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    FOUR_SCREEN = "four-screen"


class FormatVersion(StrEnum):
    """Header format revision."""

    INES1 = "ines1"
    INES2 = "nes2"


class TvSystem(StrEnum):
    """Video timing the cartridge targets."""

    NTSC = "NTSC"
    PAL = "PAL"
    DUAL = "dual"


@dataclass(frozen=True)
class DecodedHeader:
    """Typed view of the 16-byte iNES header."""

    prg_bank_count: int = 0          # 16 KB units
    chr_bank_count: int = 0          # 8 KB units, 0 = CHR RAM
    mirroring: Mirroring = Mirroring.HORIZONTAL
    has_battery: bool = False
    has_trainer: bool = False
    mapper_number: int = 0
    vs_unisystem: bool = False
    playchoice10: bool = False
    format_version: FormatVersion = FormatVersion.INES1
    prg_ram_bank_count: int = 0      # 8 KB units, 0 = one bank
    tv_system: TvSystem = TvSystem.NTSC
    prg_ram_present: bool = True
    bus_conflicts: bool = False

    @property
    def prg_rom_size(self) -> int:
        return self.prg_bank_count * PRG_BANK_SIZE

    @property
    def chr_rom_size(self) -> int:
        return self.chr_bank_count * CHR_BANK_SIZE

    @property
    def trainer_size(self) -> int:
        return TRAINER_SIZE if self.has_trainer else 0

    @property
    def uses_chr_ram(self) -> bool:
        """True when the board carries 8 KB of CHR RAM instead of CHR ROM."""
        return self.chr_bank_count == 0

    @property
    def is_nes2(self) -> bool:
        return self.format_version == FormatVersion.INES2

    @property
    def prg_ram_size(self) -> int:
        """PRG RAM size in bytes; a zero count is read as one 8 KB bank."""
        return max(self.prg_ram_bank_count, 1) * PRG_RAM_BANK_SIZE


@dataclass(frozen=True)
class Cartridge:
    """
    A decoded cartridge image.

    Regions are independent ``bytes`` copies; nothing here refers back to the
    buffer the image was decoded from. ``chr_rom`` is empty when the header
    declares no CHR banks, in which case the consumer provides CHR RAM.
    """

    header: DecodedHeader
    prg_rom: bytes
    chr_rom: bytes = b""
    trainer: bytes | None = None
    trailing_size: int = 0  # bytes after CHR ROM, ignored

    @property
    def mapper_number(self) -> int:
        return self.header.mapper_number

    @property
    def mirroring(self) -> Mirroring:
        return self.header.mirroring

    @property
    def has_battery(self) -> bool:
        return self.header.has_battery

    @property
    def has_trainer(self) -> bool:
        return self.header.has_trainer

    @property
    def format_version(self) -> FormatVersion:
        return self.header.format_version

    @property
    def tv_system(self) -> TvSystem:
        return self.header.tv_system

    @property
    def crc32(self) -> str:
        """CRC32 of PRG ROM followed by CHR ROM, as used by ROM databases."""
        crc = zlib.crc32(self.prg_rom)
        crc = zlib.crc32(self.chr_rom, crc)
        return f"{crc & 0xFFFFFFFF:08X}"

    def __repr__(self) -> str:
        return (
            f"Cartridge(mapper={self.mapper_number}, prg={len(self.prg_rom)} bytes, "
            f"chr={len(self.chr_rom)} bytes, mirroring={self.mirroring}, "
            f"trainer={self.has_trainer})"
        )
