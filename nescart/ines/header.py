"""iNES header decoder — 16-byte header to ``DecodedHeader`` and back."""

from __future__ import annotations

from loguru import logger

from nescart.errors import BadMagic, ReservedBitsSet, TruncatedFile
from nescart.models.cartridge import (
    DecodedHeader,
    FormatVersion,
    Mirroring,
    TvSystem,
)

# iNES header layout (16 bytes)
# 0x00 - 0x03 : Magic "NES\x1A"
# 0x04        : PRG ROM size in 16 KB units
# 0x05        : CHR ROM size in 8 KB units (0 = CHR RAM)
# 0x06        : Flags 6: mirroring, battery, trainer, four-screen, mapper low nibble
# 0x07        : Flags 7: VS Unisystem, PlayChoice-10, NES 2.0 id, mapper high nibble
# 0x08        : Flags 8: PRG RAM size in 8 KB units
# 0x09        : Flags 9: TV system (bit 0), bits 1-7 reserved
# 0x0A        : Flags 10: TV system, PRG RAM absent, bus conflicts (unofficial)
# 0x0B - 0x0F : Unused

INES_MAGIC = b"NES\x1a"
HEADER_SIZE = 16
MAGIC_VALUE = int.from_bytes(INES_MAGIC, "little")  # 0x1A53454E

# Flags 6
_F6_VERTICAL = 0x01
_F6_BATTERY = 0x02
_F6_TRAINER = 0x04
_F6_FOUR_SCREEN = 0x08

# Flags 7
_F7_VS_UNISYSTEM = 0x01
_F7_PLAYCHOICE10 = 0x02
_F7_VERSION_MASK = 0x0C
_F7_VERSION_NES2 = 0x08  # 2-bit field == 2, compared unshifted

_MAPPER_NIBBLE = 0xF0

# Flags 9
_F9_PAL = 0x01
_F9_RESERVED = 0xFE

# Flags 10
_F10_TV_MASK = 0x03
_F10_PRG_RAM_ABSENT = 0x10
_F10_BUS_CONFLICTS = 0x20

# Flags 10 TV bits: 0 = NTSC, 2 = PAL, 1/3 = dual compatible
_F10_TV_BITS: dict[TvSystem, int] = {
    TvSystem.NTSC: 0,
    TvSystem.PAL: 2,
    TvSystem.DUAL: 1,
}


def decode_header(header: bytes | bytearray | memoryview) -> DecodedHeader:
    """
    Decode the iNES header at the start of ``header``.

    Only the first 16 bytes are inspected. Raises ``TruncatedFile`` for a
    shorter buffer, ``BadMagic`` before looking at any other field, and
    ``ReservedBitsSet`` when flags 9 carries non-zero reserved bits.
    """
    if len(header) < HEADER_SIZE:
        raise TruncatedFile(HEADER_SIZE, len(header))

    magic = int.from_bytes(header[0:4], "little")
    if magic != MAGIC_VALUE:
        raise BadMagic(MAGIC_VALUE, magic)

    flags6 = header[6]
    flags7 = header[7]
    flags9 = header[9]
    flags10 = header[10]

    if flags9 & _F9_RESERVED:
        raise ReservedBitsSet(flags9)

    # Mapper number: flags 6 supplies the low nibble, flags 7 the high nibble
    mapper_low = (flags6 & _MAPPER_NIBBLE) >> 4
    mapper_high = flags7 & _MAPPER_NIBBLE
    mapper_number = mapper_low | mapper_high

    # Base arrangement first, then the four-screen override
    mirroring = Mirroring.VERTICAL if flags6 & _F6_VERTICAL else Mirroring.HORIZONTAL
    if flags6 & _F6_FOUR_SCREEN:
        mirroring = Mirroring.FOUR_SCREEN

    if (flags7 & _F7_VERSION_MASK) == _F7_VERSION_NES2:
        format_version = FormatVersion.INES2
    else:
        format_version = FormatVersion.INES1

    tv_bits = flags10 & _F10_TV_MASK
    if tv_bits in (1, 3):
        tv_system = TvSystem.DUAL
    elif flags9 & _F9_PAL:
        tv_system = TvSystem.PAL
    else:
        tv_system = TvSystem.NTSC

    decoded = DecodedHeader(
        prg_bank_count=header[4],
        chr_bank_count=header[5],
        mirroring=mirroring,
        has_battery=bool(flags6 & _F6_BATTERY),
        has_trainer=bool(flags6 & _F6_TRAINER),
        mapper_number=mapper_number,
        vs_unisystem=bool(flags7 & _F7_VS_UNISYSTEM),
        playchoice10=bool(flags7 & _F7_PLAYCHOICE10),
        format_version=format_version,
        prg_ram_bank_count=header[8],
        tv_system=tv_system,
        prg_ram_present=not (flags10 & _F10_PRG_RAM_ABSENT),
        bus_conflicts=bool(flags10 & _F10_BUS_CONFLICTS),
    )
    logger.debug(
        f"iNES header: mapper={decoded.mapper_number} prg={decoded.prg_bank_count}x16K "
        f"chr={decoded.chr_bank_count}x8K mirroring={decoded.mirroring} "
        f"format={decoded.format_version}"
    )
    return decoded


def _check_byte(name: str, value: int) -> int:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} does not fit in a header byte: {value}")
    return value


def encode_header(decoded: DecodedHeader) -> bytes:
    """Build the 16-byte header that decodes back to ``decoded``."""
    mapper = _check_byte("mapper_number", decoded.mapper_number)

    flags6 = (mapper & 0x0F) << 4
    if decoded.mirroring == Mirroring.VERTICAL:
        flags6 |= _F6_VERTICAL
    elif decoded.mirroring == Mirroring.FOUR_SCREEN:
        flags6 |= _F6_FOUR_SCREEN
    if decoded.has_battery:
        flags6 |= _F6_BATTERY
    if decoded.has_trainer:
        flags6 |= _F6_TRAINER

    flags7 = mapper & _MAPPER_NIBBLE
    if decoded.vs_unisystem:
        flags7 |= _F7_VS_UNISYSTEM
    if decoded.playchoice10:
        flags7 |= _F7_PLAYCHOICE10
    if decoded.format_version == FormatVersion.INES2:
        flags7 |= _F7_VERSION_NES2

    flags9 = _F9_PAL if decoded.tv_system == TvSystem.PAL else 0

    flags10 = _F10_TV_BITS[decoded.tv_system]
    if not decoded.prg_ram_present:
        flags10 |= _F10_PRG_RAM_ABSENT
    if decoded.bus_conflicts:
        flags10 |= _F10_BUS_CONFLICTS

    return INES_MAGIC + bytes(
        [
            _check_byte("prg_bank_count", decoded.prg_bank_count),
            _check_byte("chr_bank_count", decoded.chr_bank_count),
            flags6,
            flags7,
            _check_byte("prg_ram_bank_count", decoded.prg_ram_bank_count),
            flags9,
            flags10,
            0, 0, 0, 0, 0,
        ]
    )
