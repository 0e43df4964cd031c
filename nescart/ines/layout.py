"""Region layout — locate trainer, PRG ROM and CHR ROM inside an iNES image."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from nescart.errors import EmptyPrgRom, TruncatedFile
from nescart.ines.header import HEADER_SIZE, decode_header
from nescart.models.cartridge import Cartridge, DecodedHeader

# Image layout, in order:
#   Header   (16 bytes)
#   Trainer  (0 or 512 bytes)
#   PRG ROM  (16384 * x bytes)
#   CHR ROM  (8192 * y bytes)
#   PlayChoice INST-ROM / PROM, if present (not decoded)


@dataclass(frozen=True)
class RegionLayout:
    """Byte offsets of each region within the source buffer."""

    trainer_offset: int
    trainer_size: int
    prg_offset: int
    prg_size: int
    chr_offset: int
    chr_size: int

    @property
    def end(self) -> int:
        """First byte past the CHR region, i.e. the minimum valid image length."""
        return self.chr_offset + self.chr_size


def compute_layout(decoded: DecodedHeader, buffer_length: int) -> RegionLayout:
    """
    Compute region offsets for an image of ``buffer_length`` bytes.

    Raises ``EmptyPrgRom`` when the header declares no PRG banks and
    ``TruncatedFile`` when the buffer ends before the CHR region does.
    Bytes beyond the CHR region are allowed.
    """
    if decoded.prg_bank_count == 0:
        raise EmptyPrgRom()

    trainer_offset = HEADER_SIZE
    prg_offset = trainer_offset + decoded.trainer_size
    chr_offset = prg_offset + decoded.prg_rom_size

    layout = RegionLayout(
        trainer_offset=trainer_offset,
        trainer_size=decoded.trainer_size,
        prg_offset=prg_offset,
        prg_size=decoded.prg_rom_size,
        chr_offset=chr_offset,
        chr_size=decoded.chr_rom_size,
    )
    if buffer_length < layout.end:
        raise TruncatedFile(layout.end, buffer_length)
    return layout


def build_cartridge(
    decoded: DecodedHeader, data: bytes | bytearray | memoryview
) -> Cartridge:
    """Copy each region out of ``data`` into an independent ``Cartridge``."""
    layout = compute_layout(decoded, len(data))

    trainer = None
    if layout.trainer_size:
        trainer = bytes(data[layout.trainer_offset : layout.prg_offset])

    prg_rom = bytes(data[layout.prg_offset : layout.chr_offset])
    chr_rom = bytes(data[layout.chr_offset : layout.end])
    trailing = len(data) - layout.end

    if trailing:
        logger.debug(f"Ignoring {trailing} trailing bytes after CHR ROM")
    logger.debug(
        f"Regions: trainer@{layout.trainer_offset}+{layout.trainer_size} "
        f"prg@{layout.prg_offset}+{layout.prg_size} chr@{layout.chr_offset}+{layout.chr_size}"
    )

    return Cartridge(
        header=decoded,
        prg_rom=prg_rom,
        chr_rom=chr_rom,
        trainer=trainer,
        trailing_size=trailing,
    )


def decode_cartridge(data: bytes | bytearray | memoryview) -> Cartridge:
    """Decode a complete iNES image held in memory."""
    decoded = decode_header(data)
    return build_cartridge(decoded, data)
