"""ROM loader — read ``.nes`` files from disk and decode them."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from nescart.config import Config, get_config
from nescart.errors import RomTooLarge
from nescart.ines.layout import decode_cartridge
from nescart.models.cartridge import Cartridge


def read_rom_bytes(path: Path, max_size: int) -> bytes:
    """
    Read a whole ROM file into memory.

    Raises ``RomTooLarge`` without reading when the file exceeds ``max_size``.
    ``OSError`` from the filesystem propagates to the caller.
    """
    try:
        size = path.stat().st_size
        if size > max_size:
            raise RomTooLarge(size, max_size)
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        logger.debug(f"Failed to read ROM '{path.name}': {e}")
        raise


def load_cartridge(path: str | Path, config: Config | None = None) -> Cartridge:
    """Load and decode the iNES image at ``path``."""
    path = Path(path)
    config = config or get_config()

    data = read_rom_bytes(path, config.max_rom_size)
    cartridge = decode_cartridge(data)

    logger.info(
        f"Loaded {path.name}: mapper {cartridge.mapper_number}, "
        f"PRG {len(cartridge.prg_rom) // 1024} KB, CHR {len(cartridge.chr_rom) // 1024} KB, "
        f"CRC32 {cartridge.crc32}"
    )
    return cartridge
