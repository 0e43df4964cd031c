"""Tests for the iNES header decoder."""

from __future__ import annotations

import pytest

from nescart.errors import BadMagic, FormatError, ReservedBitsSet, TruncatedFile
from nescart.ines.header import INES_MAGIC, MAGIC_VALUE, decode_header, encode_header
from nescart.models.cartridge import DecodedHeader, FormatVersion, Mirroring, TvSystem


def _header(
    prg: int = 1,
    chr_: int = 1,
    flags6: int = 0,
    flags7: int = 0,
    flags8: int = 0,
    flags9: int = 0,
    flags10: int = 0,
    magic: bytes = INES_MAGIC,
) -> bytes:
    return magic + bytes([prg, chr_, flags6, flags7, flags8, flags9, flags10, 0, 0, 0, 0, 0])


class TestMagic:
    def test_valid_magic(self) -> None:
        decoded = decode_header(_header())
        assert decoded.prg_bank_count == 1
        assert decoded.chr_bank_count == 1

    def test_zero_magic_rejected(self) -> None:
        with pytest.raises(BadMagic) as exc_info:
            decode_header(bytes(16))
        assert exc_info.value.actual == 0
        assert exc_info.value.expected == MAGIC_VALUE == 0x1A53454E

    def test_bad_magic_reported_before_reserved_bits(self) -> None:
        data = _header(flags9=0xFE, magic=b"NES\x00")
        with pytest.raises(BadMagic) as exc_info:
            decode_header(data)
        assert exc_info.value.actual == 0x0053454E

    def test_bad_magic_is_format_error(self) -> None:
        with pytest.raises(FormatError):
            decode_header(_header(magic=b"UNIF"))

    @pytest.mark.parametrize("length", [0, 4, 15])
    def test_short_header(self, length: int) -> None:
        with pytest.raises(TruncatedFile) as exc_info:
            decode_header(_header()[:length])
        assert exc_info.value.required == 16
        assert exc_info.value.actual == length

    def test_only_first_sixteen_bytes_read(self) -> None:
        decoded = decode_header(_header(prg=2) + b"\xff" * 100)
        assert decoded.prg_bank_count == 2


class TestMapperNumber:
    @pytest.mark.parametrize(
        "flags6, flags7, expected",
        [
            (0x00, 0x00, 0),
            (0x10, 0x00, 1),
            (0x40, 0x00, 4),
            (0x20, 0x40, 66),
            (0x00, 0x40, 64),
            (0xF0, 0xF0, 255),
            # Flag bits in the low nibbles never leak into the mapper
            (0x1F, 0x0F, 1),
        ],
    )
    def test_nibble_composition(self, flags6: int, flags7: int, expected: int) -> None:
        assert decode_header(_header(flags6=flags6, flags7=flags7)).mapper_number == expected


class TestMirroring:
    @pytest.mark.parametrize(
        "flags6, expected",
        [
            (0x00, Mirroring.HORIZONTAL),
            (0x01, Mirroring.VERTICAL),
            (0x08, Mirroring.FOUR_SCREEN),
            (0x09, Mirroring.FOUR_SCREEN),
        ],
    )
    def test_mirroring(self, flags6: int, expected: Mirroring) -> None:
        assert decode_header(_header(flags6=flags6)).mirroring == expected


class TestFlags:
    def test_all_clear(self) -> None:
        decoded = decode_header(_header())
        assert decoded.has_battery is False
        assert decoded.has_trainer is False
        assert decoded.vs_unisystem is False
        assert decoded.playchoice10 is False
        assert decoded.bus_conflicts is False
        assert decoded.prg_ram_present is True
        assert decoded.format_version == FormatVersion.INES1
        assert decoded.tv_system == TvSystem.NTSC

    def test_battery_only(self) -> None:
        decoded = decode_header(_header(flags6=0x02))
        assert decoded.has_battery is True
        assert decoded.has_trainer is False
        assert decoded.mirroring == Mirroring.HORIZONTAL

    def test_trainer_only(self) -> None:
        decoded = decode_header(_header(flags6=0x04))
        assert decoded.has_trainer is True
        assert decoded.has_battery is False
        assert decoded.trainer_size == 512

    def test_vs_unisystem(self) -> None:
        decoded = decode_header(_header(flags7=0x01))
        assert decoded.vs_unisystem is True
        assert decoded.playchoice10 is False

    def test_playchoice10(self) -> None:
        decoded = decode_header(_header(flags7=0x02))
        assert decoded.playchoice10 is True
        assert decoded.vs_unisystem is False

    def test_prg_ram_absent(self) -> None:
        assert decode_header(_header(flags10=0x10)).prg_ram_present is False

    def test_bus_conflicts(self) -> None:
        decoded = decode_header(_header(flags10=0x20))
        assert decoded.bus_conflicts is True
        assert decoded.prg_ram_present is True

    def test_prg_ram_banks(self) -> None:
        assert decode_header(_header(flags8=0)).prg_ram_size == 8192
        decoded = decode_header(_header(flags8=4))
        assert decoded.prg_ram_bank_count == 4
        assert decoded.prg_ram_size == 4 * 8192

    def test_chr_ram(self) -> None:
        decoded = decode_header(_header(chr_=0))
        assert decoded.uses_chr_ram is True
        assert decoded.chr_rom_size == 0


class TestFormatVersion:
    @pytest.mark.parametrize(
        "flags7, expected",
        [
            (0x00, FormatVersion.INES1),
            (0x04, FormatVersion.INES1),
            (0x08, FormatVersion.INES2),
            (0x0C, FormatVersion.INES1),
            (0xF8, FormatVersion.INES2),
        ],
    )
    def test_version_field(self, flags7: int, expected: FormatVersion) -> None:
        decoded = decode_header(_header(flags7=flags7))
        assert decoded.format_version == expected
        assert decoded.is_nes2 is (expected is FormatVersion.INES2)


class TestTvSystem:
    @pytest.mark.parametrize(
        "flags9, flags10, expected",
        [
            (0x00, 0x00, TvSystem.NTSC),
            (0x01, 0x00, TvSystem.PAL),
            (0x01, 0x02, TvSystem.PAL),
            (0x00, 0x02, TvSystem.NTSC),
            (0x00, 0x01, TvSystem.DUAL),
            (0x01, 0x03, TvSystem.DUAL),
        ],
    )
    def test_tv_system(self, flags9: int, flags10: int, expected: TvSystem) -> None:
        assert decode_header(_header(flags9=flags9, flags10=flags10)).tv_system == expected


class TestReservedBits:
    @pytest.mark.parametrize("flags9", [0x02, 0x80, 0xFE, 0xFF])
    def test_reserved_bits_rejected(self, flags9: int) -> None:
        with pytest.raises(ReservedBitsSet) as exc_info:
            decode_header(_header(flags9=flags9))
        assert exc_info.value.value == flags9


class TestEncode:
    @pytest.mark.parametrize(
        "decoded",
        [
            DecodedHeader(prg_bank_count=1, chr_bank_count=1),
            DecodedHeader(
                prg_bank_count=8,
                chr_bank_count=0,
                mirroring=Mirroring.VERTICAL,
                has_battery=True,
                mapper_number=4,
                prg_ram_bank_count=1,
            ),
            DecodedHeader(
                prg_bank_count=2,
                chr_bank_count=4,
                mirroring=Mirroring.FOUR_SCREEN,
                has_trainer=True,
                mapper_number=66,
                vs_unisystem=True,
                playchoice10=True,
                format_version=FormatVersion.INES2,
                tv_system=TvSystem.PAL,
                prg_ram_present=False,
                bus_conflicts=True,
            ),
            DecodedHeader(prg_bank_count=255, chr_bank_count=255, mapper_number=255, tv_system=TvSystem.DUAL),
        ],
    )
    def test_round_trip(self, decoded: DecodedHeader) -> None:
        raw = encode_header(decoded)
        assert len(raw) == 16
        assert decode_header(raw) == decoded

    def test_four_screen_header_re_encodes(self) -> None:
        decoded = decode_header(_header(flags6=0x09))
        assert decode_header(encode_header(decoded)) == decoded

    def test_mapper_out_of_range(self) -> None:
        with pytest.raises(ValueError):
            encode_header(DecodedHeader(prg_bank_count=1, mapper_number=256))

    def test_minimal_header_bytes(self) -> None:
        assert encode_header(DecodedHeader(prg_bank_count=1, chr_bank_count=1)) == _header()
