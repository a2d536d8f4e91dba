"""
Unit tests for the field codec.
"""

import random

import pytest

from channel_toolkit.codec.field import (
    combine,
    combine_hex,
    parse_field_value,
    parse_hex_quantity,
    split,
    swap_g2,
    to_128bit_chunks,
    to_bytes32_hex,
)
from channel_toolkit.shared.constants import FieldConstants

SAMPLE_VALUES = [
    0,
    1,
    (1 << 128) - 1,
    1 << 128,
    FieldConstants.BN254_BASE_MODULUS - 1,
    FieldConstants.BN254_SCALAR_MODULUS - 1,
    FieldConstants.MAX_UINT256,
]


class TestSplit:
    """Tests for split()."""

    def test_split_one(self):
        """split(1) is (high=0, low=1)."""
        assert split(1) == (0, 1)

    def test_split_accepts_decimal_and_hex_strings(self):
        """Decimal and 0x-hex strings split like the integer."""
        assert split("255") == split(255) == split("0xff") == (0, 255)

    def test_high_is_zero_below_2_256(self):
        """Every value below 2^256 has an empty high word."""
        for value in SAMPLE_VALUES:
            high, low = split(value)
            assert high == 0
            assert low == value

    def test_value_above_256_bits(self):
        """Bits above 256 land in the high word."""
        high, low = split((5 << 256) | 7)
        assert high == 5
        assert low == 7

    def test_rejects_oversized_value(self):
        """Values wider than 384 bits are rejected."""
        with pytest.raises(ValueError):
            split(1 << 384)

    def test_rejects_negative(self):
        """Negative values are not field elements."""
        with pytest.raises(ValueError):
            split(-1)


class TestCombine:
    """Tests for combine() and combine_hex()."""

    def test_combine_one(self):
        """combine(low=1, high=0) is 1."""
        assert combine(1, 0) == 1
        assert combine_hex(1, 0) == "0x" + "0" * 63 + "1"

    def test_round_trip(self):
        """combine(*reversed(split(v))) == v for representable values."""
        for value in SAMPLE_VALUES:
            high, low = split(value)
            assert combine(low, high) == value

    def test_chunk_round_trip(self):
        """128-bit chunks recombine to the original value."""
        for value in SAMPLE_VALUES:
            low, high = to_128bit_chunks(value)
            assert combine(low, high) == value

    def test_random_round_trip(self):
        """Seeded random field elements survive split/combine and chunking."""
        rng = random.Random(20240601)
        for _ in range(200):
            value = rng.randrange(FieldConstants.BN254_SCALAR_MODULUS)
            high, low = split(value)
            assert combine(low, high) == value
            assert combine(*to_128bit_chunks(value)) == value

    def test_hex_chunks_with_and_without_prefix(self):
        """instance.json chunks may omit the 0x prefix."""
        assert combine("0x2", "0x1") == (1 << 128) | 2
        assert combine("2", "1") == (1 << 128) | 2
        assert combine("0X2", "0X1") == (1 << 128) | 2

    def test_empty_chunk_is_zero(self):
        """An empty 0x chunk reads as zero."""
        assert combine("0x", "0x1") == 1 << 128

    def test_invalid_chunk(self):
        """Non-hex chunk text is rejected."""
        with pytest.raises(ValueError, match="Invalid hex chunk"):
            combine("0xzz", "0x0")

    def test_bool_chunk_rejected(self):
        """Booleans are not chunks."""
        with pytest.raises(ValueError):
            combine(True, 0)

    def test_rejects_high_chunk_wider_than_128_bits(self):
        """A high chunk past 16 bytes would shift into the next word."""
        with pytest.raises(ValueError, match="High chunk wider than 128 bits"):
            combine(0, 1 << 128)
        with pytest.raises(ValueError):
            combine("0x0", "0x1" + "0" * 32)

    def test_rejects_wide_low_chunk_beside_high(self):
        """A low chunk past 16 bytes cannot sit under a non-zero high chunk."""
        with pytest.raises(ValueError, match="Low chunk too wide"):
            combine(1 << 128, 1)
        with pytest.raises(ValueError, match="Low chunk too wide"):
            combine(1 << 256, 0)

    def test_leading_zeros_do_not_count_toward_width(self):
        """Zero-padded 16-byte chunks longer than 32 digits still combine."""
        assert combine("0x" + "0" * 40 + "2", "0x" + "0" * 40 + "1") == (1 << 128) | 2


class TestSwapG2:
    """Tests for swap_g2()."""

    def test_swap_order(self):
        """[[x0, x1], [y0, y1]] becomes [[x1, x0], [y1, y0]]."""
        assert swap_g2([["x0", "x1"], ["y0", "y1"]]) == (("x1", "x0"), ("y1", "y0"))

    def test_swap_is_self_inverse(self):
        """Applying the swap twice restores the input."""
        pi_b = [["1", "2"], ["3", "4"]]
        once = swap_g2(pi_b)
        twice = swap_g2(once)
        assert [list(row) for row in twice] == pi_b

    def test_projective_row_ignored(self):
        """The third projective row is dropped."""
        assert swap_g2([[1, 2], [3, 4], [1, 0]]) == ((2, 1), (4, 3))

    def test_incomplete_point(self):
        """A point missing a coordinate is rejected."""
        with pytest.raises(ValueError):
            swap_g2([[1, 2]])
        with pytest.raises(ValueError):
            swap_g2([[1], [3, 4]])


class TestParsing:
    """Tests for value parsing helpers."""

    def test_parse_field_value(self):
        """Ints, decimal strings and hex strings parse to ints."""
        assert parse_field_value(42) == 42
        assert parse_field_value("42") == 42
        assert parse_field_value(" 0x2a ") == 42

    def test_parse_field_value_rejects(self):
        """Floats, bools, empty and negative values are rejected."""
        for bad in (1.5, True, "", "-3", -3, "abc"):
            with pytest.raises(ValueError):
                parse_field_value(bad)

    def test_parse_hex_quantity_empty_values(self):
        """Empty storage values read as zero."""
        assert parse_hex_quantity("0x") == 0
        assert parse_hex_quantity("") == 0
        assert parse_hex_quantity(None) == 0
        assert parse_hex_quantity("0x3e8") == 1000

    def test_to_bytes32_hex(self):
        """Values render as left-padded 32-byte hex."""
        assert to_bytes32_hex(1) == "0x" + "0" * 63 + "1"
        with pytest.raises(ValueError):
            to_bytes32_hex(1 << 256)

    def test_to_128bit_chunks_bounds(self):
        """Only 256-bit values can be chunked."""
        assert to_128bit_chunks((3 << 128) | 4) == (4, 3)
        with pytest.raises(ValueError):
            to_128bit_chunks(1 << 256)
