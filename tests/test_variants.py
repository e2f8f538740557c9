"""
tests/test_variants.py — Tests for the deterministic variant selector

The hash must match the 32-bit `h * 31 + c` string hash bit for bit, so
known Java String.hashCode values double as fixtures.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.compose.models import SlideType
from src.compose.variants import (
    VARIANT_COUNTS,
    content_hash,
    layout_variant,
    variant_for,
)


class TestContentHash:
    def test_empty(self):
        assert content_hash("", "") == 0

    def test_small_values(self):
        assert content_hash("a", "") == 97
        assert content_hash("ab", "") == 3105

    def test_title_and_body_concatenate(self):
        assert content_hash("a", "b") == content_hash("ab", "")

    def test_known_string_hash(self):
        assert content_hash("hello", "") == 99162322

    def test_collision_pair(self):
        assert content_hash("Aa", "") == content_hash("BB", "") == 2112

    def test_wraps_to_int32_min(self):
        assert content_hash("polygenelubricants", "") == -2147483648

    def test_utf16_surrogate_pairs(self):
        # U+1F600 is two UTF-16 units: 0xD83D, 0xDE00
        assert content_hash("\U0001F600", "") == 0xD83D * 31 + 0xDE00

    def test_only_first_100_body_units(self):
        body = "x" * 100
        assert content_hash("t", body) == content_hash("t", body + "tail changes nothing")

    def test_title_is_not_truncated(self):
        title = "y" * 150
        assert content_hash(title, "") != content_hash(title + "z", "")


class TestLayoutVariant:
    def test_in_range(self):
        for title in ("Alpha", "Beta", "Gamma", "Delta", "polygenelubricants"):
            assert 0 <= layout_variant(title, "body", 3) < 3

    def test_int32_min_is_non_negative(self):
        assert layout_variant("polygenelubricants", "", 3) == 2147483648 % 3

    def test_single_variant(self):
        assert layout_variant("anything", "at all", 1) == 0

    def test_zero_variants_clamped(self):
        assert layout_variant("anything", "", 0) == 0

    def test_idempotent(self):
        assert layout_variant("Roadmap", "Q1: Beta", 2) == layout_variant("Roadmap", "Q1: Beta", 2)

    def test_variant_counts(self):
        assert VARIANT_COUNTS[SlideType.TIMELINE] == 2
        assert VARIANT_COUNTS[SlideType.PROCESS] == 3
        assert VARIANT_COUNTS[SlideType.FEATURE_GRID] == 3
        assert VARIANT_COUNTS[SlideType.PROBLEM] == 2
        assert VARIANT_COUNTS[SlideType.SOLUTION] == 2

    def test_types_without_variants(self):
        assert variant_for(SlideType.CONTENT, "Any title", "any body") == 0
        assert variant_for(SlideType.QUOTE, "Any title", "any body") == 0

    def test_variant_for_uses_type_count(self):
        assert variant_for(SlideType.PROCESS, "Steps", "a\nb") == layout_variant("Steps", "a\nb", 3)
