"""
src/compose/variants.py — Deterministic Variant Selector

Picks a layout variant from slide content alone, so regenerating an
unchanged slide keeps its layout while different slides vary.

The hash is the classic `h = h * 31 + c` string hash over UTF-16 code
units with 32-bit signed wraparound, matching what browser-side renderers
computed for the same content.
"""

from __future__ import annotations

from src.compose.models import SlideType

VARIANT_SAMPLE_UNITS = 100

VARIANT_COUNTS: dict[SlideType, int] = {
    SlideType.TIMELINE: 2,
    SlideType.PROCESS: 3,
    SlideType.FEATURE_GRID: 3,
    SlideType.PROBLEM: 2,
    SlideType.SOLUTION: 2,
}


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _utf16_units(text: str) -> list[int]:
    data = text.encode("utf-16-le", errors="surrogatepass")
    return [int.from_bytes(data[i : i + 2], "little") for i in range(0, len(data), 2)]


def content_hash(title: str, body: str) -> int:
    """Signed 32-bit hash of title + the first 100 UTF-16 units of body."""
    h = 0
    for unit in _utf16_units(title or "") + _utf16_units(body or "")[:VARIANT_SAMPLE_UNITS]:
        h = _to_int32((h << 5) - h + unit)
    return h


def layout_variant(title: str, body: str, max_variants: int) -> int:
    """Variant index in [0, max_variants)."""
    return abs(content_hash(title, body)) % max(1, max_variants)


def variant_for(slide_type: SlideType, title: str, body: str) -> int:
    return layout_variant(title, body, VARIANT_COUNTS.get(slide_type, 1))
