"""
src/compose/models.py — Typed inputs and intermediates for slide composition

SlideInput and ColorPalette are the engine's only inputs. Everything the
normalizer and extractors derive from a slide body is typed here too, so
builders never reach back into raw markdown.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ── Enums ──────────────────────────────────────────────────────────


class SlideType(str, Enum):
    COMPARISON = "comparison"
    TIMELINE = "timeline"
    METRICS_HIGHLIGHT = "metrics_highlight"
    MARKET_SIZING = "market_sizing"
    TEAM = "team"
    FEATURE_GRID = "feature_grid"
    PROCESS = "process"
    PROBLEM = "problem"
    SOLUTION = "solution"
    CTA = "cta"
    CONTENT = "content"
    QUOTE = "quote"
    ARCHITECTURE = "architecture"
    PLAIN = "plain"

    @classmethod
    def _missing_(cls, value):
        # Upstream services send "METRICS_HIGHLIGHT" style tags
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class ContentMood(str, Enum):
    GROWTH = "growth"
    RISK = "risk"
    TECH = "tech"
    PEOPLE = "people"
    STRATEGY = "strategy"
    NEUTRAL = "neutral"


# ── Inputs ─────────────────────────────────────────────────────────

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")


def _normalize_hex(value: str) -> str:
    match = _HEX_RE.match(value.strip())
    if not match:
        raise ValueError(f"expected a 6-digit hex colour, got {value!r}")
    return "#" + match.group(1).upper()


class ColorPalette(BaseModel):
    """Theme colours shared by every slide of a presentation."""

    model_config = ConfigDict(frozen=True)

    primary: str
    secondary: str
    accent: str
    background: str
    text: str
    surface: str
    border: str
    success: Optional[str] = None
    warning: Optional[str] = None
    error: Optional[str] = None

    @field_validator(
        "primary", "secondary", "accent", "background", "text", "surface", "border"
    )
    @classmethod
    def _required_hex(cls, v: str) -> str:
        return _normalize_hex(v)

    @field_validator("success", "warning", "error")
    @classmethod
    def _optional_hex(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return _normalize_hex(v)


class SlideInput(BaseModel):
    """One slide as authored upstream."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    body: str = ""
    slide_type: SlideType = SlideType.PLAIN
    image_url: Optional[str] = None

    @field_validator("slide_type", mode="before")
    @classmethod
    def _coerce_type(cls, v):
        return SlideType(v) if isinstance(v, str) else v


class ParsedTable(BaseModel):
    """A tabular block found in a slide body."""

    headers: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)
    lead_text: str = ""
    takeaway: str = ""
    source: str = ""

    @property
    def column_count(self) -> int:
        return len(self.headers)


# ── Intermediates ──────────────────────────────────────────────────


@dataclass
class SecondaryMetric:
    value: str
    label: str = ""


@dataclass
class HeroMetric:
    """Dominant number of a metrics slide plus whatever surrounds it."""

    value: str
    label: str = ""
    secondary: list[SecondaryMetric] = field(default_factory=list)
    support: list[str] = field(default_factory=list)
    extracted: bool = False  # False when the title stood in for the value


@dataclass
class ComparisonGroup:
    name: str
    items: list[str] = field(default_factory=list)


@dataclass
class CardItem:
    """Title/description pair used by grid-style builders."""

    title: str
    desc: str = ""


@dataclass
class Milestone:
    date: str
    text: str
