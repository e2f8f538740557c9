"""
src/compose/mood.py — Mood Detector

Keyword-frequency classification of a slide into a ContentMood, plus the
per-mood colour and decoration tables the renderer draws from.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .models import ColorPalette, ContentMood

MOOD_SAMPLE_CHARS = 500

# Evaluation order doubles as tie-break priority.
MOOD_KEYWORDS: list[tuple[ContentMood, re.Pattern]] = [
    (
        ContentMood.GROWTH,
        re.compile(
            r"\b(growth|grow(?:s|ing)?|revenue|increas\w*|expan\w*|scal(?:e|es|ing)|"
            r"profit\w*|gains?|momentum|opportunit(?:y|ies)|accelerat\w*|surg\w*|"
            r"boost\w*|record|upside|arr|mrr|yoy)\b"
        ),
    ),
    (
        ContentMood.RISK,
        re.compile(
            r"\b(risks?|threats?|challeng\w*|problems?|issues?|declin\w*|loss(?:es)?|"
            r"fail\w*|vulnerab\w*|breach\w*|churn|danger\w*|crisis|downturn|"
            r"bottleneck\w*|pain points?|costly|delays?)\b"
        ),
    ),
    (
        ContentMood.TECH,
        re.compile(
            r"\b(ai|ml|machine learning|platform|apis?|cloud|data|infrastructure|"
            r"software|algorithms?|automat\w*|architecture|stack|models?|"
            r"integrations?|pipelines?|latency|compute|engineering|llms?)\b"
        ),
    ),
    (
        ContentMood.PEOPLE,
        re.compile(
            r"\b(teams?|people|culture|talent|hir(?:e|es|ing)|employees?|customers?|"
            r"community|users?|leadership|collaborat\w*|diversity|partners?|"
            r"members?|founders?|staff)\b"
        ),
    ),
    (
        ContentMood.STRATEGY,
        re.compile(
            r"\b(strateg\w*|roadmap|vision|mission|goals?|objectives?|plans?|"
            r"priorit\w*|initiatives?|competitive|positioning|focus|pillars?|"
            r"differentiat\w*|long-term|north star)\b"
        ),
    ),
]


def mood_scores(title: str, body: str) -> dict[ContentMood, int]:
    """Keyword hit counts per mood over title + the start of the body."""
    sample = f"{title or ''} {(body or '')[:MOOD_SAMPLE_CHARS]}".lower()
    return {mood: len(pattern.findall(sample)) for mood, pattern in MOOD_KEYWORDS}


def detect_mood(title: str, body: str) -> ContentMood:
    """Highest-scoring mood; earlier moods win ties; no hits means NEUTRAL."""
    best, best_score = ContentMood.NEUTRAL, 0
    for mood, score in mood_scores(title, body).items():
        if score > best_score:
            best, best_score = mood, score
    return best


# ── Mood colours ───────────────────────────────────────────────────

# Palette slot each mood pulls its colour from; a missing slot falls back
# to the next entry.
MOOD_COLOR_SLOTS: dict[ContentMood, tuple[str, ...]] = {
    ContentMood.GROWTH: ("success", "accent"),
    ContentMood.RISK: ("error", "warning", "accent"),
    ContentMood.TECH: ("accent",),
    ContentMood.PEOPLE: ("secondary", "accent"),
    ContentMood.STRATEGY: ("primary",),
}


@dataclass(frozen=True)
class MoodColors:
    """Colour substitutions a mood applies to the whole slide."""

    mood: ContentMood
    color: str
    title_color: str
    emphasis_color: str
    metric_color: str


def luminance(hex_color: str) -> float:
    """Perceptual luminance on a 0-255 scale."""
    c = hex_color.lstrip("#")
    r, g, b = int(c[0:2], 16), int(c[2:4], 16), int(c[4:6], 16)
    return 0.299 * r + 0.587 * g + 0.114 * b


def mood_color(mood: ContentMood, palette: ColorPalette) -> Optional[str]:
    for slot in MOOD_COLOR_SLOTS.get(mood, ()):
        value = getattr(palette, slot)
        if value:
            return value
    return None


def mood_colors(
    mood: ContentMood, palette: ColorPalette, min_contrast: float = 40
) -> Optional[MoodColors]:
    """Mood colour roles, or None when the mood colour would be unreadable."""
    if mood == ContentMood.NEUTRAL:
        return None
    color = mood_color(mood, palette)
    if color is None:
        return None
    if abs(luminance(color) - luminance(palette.background)) < min_contrast:
        return None
    return MoodColors(
        mood=mood,
        color=color,
        title_color=color,
        emphasis_color=color,
        metric_color=color,
    )
