"""
tests/test_mood.py — Tests for mood detection and mood colours
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.compose.models import ColorPalette, ContentMood
from src.compose.mood import (
    detect_mood,
    luminance,
    mood_color,
    mood_colors,
    mood_scores,
)


@pytest.fixture
def dark_palette():
    return ColorPalette(
        primary="#3B82F6",
        secondary="#8B5CF6",
        accent="#F59E0B",
        background="#0F172A",
        text="#F8FAFC",
        surface="#1E293B",
        border="#334155",
        success="#22C55E",
        warning="#EAB308",
        error="#EF4444",
    )


class TestDetectMood:
    def test_growth(self):
        assert detect_mood("Revenue Growth", "We grew ARR 40% YoY") == ContentMood.GROWTH

    def test_risk(self):
        assert detect_mood("Key Risks", "Churn and security breaches") == ContentMood.RISK

    def test_tech(self):
        assert detect_mood("Platform", "Cloud API and data pipelines") == ContentMood.TECH

    def test_people(self):
        assert detect_mood("Our Team", "Culture, talent and leadership") == ContentMood.PEOPLE

    def test_strategy(self):
        assert detect_mood("Roadmap", "Vision, mission and long-term goals") == ContentMood.STRATEGY

    def test_neutral_without_hits(self):
        assert detect_mood("Hello", "World") == ContentMood.NEUTRAL

    def test_tie_prefers_earlier_mood(self):
        assert detect_mood("growth", "risk") == ContentMood.GROWTH

    def test_only_first_500_body_chars_count(self):
        body = "x" * 600 + " risk risk risk"
        assert detect_mood("Plain", body) == ContentMood.NEUTRAL

    def test_idempotent(self):
        args = ("Churn risk", "Retention dropped after the outage")
        assert detect_mood(*args) == detect_mood(*args)

    def test_scores_cover_all_moods(self):
        scores = mood_scores("", "")
        assert set(scores) == {
            ContentMood.GROWTH,
            ContentMood.RISK,
            ContentMood.TECH,
            ContentMood.PEOPLE,
            ContentMood.STRATEGY,
        }


class TestLuminance:
    def test_extremes(self):
        assert luminance("#FFFFFF") == pytest.approx(255)
        assert luminance("#000000") == 0


class TestMoodColors:
    def test_neutral_has_no_colors(self, dark_palette):
        assert mood_colors(ContentMood.NEUTRAL, dark_palette) is None

    def test_growth_uses_success(self, dark_palette):
        colors = mood_colors(ContentMood.GROWTH, dark_palette)
        assert colors.color == "#22C55E"
        assert colors.title_color == colors.emphasis_color == colors.metric_color == "#22C55E"

    def test_risk_falls_back_to_warning_then_accent(self, dark_palette):
        no_error = dark_palette.model_copy(update={"error": None})
        assert mood_color(ContentMood.RISK, no_error) == "#EAB308"
        neither = dark_palette.model_copy(update={"error": None, "warning": None})
        assert mood_color(ContentMood.RISK, neither) == "#F59E0B"

    def test_low_contrast_mood_color_rejected(self, dark_palette):
        murky = dark_palette.model_copy(update={"primary": "#1A2238"})
        assert mood_colors(ContentMood.STRATEGY, murky) is None

    def test_threshold_is_configurable(self, dark_palette):
        murky = dark_palette.model_copy(update={"primary": "#1A2238"})
        assert mood_colors(ContentMood.STRATEGY, murky, min_contrast=0) is not None
