"""
src/renderer/postprocess.py — Post-Processors

Runs after a builder, in fixed order:
  1. apply_mood          decorative overlay + accent bar for the slide's mood
  2. apply_image_overlay right-hand image panel fading into the background
  3. ColorResolver       role -> colour resolution, carrying the mood recolor
                         and the contrast repair of every text colour

Recolor and contrast repair act on colour roles, not on serialized markup,
so they cannot miss a colour spelled differently by a builder.
"""

from __future__ import annotations

import logging
from typing import Optional

from src.compose.models import ColorPalette, ContentMood
from src.compose.mood import MoodColors, luminance
from src.renderer.layout import IMAGE_PANEL_W, PAD, Frame
from src.renderer.scene import (
    ACCENT_ROLES,
    CANVAS_H,
    CANVAS_W,
    Circle,
    ColorRole,
    Gradient,
    ImageBlock,
    Line,
    Paint,
    Polygon,
    Rect,
    Scene,
    TextBlock,
)

logger = logging.getLogger(__name__)

CONTRAST_THRESHOLD = 30
MOOD_OVERLAY_OPACITY = 0.06
IMAGE_FADE_W = 120


# ── Colour resolution ─────────────────────────────────────────────


def _rgba(hex_color: str, alpha: float) -> str:
    c = hex_color.lstrip("#")
    r, g, b = int(c[0:2], 16), int(c[2:4], 16), int(c[4:6], 16)
    return f"rgba({r},{g},{b},{round(alpha, 3):g})"


class ColorResolver:
    """Resolves Paint roles to CSS colours for one slide.

    With mood colours, every accent-family role resolves to the mood colour
    at its own alpha, and TITLE / EMPHASIS / METRIC take the mood's text
    colours. Text colours whose luminance sits within contrast_threshold of
    the background fall back to the palette text colour.
    """

    def __init__(
        self,
        palette: ColorPalette,
        mood_colors: Optional[MoodColors] = None,
        contrast_threshold: float = CONTRAST_THRESHOLD,
    ):
        self.palette = palette
        self.mood_colors = mood_colors
        self.contrast_threshold = contrast_threshold
        self._bg_luminance = luminance(palette.background)

    def base(self, role: ColorRole) -> str:
        mc = self.mood_colors
        if role == ColorRole.WHITE:
            return "#FFFFFF"
        if role == ColorRole.TITLE:
            return mc.title_color if mc else self.palette.text
        if role == ColorRole.EMPHASIS:
            return mc.emphasis_color if mc else self.palette.accent
        if role == ColorRole.METRIC:
            return mc.metric_color if mc else self.palette.primary
        if mc and role in ACCENT_ROLES:
            return mc.color
        return getattr(self.palette, role.value) or self.palette.accent

    def color(self, p: Paint) -> str:
        hex_color = self.base(p.role)
        return hex_color if p.alpha >= 1 else _rgba(hex_color, p.alpha)

    def readable(self, hex_color: str) -> bool:
        return abs(luminance(hex_color) - self._bg_luminance) >= self.contrast_threshold

    def text_color(self, p: Paint) -> str:
        hex_color = self.base(p.role)
        if hex_color != self.palette.text and not self.readable(hex_color):
            logger.debug("Contrast repair: %s (%s) -> text colour", p.role.value, hex_color)
            hex_color = self.palette.text
        return hex_color if p.alpha >= 1 else _rgba(hex_color, p.alpha)


# ── Mood decoration ───────────────────────────────────────────────


def _growth_motif(frame: Frame) -> list:
    w = frame.width
    pts = [(w * 0.55, 640), (w * 0.68, 590), (w * 0.78, 610), (w * 0.9, 520), (w - 20, 470)]
    paint = Paint(ColorRole.SUCCESS)
    return [
        Polygon(pts, stroke=paint, stroke_width=3, opacity=MOOD_OVERLAY_OPACITY * 2, closed=False),
        *(Circle(x, y, 5, fill=paint, opacity=MOOD_OVERLAY_OPACITY * 2) for x, y in pts),
    ]


def _risk_motif(frame: Frame) -> list:
    right = frame.width
    paint = Paint(ColorRole.ERROR)
    return [
        Line(right - 200 + i * 28, 0, right + i * 28, 200, paint, width=6, opacity=MOOD_OVERLAY_OPACITY)
        for i in range(-6, 1)
    ]


def _tech_motif(frame: Frame) -> list:
    right = frame.width - 30
    paint = Paint(ColorRole.ACCENT)
    traces = [
        [(right - 260, 660), (right - 180, 660), (right - 150, 630), (right - 40, 630)],
        [(right - 220, 690), (right - 120, 690), (right - 90, 660), (right, 660)],
        [(right - 300, 620), (right - 240, 620), (right - 210, 590), (right - 110, 590)],
    ]
    nodes = []
    for trace in traces:
        nodes.append(Polygon(trace, stroke=paint, stroke_width=2, opacity=MOOD_OVERLAY_OPACITY * 2, closed=False))
        x, y = trace[-1]
        nodes.append(Circle(x, y, 4, fill=paint, opacity=MOOD_OVERLAY_OPACITY * 3))
    return nodes


def _people_motif(frame: Frame) -> list:
    cx = frame.width - 120
    return [
        Circle(cx - 50, CANVAS_H - 90, 60, fill=Paint(ColorRole.SECONDARY), opacity=MOOD_OVERLAY_OPACITY),
        Circle(cx, CANVAS_H - 120, 60, fill=Paint(ColorRole.ACCENT), opacity=MOOD_OVERLAY_OPACITY),
        Circle(cx + 50, CANVAS_H - 90, 60, fill=Paint(ColorRole.PRIMARY), opacity=MOOD_OVERLAY_OPACITY),
    ]


def _strategy_motif(frame: Frame) -> list:
    cx, cy = frame.width - 90, 90
    paint = Paint(ColorRole.PRIMARY)
    return [
        Circle(cx, cy, r, stroke=paint, stroke_width=2, opacity=MOOD_OVERLAY_OPACITY * 2)
        for r in (70, 48, 26)
    ] + [Circle(cx, cy, 6, fill=paint, opacity=MOOD_OVERLAY_OPACITY * 3)]


_MOOD_MOTIFS = {
    ContentMood.GROWTH: _growth_motif,
    ContentMood.RISK: _risk_motif,
    ContentMood.TECH: _tech_motif,
    ContentMood.PEOPLE: _people_motif,
    ContentMood.STRATEGY: _strategy_motif,
}


def accent_bar(mood: ContentMood, frame: Frame) -> Optional[Rect]:
    """Edge accent shape, one per mood."""
    w = frame.width
    if mood == ContentMood.GROWTH:
        return Rect(
            0,
            CANVAS_H - 4,
            w,
            4,
            fill=Gradient(
                "linear",
                "90deg",
                ((Paint(ColorRole.SUCCESS, 0.6), 0), (Paint(ColorRole.SUCCESS, 0), 100)),
            ),
        )
    if mood == ContentMood.RISK:
        return Rect(0, 0, w, 4, fill=Paint(ColorRole.ERROR, 0.6))
    if mood == ContentMood.TECH:
        return Rect(w - PAD - 120, 24, 120, 4, fill=Paint(ColorRole.ACCENT, 0.6), radius="2px")
    if mood == ContentMood.PEOPLE:
        return Rect(PAD, CANVAS_H - 24, 160, 6, fill=Paint(ColorRole.SECONDARY, 0.5), radius="3px")
    if mood == ContentMood.STRATEGY:
        return Rect(w - 4, 0, 4, CANVAS_H, fill=Paint(ColorRole.PRIMARY, 0.6))
    return None


def apply_mood(scene: Scene, mood: ContentMood, frame: Frame) -> None:
    """Append the mood's overlay motif and accent bar behind the content."""
    motif = _MOOD_MOTIFS.get(mood)
    if motif is None:
        return
    scene.background.extend(motif(frame))
    bar = accent_bar(mood, frame)
    if bar is not None:
        scene.background.append(bar)
    logger.debug("Mood %s decorations added", mood.value)


# ── Image overlay ─────────────────────────────────────────────────


def apply_image_overlay(scene: Scene, image_url: Optional[str]) -> None:
    """Right-aligned image panel whose left edge fades into the background."""
    if not image_url:
        return
    x = CANVAS_W - IMAGE_PANEL_W
    scene.overlay.append(ImageBlock(x, 0, IMAGE_PANEL_W, CANVAS_H, image_url))
    scene.overlay.append(
        Rect(
            x,
            0,
            IMAGE_FADE_W,
            CANVAS_H,
            fill=Gradient(
                "linear",
                "90deg",
                ((Paint(ColorRole.BACKGROUND), 0), (Paint(ColorRole.BACKGROUND, 0), 100)),
            ),
        )
    )


# ── Page number ───────────────────────────────────────────────────


def apply_page_number(scene: Scene, page_number: Optional[int], total_slides: Optional[int]) -> None:
    if not page_number or not total_slides:
        return
    scene.overlay.append(
        TextBlock(
            CANVAS_W - 32 - 80,
            CANVAS_H - 18 - 16,
            80,
            16,
            f"{page_number} / {total_slides}",
            11,
            Paint(ColorRole.TEXT, 0.35),
            align="right",
            line_height=1.4,
            font_family="system-ui,sans-serif",
        )
    )
