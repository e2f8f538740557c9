"""
src/renderer/layout.py — Shared layout primitives

Grid allocation, font-size steps and the title block every builder uses.
All numbers are pixels on the 1280x720 canvas.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from src.compose.models import ColorPalette
from src.renderer.scene import (
    CANVAS_H,
    CANVAS_W,
    ColorRole,
    Paint,
    Rect,
    Scene,
    TextBlock,
    px,
)

# ── Geometry Constants ────────────────────────────────────────────

PAD = 53
IMAGE_CONTENT_W = 870  # ~68% of the canvas when an image panel is shown
IMAGE_PANEL_W = round(CANVAS_W * 0.3)

UNDERLINE_W = 60
UNDERLINE_H = 3
TITLE_GAP = 24

# Title font steps by character count
TITLE_FONT_STEPS = ((30, 32), (50, 29), (70, 26), (90, 23))
TITLE_FONT_MIN = 20

ACCENT_ROTATION = (
    ColorRole.ACCENT,
    ColorRole.PRIMARY,
    ColorRole.SECONDARY,
    ColorRole.SUCCESS,
    ColorRole.WARNING,
    ColorRole.ERROR,
)


@dataclass(frozen=True)
class Frame:
    """Drawable area for one slide."""

    palette: ColorPalette
    has_image: bool = False

    @property
    def width(self) -> int:
        return IMAGE_CONTENT_W if self.has_image else CANVAS_W

    @property
    def height(self) -> int:
        return CANVAS_H

    @property
    def inner_width(self) -> int:
        return self.width - 2 * PAD

    @property
    def right(self) -> int:
        return self.width - PAD

    @property
    def center_x(self) -> float:
        return self.width / 2


@dataclass(frozen=True)
class Cell:
    x: int
    y: int
    w: int
    h: int
    row: int
    col: int


# ── Fonts ─────────────────────────────────────────────────────────


def title_font_size(title: str) -> int:
    length = len(title or "")
    for limit, size in TITLE_FONT_STEPS:
        if length <= limit:
            return size
    return TITLE_FONT_MIN


def fit_font(count: int, steps: tuple[tuple[int, int], ...], floor: int) -> int:
    """First size whose item-count limit covers count, else floor."""
    for limit, size in steps:
        if count <= limit:
            return size
    return floor


def estimate_lines(text: str, size: int, width: float) -> int:
    """Rough wrapped line count, assuming ~0.55em average glyph width."""
    if not text:
        return 0
    per_line = max(1, int(width / max(1.0, size * 0.55)))
    return max(1, math.ceil(len(text) / per_line))


# ── Grid ──────────────────────────────────────────────────────────


def grid_columns(count: int, single_row_max: int = 4, max_cols: int = 4) -> int:
    """Columns for count items: one row up to single_row_max, then two+ rows."""
    count = max(1, count)
    if count <= single_row_max:
        return count
    return min(max_cols, math.ceil(count / 2))


def allocate_grid(
    count: int,
    cols: int,
    left: float,
    top: float,
    width: float,
    height: float,
    gap_x: float = 24,
    gap_y: float = 24,
    cell_h: Optional[float] = None,
    center_rows: bool = True,
) -> list[Cell]:
    """Lay count cells out in cols columns inside the given box.

    Cell height defaults to filling the box. Partial last rows are centred
    when center_rows is set.
    """
    if count <= 0:
        return []
    cols = max(1, min(cols, count))
    rows = math.ceil(count / cols)
    cell_w = max(1.0, (width - (cols - 1) * gap_x) / cols)
    fill_h = max(1.0, (height - (rows - 1) * gap_y) / rows)
    ch = min(cell_h, fill_h) if cell_h else fill_h
    total_h = rows * ch + (rows - 1) * gap_y
    start_y = top + max(0.0, (height - total_h) / 2)

    cells = []
    for i in range(count):
        row, col = divmod(i, cols)
        in_row = min(cols, count - row * cols)
        offset = (cols - in_row) * (cell_w + gap_x) / 2 if center_rows else 0
        cells.append(
            Cell(
                x=px(left + offset + col * (cell_w + gap_x)),
                y=px(start_y + row * (ch + gap_y)),
                w=px(cell_w),
                h=px(ch),
                row=row,
                col=col,
            )
        )
    return cells


# ── Colour rotation ───────────────────────────────────────────────


def accent_cycle(palette: ColorPalette) -> list[ColorRole]:
    """Accent roles in rotation order, skipping colours the palette lacks."""
    return [role for role in ACCENT_ROTATION if getattr(palette, role.value, None)]


def rotate(roles: list[ColorRole], i: int) -> ColorRole:
    return roles[i % len(roles)] if roles else ColorRole.ACCENT


# ── Title block ───────────────────────────────────────────────────


def add_title(
    scene: Scene,
    title: str,
    frame: Frame,
    align: str = "center",
    left: Optional[float] = None,
    top: float = PAD,
    underline: Optional[Paint] = None,
    width: Optional[float] = None,
) -> int:
    """Title text plus accent underline; returns the first free y below them."""
    size = title_font_size(title)
    x = PAD if left is None else left
    width = frame.right - x if width is None else width
    lines = min(2, estimate_lines(title, size, width)) or 1
    height = math.ceil(size * 1.2 * lines)
    scene.add(
        TextBlock(
            x,
            top,
            width,
            height,
            title,
            size,
            Paint(ColorRole.TITLE),
            weight="bold",
            align=align,
            line_height=1.2,
            css_class="slide-title",
        )
    )
    bar_y = top + height + 8
    bar_x = x + (width - UNDERLINE_W) / 2 if align == "center" else x
    scene.add(
        Rect(
            bar_x,
            bar_y,
            UNDERLINE_W,
            UNDERLINE_H,
            fill=underline or Paint(ColorRole.ACCENT),
            radius="2px",
        )
    )
    return px(bar_y + UNDERLINE_H + TITLE_GAP)


def text_box(
    x: float,
    y: float,
    w: float,
    h: float,
    text: str,
    size: int,
    role: ColorRole = ColorRole.TEXT,
    **kwargs,
) -> TextBlock:
    return TextBlock(x, y, max(0.0, w), max(0.0, h), text, size, Paint(role), **kwargs)
