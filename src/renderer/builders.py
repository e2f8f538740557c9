"""
src/renderer/builders.py — Geometry Builders

One builder per composed slide type. Each takes the normalized slide
content and a Frame and appends primitives to a Scene. Builders never
raise on thin content: no items means a title-only slide.

Variants are picked from content (see src.compose.variants), so the same
slide always gets the same layout.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Optional

from src.compose.extractors import (
    detect_comparison_groups,
    extract_hero_metric,
    parse_card,
    parse_member,
    parse_milestones,
    parse_table,
)
from src.compose.models import ParsedTable, SlideInput, SlideType
from src.compose.normalizer import (
    RE_BULLET,
    apply_count_cap,
    clean_line,
    normalize,
    split_prose_to_items,
    strip_markdown,
)
from src.compose.variants import variant_for
from src.renderer.layout import (
    PAD,
    Frame,
    accent_cycle,
    add_title,
    allocate_grid,
    estimate_lines,
    fit_font,
    grid_columns,
    rotate,
    text_box,
)
from src.renderer.scene import (
    CANVAS_H,
    Circle,
    ColorRole,
    Gradient,
    Line,
    Paint,
    Polygon,
    Rect,
    Scene,
    Stroke,
    SvgText,
    TextBlock,
    px,
)

logger = logging.getLogger(__name__)

H = CANVAS_H

# Per-type item caps
MAX_CONTENT_ITEMS = 8
MAX_FEATURES = 6
MAX_MILESTONES = 5
MAX_STEPS = 6
MAX_MEMBERS = 8
MAX_NODES = 6
MAX_LIST_ITEMS = 6
MAX_CTA_ACTIONS = 3
MAX_MARKET_LINES = 6
MAX_TABLE_ROWS = 8
COMPARISON_SCAN_LINES = 24
DEFAULT_CTA_LABEL = "Get Started →"

RE_PERCENT = re.compile(r"^(\d{1,3}(?:\.\d+)?)\s?%$")
RE_MARKET_TIER = re.compile(r"^(TAM|SAM|SOM)\b\s*[:\-—–=]?\s*(.*)$", re.IGNORECASE)
RE_ATTRIBUTION_LEAD = re.compile(r"^[-—–]")
RE_ATTRIBUTION_ROLE = re.compile(
    r"\b(CEO|CTO|CFO|COO|Author|Founder|Co-Founder|VP|Director|Manager|Head of)\b",
    re.IGNORECASE,
)
RE_SPLIT_CLAUSES = re.compile(r"(?<=\.)\s+|;\s*|,\s*(?:and|but|while|whereas)\s+", re.IGNORECASE)


# ── Slide content ─────────────────────────────────────────────────


@dataclass
class SlideContent:
    """Everything a builder reads, derived once per slide."""

    title: str
    body: str
    lines: list[str]
    table: Optional[ParsedTable]
    variant: int
    slide_type: SlideType
    button_label: str = DEFAULT_CTA_LABEL

    @classmethod
    def from_input(cls, slide: SlideInput, button_label: str = DEFAULT_CTA_LABEL) -> "SlideContent":
        body = slide.body or ""
        return cls(
            title=strip_markdown(slide.title or ""),
            body=body,
            lines=normalize(body),
            table=parse_table(body),
            variant=variant_for(slide.slide_type, slide.title or "", body),
            slide_type=slide.slide_type,
            button_label=button_label,
        )


def _title_only(scene: Scene, content: SlideContent, frame: Frame) -> None:
    add_title(scene, content.title, frame)
    scene.item_count = 0


def _avail(top: float) -> int:
    return px(H - PAD - top)


def _card(
    x: float,
    y: float,
    w: float,
    h: float,
    top_role: Optional[ColorRole] = None,
    radius: str = "16px",
    border_width: float = 1,
) -> Rect:
    return Rect(
        x,
        y,
        w,
        h,
        fill=Paint(ColorRole.SURFACE),
        border=Stroke(border_width, Paint(ColorRole.BORDER)),
        border_top=Stroke(4, Paint(top_role)) if top_role else None,
        radius=radius,
    )


def _arrow(x1: float, y: float, x2: float) -> Optional[Line]:
    if x2 - x1 < 8:
        return None
    return Line(x1, y, x2, y, Paint(ColorRole.BORDER), width=2, marker_end=True)


def _connect_row(scene: Scene, cells, center_y_of) -> None:
    """Arrow between horizontally adjacent cells of the same row."""
    for a, b in zip(cells, cells[1:]):
        if a.row != b.row:
            continue
        arrow = _arrow(a.x + a.w + 4, center_y_of(a), b.x - 4)
        if arrow:
            scene.add(arrow)


# ── Tables ────────────────────────────────────────────────────────


def _render_table(
    scene: Scene,
    table: ParsedTable,
    frame: Frame,
    top: float,
    left: float = PAD,
    role: ColorRole = ColorRole.PRIMARY,
) -> int:
    """Header row + zebra rows, with lead text above and takeaway/source below."""
    width = frame.right - left
    y = top
    if table.lead_text:
        scene.add(text_box(left, y, width, 48, table.lead_text, 16, opacity=0.8, line_height=1.45))
        y += 56

    footer_h = (40 if table.takeaway else 0) + (24 if table.source else 0)
    cols = max(1, table.column_count)
    rows = table.rows[:MAX_TABLE_ROWS]
    avail = max(0, H - PAD - footer_h - y)
    row_h = max(28, min(52, avail / (len(rows) + 1)))
    rows = rows[: max(0, int(avail // row_h) - 1)]
    size = 16 if row_h >= 44 else 14 if row_h >= 34 else 12
    col_w = width / cols

    scene.add(
        Rect(
            left,
            y,
            width,
            row_h,
            fill=Paint(role, 0.12),
            border_top=Stroke(3, Paint(role)),
            radius="8px 8px 0 0",
        )
    )
    for j, header in enumerate(table.headers[:cols]):
        scene.add(
            text_box(
                left + j * col_w + 12,
                y,
                col_w - 24,
                row_h,
                header,
                size,
                ColorRole.EMPHASIS,
                weight="bold",
                center_vertically=True,
            )
        )
    y += row_h

    for i, row in enumerate(rows):
        scene.add(
            Rect(
                left,
                y,
                width,
                row_h,
                fill=Paint(ColorRole.SURFACE) if i % 2 else None,
                border=Stroke(1, Paint(ColorRole.BORDER, 0.3)),
            )
        )
        for j, cell in enumerate(row[:cols]):
            scene.add(
                text_box(
                    left + j * col_w + 12,
                    y,
                    col_w - 24,
                    row_h,
                    cell,
                    size,
                    weight="bold" if j == 0 else "normal",
                    opacity=0.9,
                    center_vertically=True,
                )
            )
        y += row_h

    if table.takeaway:
        scene.add(
            text_box(left, y + 12, width, 28, table.takeaway, 16, ColorRole.EMPHASIS, weight="bold")
        )
        y += 40
    if table.source:
        scene.add(text_box(left, y + 4, width, 20, f"Source: {table.source}", 11, opacity=0.55))
    scene.item_count = len(rows)
    return px(y)


# ── MARKET_SIZING ─────────────────────────────────────────────────


def _build_market_sizing(scene: Scene, content: SlideContent, frame: Frame) -> None:
    """Concentric TAM/SAM/SOM circles right of centre, text column left."""
    col_w = round(frame.width * 0.4)
    top = add_title(scene, content.title, frame, align="left", width=col_w)

    tiers: dict[str, str] = {}
    text_lines = []
    for line in content.lines:
        m = RE_MARKET_TIER.match(line)
        if m and m.group(1).upper() not in tiers:
            tiers[m.group(1).upper()] = m.group(2).strip()
        text_lines.append(line)

    max_rows = max(0, _avail(top) // 52)
    text_lines = apply_count_cap(text_lines, content.title, min(MAX_MARKET_LINES, max_rows))
    for i, line in enumerate(text_lines):
        scene.add(
            text_box(PAD, top + i * 52, col_w, 48, line, 20, opacity=0.85, line_height=1.2)
        )

    scale = 0.8 if frame.has_image else 1.0
    cx = round(frame.width * 0.72)
    cy = round(H * 0.52)
    rings = (("TAM", 210, 0.08), ("SAM", 140, 0.12), ("SOM", 80, 0.2))
    for label, radius, opacity in rings:
        scene.add(Circle(cx, cy, radius * scale, fill=Paint(ColorRole.PRIMARY), opacity=opacity))
    for label, radius, _ in rings:
        label_y = cy - (radius - 22) * scale if label != "SOM" else cy - 6
        scene.add(
            SvgText(cx, label_y, label, 14, Paint(ColorRole.PRIMARY), letter_spacing="2")
        )
        if tiers.get(label):
            scene.add(
                SvgText(
                    cx,
                    label_y + 20,
                    tiers[label][:24],
                    13,
                    Paint(ColorRole.TEXT),
                    weight="normal",
                    opacity=0.75,
                )
            )
    scene.item_count = len(text_lines)


# ── TIMELINE ──────────────────────────────────────────────────────


def _build_timeline(scene: Scene, content: SlideContent, frame: Frame) -> None:
    """Milestones along a horizontal line; zigzag variant alternates sides."""
    lines = split_prose_to_items(content.lines, 3)
    milestones = apply_count_cap(parse_milestones(lines), content.title, MAX_MILESTONES)
    if not milestones:
        _title_only(scene, content, frame)
        return

    top = add_title(scene, content.title, frame)
    count = len(milestones)
    zigzag = content.variant == 1 and count >= 3
    roles = accent_cycle(frame.palette)
    gap = 16

    if zigzag:
        card_w = min(260, (2 * frame.inner_width - gap * (count - 1)) / (count + 1))
    elif count == 1:
        card_w = min(320, frame.inner_width)
    else:
        card_w = min(220, (frame.inner_width - gap * (count - 1)) / count)
    card_w = max(40, card_w)

    start_x = PAD + card_w / 2
    end_x = frame.right - card_w / 2
    spacing = (end_x - start_x) / (count - 1) if count > 1 else 0
    line_y = round(top + (H - PAD - top) / 2) if zigzag else round(H * 0.45)
    line_y = max(line_y, top + 40)

    scene.add(
        Line(
            start_x if count > 1 else PAD,
            line_y,
            end_x if count > 1 else frame.right,
            line_y,
            Paint(ColorRole.BORDER),
            width=2,
        )
    )

    body_size = fit_font(count, ((3, 17), (4, 15)), 14) - (1 if frame.has_image else 0)
    for i, ms in enumerate(milestones):
        cx = frame.center_x if count == 1 else start_x + i * spacing
        role = rotate(roles, i)
        is_last = i == count - 1
        node_paint = Paint(ColorRole.ACCENT if is_last else ColorRole.PRIMARY)
        scene.add(Circle(cx, line_y, 14, stroke=node_paint.at(0.3), stroke_width=2))
        scene.add(Circle(cx, line_y, 8, fill=node_paint))

        if zigzag:
            above = i % 2 == 0
            card_h = max(60, min(160, line_y - 40 - top, H - PAD - line_y - 40))
            card_y = line_y - 40 - card_h if above else line_y + 40
            conn_from, conn_to = (line_y - 8, card_y + card_h) if above else (line_y + 8, card_y)
            scene.add(Line(cx, conn_from, cx, conn_to, Paint(role, 0.5), width=2))
            scene.add(_card(cx - card_w / 2, card_y, card_w, card_h, top_role=role, radius="12px"))
            text_y = card_y + 14
            if ms.date:
                scene.add(
                    text_box(
                        cx - card_w / 2 + 12, text_y, card_w - 24, 22, ms.date, 14, role,
                        weight="bold", letter_spacing="1px",
                    )
                )
                text_y += 26
            scene.add(
                text_box(
                    cx - card_w / 2 + 12,
                    text_y,
                    card_w - 24,
                    card_y + card_h - text_y - 10,
                    ms.text,
                    body_size,
                    opacity=0.85,
                )
            )
            continue

        if ms.date:
            scene.add(
                text_box(
                    cx - card_w / 2,
                    line_y - 50,
                    card_w,
                    24,
                    ms.date,
                    14,
                    ColorRole.PRIMARY,
                    weight="bold",
                    align="center",
                    letter_spacing="1px",
                )
            )
        card_y = line_y + 28
        card_h = H - PAD - card_y
        scene.add(Line(cx, line_y + 8, cx, card_y, Paint(ColorRole.BORDER), width=1))
        scene.add(_card(cx - card_w / 2, card_y, card_w, card_h, top_role=role, radius="12px"))
        scene.add(
            text_box(
                cx - card_w / 2 + 12,
                card_y + 16,
                card_w - 24,
                card_h - 28,
                ms.text,
                body_size,
                align="center",
                opacity=0.85,
            )
        )
    scene.item_count = count


# ── METRICS_HIGHLIGHT ─────────────────────────────────────────────


def hero_font_size(value: str) -> int:
    n = len(value)
    return 80 if n <= 10 else 56 if n <= 25 else 38 if n <= 50 else 28


def _percent(value: str) -> Optional[float]:
    m = RE_PERCENT.match(value.strip())
    if not m:
        return None
    pct = float(m.group(1))
    return pct if 0 <= pct <= 100 else None


def _build_metrics_highlight(scene: Scene, content: SlideContent, frame: Frame) -> None:
    """Hero number with a progress ring or decorative circles, then secondary metrics."""
    if not content.lines:
        _title_only(scene, content, frame)
        return

    hero = extract_hero_metric(content.lines, content.title)
    size = hero_font_size(hero.value)
    hero_y = round(H * (0.22 if size >= 56 else 0.14))
    cx = frame.center_x
    hero_lines = min(2, estimate_lines(hero.value, size, frame.inner_width))
    hero_h = math.ceil(size * 1.15 * hero_lines)

    scene.background.append(
        Rect(
            0,
            0,
            frame.width,
            H,
            fill=Gradient(
                "radial",
                "ellipse 800px 600px at 50% 40%",
                ((Paint(ColorRole.PRIMARY, 0.08), 0), (Paint(ColorRole.BACKGROUND, 0), 70)),
            ),
        )
    )

    pct = _percent(hero.value)
    if pct is not None and size >= 56:
        radius = round(size * 1.25)
        ring_cy = hero_y + hero_h / 2
        circumference = 2 * math.pi * radius
        scene.add(
            Circle(cx, ring_cy, radius, stroke=Paint(ColorRole.BORDER, 0.3), stroke_width=10)
        )
        scene.add(
            Circle(
                cx,
                ring_cy,
                radius,
                stroke=Paint(ColorRole.ACCENT),
                stroke_width=10,
                dasharray=circumference,
                dashoffset=circumference * (1 - pct / 100),
                rotate=True,
            )
        )
        label_y = ring_cy + radius + 24
    else:
        deco = min(size * 1.2, 100)
        deco_cy = hero_y + hero_h / 2
        scene.add(
            Circle(cx, deco_cy, deco * 0.9, stroke=Paint(ColorRole.ACCENT), stroke_width=2, opacity=0.08),
            Circle(cx, deco_cy, deco * 0.7, stroke=Paint(ColorRole.PRIMARY), stroke_width=1.5, opacity=0.06),
        )
        label_y = hero_y + hero_h + 16

    scene.add(
        text_box(
            PAD,
            hero_y,
            frame.inner_width,
            hero_h,
            hero.value,
            size,
            ColorRole.METRIC,
            weight="bold",
            align="center",
            line_height=1.1,
            css_class="big-number",
        )
    )

    label = hero.label or (content.title if hero.value != content.title else "")
    if label:
        scene.add(
            text_box(
                PAD + 100,
                label_y,
                frame.inner_width - 200,
                64,
                label,
                24,
                weight="bold",
                align="center",
                line_height=1.3,
            )
        )
        label_y += 40 if len(label) * 13 < frame.inner_width - 200 else 68
    scene.add(
        Rect(cx - 40, label_y, 80, 3, fill=Paint(ColorRole.ACCENT), radius="2px")
    )

    sec_y = round(H * 0.72)
    if hero.secondary and sec_y < label_y + 40:
        sec_y = label_y + 40
    support = " ".join(hero.support)
    support_bottom = sec_y - 16 if hero.secondary else H - PAD
    if support and support_bottom - (label_y + 20) >= 24:
        scene.add(
            text_box(
                PAD + 160,
                label_y + 20,
                frame.inner_width - 320,
                support_bottom - (label_y + 20),
                support,
                17,
                align="center",
                line_height=1.5,
                opacity=0.75,
            )
        )

    secondary = hero.secondary[:3]
    if secondary and sec_y + 80 <= H:
        cols = len(secondary)
        col_w = (frame.inner_width - 200) / cols
        for i, metric in enumerate(secondary):
            x = PAD + 100 + i * col_w
            scene.add(
                text_box(x, sec_y, col_w, 36, metric.value, 28, ColorRole.METRIC, weight="bold", align="center")
            )
            if metric.label:
                scene.add(
                    text_box(x, sec_y + 38, col_w, 20, metric.label, 13, align="center", opacity=0.65)
                )
            bar_w = col_w * 0.6
            fill_ratio = (_percent(metric.value) or 60) / 100
            bar_x = x + (col_w - bar_w) / 2
            scene.add(
                Rect(bar_x, sec_y + 64, bar_w, 4, fill=Paint(ColorRole.BORDER, 0.3), radius="2px"),
                Rect(
                    bar_x,
                    sec_y + 64,
                    bar_w * fill_ratio,
                    4,
                    fill=Paint(ColorRole.ACCENT, 0.7),
                    radius="2px",
                ),
            )
    scene.item_count = 1 + len(secondary)


# ── COMPARISON ────────────────────────────────────────────────────


def _marked_lines(body: str, limit: int) -> list[tuple[str, bool]]:
    """Cleaned lines paired with whether the raw line carried a bullet."""
    out = []
    for raw in (body or "").split("\n"):
        cleaned = clean_line(raw)
        if cleaned is None:
            continue
        out.append((cleaned, bool(RE_BULLET.match(raw))))
        if len(out) >= limit:
            break
    return out


def _build_comparison(scene: Scene, content: SlideContent, frame: Frame) -> None:
    """Table, else multi-group cards, else a two-column VS layout."""
    if not content.lines:
        _title_only(scene, content, frame)
        return
    top = add_title(scene, content.title, frame)

    if content.table:
        _render_table(scene, content.table, frame, top)
        return

    groups = detect_comparison_groups(normalize(content.body, COMPARISON_SCAN_LINES))
    if len(groups) >= 3:
        _comparison_cards(scene, content, frame, top, groups)
    else:
        _comparison_vs(scene, content, frame, top)


def _comparison_cards(scene: Scene, content: SlideContent, frame: Frame, top: int, groups) -> None:
    groups = apply_count_cap(groups, content.title, len(groups))
    roles = accent_cycle(frame.palette)
    cells = allocate_grid(len(groups), len(groups), PAD, top, frame.inner_width, _avail(top))
    size = 17 if len(groups) <= 3 else 15
    rendered = 0
    for i, (group, cell) in enumerate(zip(groups, cells)):
        role = rotate(roles, i)
        scene.add(_card(cell.x, cell.y, cell.w, cell.h))
        scene.add(
            Rect(cell.x, cell.y, cell.w, 52, fill=Paint(role, 0.12), radius="16px 16px 0 0")
        )
        scene.add(
            text_box(cell.x + 20, cell.y, cell.w - 40, 52, group.name, 17, role, weight="bold", center_vertically=True)
        )
        step = 46
        max_items = max(0, (cell.h - 80) // step)
        for k, item in enumerate(group.items[:max_items]):
            scene.add(
                text_box(
                    cell.x + 20,
                    cell.y + 68 + k * step,
                    cell.w - 40,
                    step - 4,
                    item,
                    size,
                    opacity=0.85,
                    marker=("•", Paint(role)),
                )
            )
            rendered += 1
    scene.item_count = len(groups)
    logger.debug("Comparison rendered as %d group cards (%d items)", len(groups), rendered)


def _comparison_vs(scene: Scene, content: SlideContent, frame: Frame, top: int) -> None:
    marked = _marked_lines(content.body, MAX_CONTENT_ITEMS)
    vs_idx = next(
        (i for i, (text, _) in enumerate(marked) if text.lower().strip() in ("vs", "vs.")), -1
    )
    if vs_idx > -1:
        left, right = marked[:vs_idx], marked[vs_idx + 1 :]
    else:
        expanded = marked
        if len(marked) <= 3:
            expanded = []
            for text, bullet in marked:
                if len(text) > 60:
                    expanded.extend(
                        (part.strip(), bullet) for part in RE_SPLIT_CLAUSES.split(text) if part.strip()
                    )
                else:
                    expanded.append((text, bullet))
        expanded = expanded[:MAX_CONTENT_ITEMS]
        mid = math.ceil(len(expanded) / 2)
        left, right = expanded[:mid], expanded[mid:]

    def side(entries: list[tuple[str, bool]], default: str) -> tuple[str, list[str]]:
        items = [text for text, _ in entries]
        header = default
        if entries and not entries[0][1]:
            header = items.pop(0)
        if not items and header != default:
            items.append(header)
        return header, items

    left_title, left_items = side(left, "Before")
    right_title, right_items = side(right, "After")

    gap = 40
    col_w = (frame.inner_width - gap) / 2
    card_y = top
    card_h = max(80, H - card_y - PAD)
    right_x = PAD + col_w + gap
    step = 50
    max_items = max(0, int((card_h - 80) // step))
    size = 20 if max(len(left_items), len(right_items)) <= 5 else 17

    rendered = 0
    for x, title, items, glyph, emphasis in (
        (PAD, left_title, left_items, "•", False),
        (right_x, right_title, right_items, "✓", True),
    ):
        scene.add(
            Rect(
                x,
                card_y,
                col_w,
                card_h,
                fill=Paint(ColorRole.SURFACE),
                border=Stroke(2 if emphasis else 1, Paint(ColorRole.PRIMARY if emphasis else ColorRole.BORDER)),
                radius="16px",
            ),
            Rect(
                x,
                card_y,
                col_w,
                52,
                fill=Paint(ColorRole.PRIMARY, 0.15 if emphasis else 0.1),
                radius="16px 16px 0 0",
            ),
            text_box(x + 24, card_y, col_w - 48, 52, title, 17, ColorRole.PRIMARY, weight="bold", center_vertically=True),
        )
        for k, item in enumerate(items[:max_items]):
            scene.add(
                text_box(
                    x + 24,
                    card_y + 68 + k * step,
                    col_w - 48,
                    48,
                    item,
                    size,
                    opacity=0.85,
                    marker=(glyph, Paint(ColorRole.ACCENT)),
                )
            )
            rendered += 1

    mid_x = PAD + col_w + gap / 2
    vs_cy = card_y + card_h / 2
    scene.add(
        Line(mid_x - 60, vs_cy, mid_x - 32, vs_cy, Paint(ColorRole.BORDER), width=1.5, opacity=0.3, marker_end=True),
        Line(mid_x + 32, vs_cy, mid_x + 60, vs_cy, Paint(ColorRole.BORDER), width=1.5, opacity=0.3, marker_start=True),
        Circle(mid_x, vs_cy, 28, fill=Paint(ColorRole.BACKGROUND), stroke=Paint(ColorRole.ACCENT), stroke_width=2, opacity=0.9),
        Circle(mid_x, vs_cy, 22, fill=Paint(ColorRole.ACCENT, 0.1)),
        SvgText(mid_x, vs_cy + 5, "VS", 13, Paint(ColorRole.ACCENT), letter_spacing="1"),
    )
    scene.item_count = rendered


# ── TEAM ──────────────────────────────────────────────────────────


def _initials(name: str) -> str:
    return "".join(w[0] for w in name.split() if w)[:2].upper()


def _build_team(scene: Scene, content: SlideContent, frame: Frame) -> None:
    """Member cards with avatar circles and computed initials."""
    members = apply_count_cap([parse_member(line) for line in content.lines], content.title, MAX_MEMBERS)
    if not members:
        _title_only(scene, content, frame)
        return

    top = add_title(scene, content.title, frame)
    count = len(members)
    cols = count if count <= 3 else 3 if count <= 6 else 4
    rows = math.ceil(count / cols)
    gap_x, gap_y = 32, 24
    card_w = min(260, (frame.inner_width - (cols - 1) * gap_x) / cols)
    card_h = 220 if rows == 1 else 190
    total_w = cols * card_w + (cols - 1) * gap_x
    left = PAD + (frame.inner_width - total_w) / 2
    cells = allocate_grid(count, cols, left, top, total_w, _avail(top), gap_x, gap_y, cell_h=card_h)
    roles = accent_cycle(frame.palette)
    name_size = 16 if rows == 1 else 15
    avatar_r = 32 if cells and cells[0].h >= 180 else 24

    for i, (member, cell) in enumerate(zip(members, cells)):
        role = rotate(roles, i)
        scene.add(_card(cell.x, cell.y, cell.w, cell.h))
        text_top = cell.y + 24 + 2 * avatar_r + 12
        scene.add(
            text_box(cell.x + 12, text_top, cell.w - 24, 24, member.title, name_size, weight="bold", align="center")
        )
        if member.desc:
            scene.add(
                text_box(
                    cell.x + 12,
                    text_top + 26,
                    cell.w - 24,
                    cell.y + cell.h - text_top - 34,
                    member.desc,
                    13,
                    align="center",
                    opacity=0.6,
                )
            )
        av_cx = cell.x + cell.w / 2
        av_cy = cell.y + 24 + avatar_r
        scene.add(
            Circle(av_cx, av_cy, avatar_r, fill=Paint(role, 0.15)),
            SvgText(av_cx, av_cy + 7, _initials(member.title), 18, Paint(role)),
        )
    scene.item_count = count


# ── FEATURE_GRID ──────────────────────────────────────────────────


def _build_feature_grid(scene: Scene, content: SlideContent, frame: Frame) -> None:
    """Card grid; variants: icon list, bento (one hero card + small cards)."""
    lines = split_prose_to_items(content.lines, 3)
    features = apply_count_cap([parse_card(line) for line in lines], content.title, MAX_FEATURES)
    features = [f for f in features if f.title]
    if not features:
        _title_only(scene, content, frame)
        return

    top = add_title(scene, content.title, frame)
    count = len(features)
    roles = accent_cycle(frame.palette)

    if content.variant == 2 and 3 <= count <= 5:
        _feature_bento(scene, features, frame, top, roles)
    elif content.variant == 1:
        _feature_list(scene, features, frame, top, roles)
    else:
        cols = 2 if count <= 4 else 3
        rows = math.ceil(count / cols)
        cells = allocate_grid(count, cols, PAD, top, frame.inner_width, _avail(top), cell_h=180 if rows > 1 else 220)
        desc_size = 15 if rows == 1 else 14
        for i, (feature, cell) in enumerate(zip(features, cells)):
            role = rotate(roles, i)
            _feature_card(scene, feature, cell.x, cell.y, cell.w, cell.h, role, 16, desc_size)
    scene.item_count = count


def _feature_card(scene, feature, x, y, w, h, role, title_size, desc_size) -> None:
    scene.add(
        _card(x, y, w, h, top_role=role),
        Rect(x + 24, y + 24, 36, 36, fill=Paint(role, 0.85), radius="8px"),
        text_box(x + 24, y + 72, w - 48, title_size * 1.4 + 2, feature.title, title_size, weight="bold"),
    )
    if feature.desc:
        desc_y = y + 72 + title_size * 1.4 + 6
        scene.add(
            text_box(x + 24, desc_y, w - 48, y + h - desc_y - 14, feature.desc, desc_size, line_height=1.5, opacity=0.8)
        )


def _feature_list(scene, features, frame, top, roles) -> None:
    count = len(features)
    cols = 1 if count <= 3 else 2
    cells = allocate_grid(count, cols, PAD, top, frame.inner_width, _avail(top), 32, 16, cell_h=110, center_rows=False)
    for i, (feature, cell) in enumerate(zip(features, cells)):
        role = rotate(roles, i)
        scene.add(
            text_box(
                cell.x,
                cell.y,
                44,
                44,
                str(i + 1),
                18,
                role,
                weight="bold",
                align="center",
                fill=Paint(role, 0.12),
                radius="50%",
                center_vertically=True,
            ),
            text_box(cell.x + 60, cell.y + 2, cell.w - 60, 24, feature.title, 17, weight="bold"),
        )
        if feature.desc:
            scene.add(
                text_box(cell.x + 60, cell.y + 30, cell.w - 60, cell.h - 34, feature.desc, 14, line_height=1.5, opacity=0.8)
            )


def _feature_bento(scene, features, frame, top, roles) -> None:
    gap = 24
    avail = _avail(top)
    hero_w = round(frame.inner_width * 0.4)
    _feature_card(scene, features[0], PAD, top, hero_w, avail, rotate(roles, 0), 22, 16)
    rest = features[1:]
    right_x = PAD + hero_w + gap
    cells = allocate_grid(len(rest), 2 if len(rest) > 1 else 1, right_x, top, frame.right - right_x, avail, gap, gap)
    for i, (feature, cell) in enumerate(zip(rest, cells), start=1):
        _feature_card(scene, feature, cell.x, cell.y, cell.w, cell.h, rotate(roles, i), 16, 14)


# ── PROCESS ───────────────────────────────────────────────────────


def _build_process(scene: Scene, content: SlideContent, frame: Frame) -> None:
    """Numbered steps; variants: card row(s), vertical rail, node flow."""
    steps = [parse_card(line, title_limit=50) for line in content.lines]
    steps = apply_count_cap([s for s in steps if s.title], content.title, MAX_STEPS)
    if not steps:
        _title_only(scene, content, frame)
        return

    top = add_title(scene, content.title, frame)
    roles = accent_cycle(frame.palette)
    if content.variant == 1:
        _process_rail(scene, steps, frame, top, roles)
    elif content.variant == 2:
        _process_flow(scene, steps, frame, top, roles)
    else:
        _process_cards(scene, steps, frame, top, roles)
    scene.item_count = len(steps)


def _step_badge(x, y, n, role, size=40) -> TextBlock:
    return text_box(
        x,
        y,
        size,
        size,
        f"{n:02d}",
        round(size * 0.42),
        role,
        weight="bold",
        align="center",
        fill=Paint(role, 0.15),
        radius="50%",
        center_vertically=True,
    )


def _process_cards(scene, steps, frame, top, roles) -> None:
    count = len(steps)
    cols = grid_columns(count, single_row_max=4, max_cols=3)
    rows = math.ceil(count / cols)
    cells = allocate_grid(count, cols, PAD, top, frame.inner_width, _avail(top), 40, 24, cell_h=300 if rows == 1 else 220)
    title_size = 16 if rows == 1 else 15
    desc_size = 15 if rows == 1 else 13
    for i, (step, cell) in enumerate(zip(steps, cells)):
        role = rotate(roles, i)
        scene.add(
            _card(cell.x, cell.y, cell.w, cell.h, top_role=role),
            _step_badge(cell.x + cell.w / 2 - 20, cell.y + 20, i + 1, role),
            text_box(cell.x + 16, cell.y + 74, cell.w - 32, 44, step.title, title_size, weight="bold", align="center", line_height=1.3),
        )
        if step.desc:
            scene.add(
                text_box(
                    cell.x + 16,
                    cell.y + 122,
                    cell.w - 32,
                    cell.h - 134,
                    step.desc,
                    desc_size,
                    align="center",
                    line_height=1.5,
                    opacity=0.8,
                )
            )
    _connect_row(scene, cells, lambda c: c.y + c.h / 2)


def _process_rail(scene, steps, frame, top, roles) -> None:
    count = len(steps)
    row_h = min(84, _avail(top) / count)
    rail_x = PAD + 22
    scene.add(
        Line(rail_x, top + 22, rail_x, top + (count - 1) * row_h + 22, Paint(ColorRole.BORDER), width=2)
    )
    for i, step in enumerate(steps):
        role = rotate(roles, i)
        y = top + i * row_h
        scene.add(_step_badge(PAD, y, i + 1, role, size=44))
        text_x = PAD + 64
        scene.add(text_box(text_x, y + 2, frame.right - text_x, 24, step.title, 17, weight="bold"))
        if step.desc and row_h >= 52:
            scene.add(
                text_box(text_x, y + 28, frame.right - text_x, row_h - 32, step.desc, 14, opacity=0.8)
            )


def _process_flow(scene, steps, frame, top, roles) -> None:
    count = len(steps)
    slot = frame.inner_width / count
    radius = max(16, min(40, slot / 2 - 16))
    cy = top + 20 + radius
    for i, step in enumerate(steps):
        role = rotate(roles, i)
        cx = PAD + slot * (i + 0.5)
        scene.add(
            Circle(cx, cy, radius, fill=Paint(role, 0.12), stroke=Paint(role), stroke_width=2),
            SvgText(cx, cy + 7, f"{i + 1:02d}", 18, Paint(role)),
        )
        if i < count - 1:
            arrow = _arrow(cx + radius + 6, cy, cx + slot - radius - 6)
            if arrow:
                scene.add(arrow)
        text_y = cy + radius + 20
        scene.add(
            text_box(cx - slot / 2 + 8, text_y, slot - 16, 44, step.title, 16, weight="bold", align="center", line_height=1.3)
        )
        if step.desc:
            scene.add(
                text_box(
                    cx - slot / 2 + 8,
                    text_y + 50,
                    slot - 16,
                    H - PAD - text_y - 50,
                    step.desc,
                    14,
                    align="center",
                    line_height=1.5,
                    opacity=0.8,
                )
            )


# ── PROBLEM / SOLUTION ────────────────────────────────────────────


def _side_bar_header(scene: Scene, content: SlideContent, frame: Frame, role: ColorRole, icon: str) -> int:
    bar = Paint(role)
    scene.add(Rect(0, 0, 6, H, fill=bar))
    x, y = PAD + 4, PAD
    if icon == "warning":
        scene.add(
            Polygon([(x + 16, y + 2), (x + 30, y + 28), (x + 2, y + 28)], stroke=bar, stroke_width=2),
            SvgText(x + 16, y + 24, "!", 16, bar),
        )
    else:
        scene.add(
            Circle(x + 16, y + 16, 14, stroke=bar, stroke_width=2),
            Polygon([(x + 10, y + 16), (x + 14, y + 22), (x + 24, y + 10)], stroke=bar, stroke_width=2.5, closed=False),
        )
    return add_title(scene, content.title, frame, align="left", left=PAD + 44, top=PAD + 4, underline=bar)


def _stacked_items(scene, items, frame, top, role, header: Optional[str] = None) -> None:
    y = top
    if header:
        scene.add(
            text_box(
                PAD + 32, y, frame.inner_width - 40, 20, header, 11,
                weight="bold", uppercase=True, letter_spacing="0.08em", opacity=0.6, padding_left=12,
            )
        )
        y += 32
    count = max(1, len(items))
    step = min(72, (H - PAD - y) / count)
    size = 18 if step >= 60 else 16 if step >= 44 else 14
    for i, item in enumerate(items):
        scene.add(
            text_box(
                PAD + 32,
                y + i * step,
                frame.inner_width - 40,
                step - 8,
                item,
                size,
                line_height=1.5,
                opacity=0.85,
                padding_left=12,
                border_left=Stroke(2, Paint(role, 0.3)),
            )
        )


def _build_problem(scene: Scene, content: SlideContent, frame: Frame) -> None:
    """Red side bar + warning glyph; list, table, or diagonal split variant."""
    role = ColorRole.ERROR
    top = _side_bar_header(scene, content, frame, role, "warning")
    if content.table:
        _render_table(scene, content.table, frame, top, left=PAD + 32, role=role)
        return

    lines = content.lines
    is_header = len(lines) > 2 and not re.search(r"[\d$€£¥]", lines[0]) and len(lines[0]) < 60
    header = lines[0] if is_header else None
    items = apply_count_cap(lines[1:] if is_header else lines, content.title, MAX_LIST_ITEMS)

    if content.variant == 1 and len(items) >= 2:
        _diagonal_split(scene, items, frame, top, role)
    else:
        _stacked_items(scene, items, frame, top, role, header)
    scene.item_count = len(items)


def _diagonal_split(scene, items, frame, top, role) -> None:
    mid = math.ceil(len(items) / 2)
    left_items, right_items = items[:mid], items[mid:]
    bottom = H - PAD
    split_x = PAD + frame.inner_width / 2
    scene.add(
        Polygon(
            [(PAD, top), (split_x + 40, top), (split_x - 40, bottom), (PAD, bottom)],
            fill=Paint(role, 0.06),
        ),
        Line(split_x + 40, top, split_x - 40, bottom, Paint(role, 0.4), width=2),
    )
    col_w = frame.inner_width / 2 - 72
    for column, x in ((left_items, PAD + 20), (right_items, split_x + 52)):
        step = min(96, (bottom - top - 20) / max(1, len(column)))
        for i, item in enumerate(column):
            scene.add(
                text_box(x, top + 20 + i * step, col_w, step - 12, item, 17, line_height=1.5, opacity=0.9,
                         marker=("•", Paint(role)))
            )


def _build_solution(scene: Scene, content: SlideContent, frame: Frame) -> None:
    """Green side bar + check glyph; list, table, or staircase variant."""
    role = ColorRole.SUCCESS
    top = _side_bar_header(scene, content, frame, role, "check")
    if content.table:
        _render_table(scene, content.table, frame, top, left=PAD + 32, role=role)
        return

    items = apply_count_cap(content.lines, content.title, MAX_LIST_ITEMS)
    if content.variant == 1 and len(items) >= 2:
        _staircase(scene, items, frame, top, role)
    else:
        _stacked_items(scene, items, frame, top, role)
    scene.item_count = len(items)


def _staircase(scene, items, frame, top, role) -> None:
    count = len(items)
    step_x = min(60, frame.inner_width * 0.35 / (count - 1))
    step_y = min(80, (H - PAD - top) / count)
    width = frame.inner_width - 32 - (count - 1) * step_x
    for i, item in enumerate(items):
        x = PAD + 32 + i * step_x
        y = top + i * step_y
        scene.add(
            Rect(x, y, width, step_y - 10, fill=Paint(role, 0.06), border_left=Stroke(3, Paint(role)), radius="8px"),
            Circle(x + 24, y + (step_y - 10) / 2, 11, stroke=Paint(role), stroke_width=2),
            Polygon(
                [(x + 19, y + (step_y - 10) / 2), (x + 23, y + (step_y - 10) / 2 + 5), (x + 30, y + (step_y - 10) / 2 - 5)],
                stroke=Paint(role),
                stroke_width=2,
                closed=False,
            ),
            text_box(x + 48, y + 8, width - 60, step_y - 26, item, 16, line_height=1.4, opacity=0.9),
        )


# ── CTA ───────────────────────────────────────────────────────────


def _build_cta(scene: Scene, content: SlideContent, frame: Frame) -> None:
    """Centred action card with arrow bullets and a button."""
    card_w = 560 if frame.has_image else 700
    card_h = 340
    card_x = (frame.width - card_w) / 2
    card_y = (H - card_h) / 2 + 10

    scene.background.append(
        Rect(
            0,
            0,
            frame.width,
            H,
            fill=Gradient(
                "radial",
                "ellipse 900px 700px at 50% 50%",
                ((Paint(ColorRole.ACCENT, 0.1), 0), (Paint(ColorRole.BACKGROUND, 0), 70)),
            ),
        )
    )
    scene.add(
        Rect(
            card_x,
            card_y,
            card_w,
            card_h,
            fill=Paint(ColorRole.SURFACE),
            border=Stroke(2, Paint(ColorRole.ACCENT)),
            radius="20px",
            shadow=("0 12px 48px", Paint(ColorRole.ACCENT, 0.15)),
        ),
        Rect(
            card_x,
            card_y,
            card_w,
            5,
            fill=Gradient("linear", "90deg", ((Paint(ColorRole.ACCENT), 0), (Paint(ColorRole.PRIMARY), 100))),
            radius="20px 20px 0 0",
        ),
        text_box(
            card_x + 24,
            card_y + 32,
            card_w - 48,
            40,
            content.title,
            28 if len(content.title) <= 40 else 22,
            ColorRole.TITLE,
            weight="bold",
            align="center",
            line_height=1.2,
            css_class="slide-title",
        ),
        Rect(card_x + card_w / 2 - 30, card_y + 78, 60, 3, fill=Paint(ColorRole.ACCENT), radius="2px"),
    )

    actions = apply_count_cap(content.lines, content.title, MAX_CTA_ACTIONS)
    for i, action in enumerate(actions):
        scene.add(
            text_box(
                card_x + 40,
                card_y + 110 + i * 44,
                card_w - 80,
                40,
                action,
                16,
                line_height=1.5,
                marker=("→", Paint(ColorRole.ACCENT)),
            )
        )

    btn_w = 180
    scene.add(
        text_box(
            card_x + (card_w - btn_w) / 2,
            card_y + card_h - 60,
            btn_w,
            40,
            content.button_label,
            14,
            ColorRole.EMPHASIS,
            weight="bold",
            align="center",
            letter_spacing="0.04em",
            fill=Paint(ColorRole.ACCENT, 0.12),
            radius="8px",
            center_vertically=True,
        )
    )
    scene.item_count = len(actions)


# ── CONTENT ───────────────────────────────────────────────────────


def _build_content(scene: Scene, content: SlideContent, frame: Frame) -> None:
    """Left accent bar + stacked cards that exactly fill the free height."""
    scene.add(Rect(PAD, 0, 4, H, fill=Paint(ColorRole.ACCENT)))
    top = add_title(scene, content.title, frame, align="left", left=PAD + 20)
    items = apply_count_cap(content.lines, content.title, MAX_CONTENT_ITEMS)
    if not items:
        scene.item_count = 0
        return

    gap = 12
    count = len(items)
    card_h = max(24, (_avail(top) - (count - 1) * gap) / count)
    size = 22 if card_h >= 74 else 18 if card_h >= 52 else 15
    card_x = PAD + 32
    card_w = frame.right - card_x
    for i, item in enumerate(items):
        y = top + i * (card_h + gap)
        text_h = min(card_h - 12, size * 1.4 * max(1, estimate_lines(item, size, card_w - 40)))
        scene.add(
            Rect(
                card_x,
                y,
                card_w,
                card_h,
                fill=Paint(ColorRole.SURFACE, 0.5),
                border=Stroke(1, Paint(ColorRole.BORDER, 0.3)),
                border_left=Stroke(4, Paint(ColorRole.ACCENT, 0.6)),
                radius="10px",
            ),
            text_box(card_x + 20, y + (card_h - text_h) / 2, card_w - 40, text_h, item, size, opacity=0.85),
        )
    scene.item_count = count


# ── QUOTE ─────────────────────────────────────────────────────────


def split_attribution(lines: list[str]) -> tuple[list[str], str]:
    """Separate a trailing `— Name, Role` line from the quote lines."""
    if len(lines) > 1:
        last = lines[-1]
        if RE_ATTRIBUTION_LEAD.match(last) or RE_ATTRIBUTION_ROLE.search(last):
            return lines[:-1], RE_ATTRIBUTION_LEAD.sub("", last).strip()
    return list(lines), ""


def _build_quote(scene: Scene, content: SlideContent, frame: Frame) -> None:
    """Decorative quote glyph, centred italic quote, attribution below."""
    if not content.lines:
        _title_only(scene, content, frame)
        return

    quote_lines, attribution = split_attribution(content.lines)
    quote = " ".join(quote_lines)
    size = 18 if len(quote) > 200 else 22 if len(quote) > 100 else 28
    quote_y = round(H * 0.3)
    attribution_y = H - PAD - 80
    width = frame.inner_width - 160

    scene.add(
        text_box(
            PAD + 40,
            quote_y - 80,
            120,
            160,
            "“",
            160,
            ColorRole.ACCENT,
            opacity=0.2,
            line_height=1,
            font_family="Georgia,serif",
        ),
        text_box(
            PAD + 80,
            quote_y,
            width,
            attribution_y - quote_y - 16,
            quote,
            size,
            italic=True,
            align="center",
            line_height=1.5,
        ),
    )
    if attribution:
        scene.add(
            text_box(
                PAD + 80,
                attribution_y,
                width,
                24,
                f"— {attribution}",
                14,
                align="center",
                opacity=0.6,
                letter_spacing="0.04em",
            )
        )
    scene.add(
        Rect(frame.center_x - 30, H - PAD - 33, 60, 3, fill=Paint(ColorRole.ACCENT), radius="2px")
    )
    scene.item_count = 1


# ── ARCHITECTURE ──────────────────────────────────────────────────


def _build_architecture(scene: Scene, content: SlideContent, frame: Frame) -> None:
    """Box nodes joined by arrows; a second row from five nodes up."""
    nodes = apply_count_cap([parse_card(line, title_limit=40) for line in content.lines], content.title, MAX_NODES)
    nodes = [n for n in nodes if n.title]
    if not nodes:
        _title_only(scene, content, frame)
        return

    top = add_title(scene, content.title, frame)
    count = len(nodes)
    cols = grid_columns(count, single_row_max=4, max_cols=3)
    rows = math.ceil(count / cols)
    gap_x = 40
    box_w = min(220, (frame.inner_width - (cols - 1) * gap_x) / cols)
    box_h = 110 if rows == 1 else 96
    total_w = cols * box_w + (cols - 1) * gap_x
    left = PAD + (frame.inner_width - total_w) / 2
    cells = allocate_grid(count, cols, left, top, total_w, _avail(top), gap_x, 48, cell_h=box_h)
    roles = accent_cycle(frame.palette)
    title_size = 15 if rows == 1 else 14

    for i, (node, cell) in enumerate(zip(nodes, cells)):
        role = rotate(roles, i)
        scene.add(_card(cell.x, cell.y, cell.w, cell.h, top_role=role, radius="12px"))
        title_y = cell.y + (14 if node.desc else cell.h / 2 - 12)
        scene.add(
            text_box(cell.x + 12, title_y, cell.w - 24, 22, node.title, title_size, weight="bold", align="center")
        )
        if node.desc:
            scene.add(
                text_box(
                    cell.x + 12,
                    cell.y + 40,
                    cell.w - 24,
                    cell.h - 48,
                    node.desc,
                    13,
                    align="center",
                    line_height=1.4,
                    opacity=0.7,
                )
            )
    _connect_row(scene, cells, lambda c: c.y + c.h / 2)
    scene.item_count = count


# ── Dispatch Table ────────────────────────────────────────────────

_BUILDERS = {
    SlideType.MARKET_SIZING: _build_market_sizing,
    SlideType.TIMELINE: _build_timeline,
    SlideType.METRICS_HIGHLIGHT: _build_metrics_highlight,
    SlideType.COMPARISON: _build_comparison,
    SlideType.TEAM: _build_team,
    SlideType.FEATURE_GRID: _build_feature_grid,
    SlideType.PROCESS: _build_process,
    SlideType.PROBLEM: _build_problem,
    SlideType.SOLUTION: _build_solution,
    SlideType.CTA: _build_cta,
    SlideType.CONTENT: _build_content,
    SlideType.QUOTE: _build_quote,
    SlideType.ARCHITECTURE: _build_architecture,
}


def get_builder(slide_type: SlideType):
    return _BUILDERS.get(slide_type)
