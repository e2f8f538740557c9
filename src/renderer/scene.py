"""
src/renderer/scene.py — Geometry primitives and HTML/SVG serialization

Builders emit a Scene: an ordered list of absolutely positioned primitives
on the 1280x720 canvas. Primitives carry semantic colour roles (Paint),
never literal colours; a resolver turns roles into CSS colours once, at
serialization time, after mood and contrast decisions are final.

Deterministic: the same scene and resolver always serialize to the same
string.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from html import escape
from typing import Optional, Protocol, Union

# ── Canvas ────────────────────────────────────────────────────────

CANVAS_W = 1280
CANVAS_H = 720

SCOPED_RESET = (
    "<style scoped>\n"
    "section { padding: 0 !important; display: block !important; overflow: hidden !important; }\n"
    "section > * { flex-shrink: unset; }\n"
    "</style>"
)


def px(value: float) -> int:
    """Round to a non-negative integer pixel; NaN and infinities become 0."""
    if value is None or math.isnan(value) or math.isinf(value):
        return 0
    return max(0, int(round(value)))


def clip_box(x: float, y: float, w: float, h: float) -> tuple[int, int, int, int]:
    """Clamp a box so it lies entirely on the canvas."""
    x0 = min(px(x), CANVAS_W)
    y0 = min(px(y), CANVAS_H)
    return x0, y0, min(px(w), CANVAS_W - x0), min(px(h), CANVAS_H - y0)


# ── Colour roles ──────────────────────────────────────────────────


class ColorRole(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    ACCENT = "accent"
    BACKGROUND = "background"
    TEXT = "text"
    SURFACE = "surface"
    BORDER = "border"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    WHITE = "white"
    TITLE = "title"
    EMPHASIS = "emphasis"
    METRIC = "metric"


ACCENT_ROLES = frozenset(
    {
        ColorRole.ACCENT,
        ColorRole.PRIMARY,
        ColorRole.SECONDARY,
        ColorRole.SUCCESS,
        ColorRole.WARNING,
        ColorRole.ERROR,
    }
)


@dataclass(frozen=True)
class Paint:
    role: ColorRole
    alpha: float = 1.0

    def at(self, alpha: float) -> "Paint":
        return Paint(self.role, alpha)


@dataclass(frozen=True)
class Gradient:
    """CSS gradient; `shape` is the angle or radial geometry prefix."""

    kind: str  # "linear" | "radial"
    shape: str  # "90deg" | "ellipse 800px 600px at 50% 40%"
    stops: tuple[tuple[Paint, int], ...]


Fill = Union[Paint, Gradient]


@dataclass(frozen=True)
class Stroke:
    width: float
    paint: Paint
    style: str = "solid"


class Resolver(Protocol):
    def color(self, p: Paint) -> str: ...
    def text_color(self, p: Paint) -> str: ...


# ── HTML primitives ───────────────────────────────────────────────


@dataclass
class Rect:
    x: float
    y: float
    w: float
    h: float
    fill: Optional[Fill] = None
    border: Optional[Stroke] = None
    border_top: Optional[Stroke] = None
    border_left: Optional[Stroke] = None
    radius: str = ""
    opacity: float = 1.0
    shadow: Optional[tuple[str, Paint]] = None  # ("0 12px 48px", paint)
    transform: str = ""

    def bounds(self) -> tuple[int, int, int, int]:
        return clip_box(self.x, self.y, self.w, self.h)


@dataclass
class TextBlock:
    """A clipped text box. Height always becomes max-height."""

    x: float
    y: float
    w: float
    h: float
    text: str
    size: int
    color: Paint
    weight: str = "normal"
    align: str = "left"
    italic: bool = False
    line_height: float = 1.4
    opacity: float = 1.0
    letter_spacing: str = ""
    uppercase: bool = False
    font_family: str = ""
    fill: Optional[Fill] = None
    radius: str = ""
    border_left: Optional[Stroke] = None
    padding_left: int = 0
    marker: Optional[tuple[str, Paint]] = None
    center_vertically: bool = False
    css_class: str = ""

    def bounds(self) -> tuple[int, int, int, int]:
        return clip_box(self.x, self.y, self.w, self.h)


@dataclass
class ImageBlock:
    x: float
    y: float
    w: float
    h: float
    url: str

    def bounds(self) -> tuple[int, int, int, int]:
        return clip_box(self.x, self.y, self.w, self.h)


# ── SVG primitives ────────────────────────────────────────────────


@dataclass
class Circle:
    cx: float
    cy: float
    r: float
    fill: Optional[Paint] = None
    stroke: Optional[Paint] = None
    stroke_width: float = 0
    opacity: float = 1.0
    dasharray: Optional[float] = None
    dashoffset: Optional[float] = None
    rotate: bool = False  # start arcs at 12 o'clock

    def bounds(self) -> tuple[int, int, int, int]:
        r = self.r + self.stroke_width / 2
        return clip_box(self.cx - r, self.cy - r, 2 * r, 2 * r)


@dataclass
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: Paint
    width: float = 2
    opacity: float = 1.0
    dasharray: str = ""
    marker_end: bool = False
    marker_start: bool = False

    def bounds(self) -> tuple[int, int, int, int]:
        x0, y0 = min(self.x1, self.x2), min(self.y1, self.y2)
        return clip_box(x0, y0, abs(self.x2 - self.x1), abs(self.y2 - self.y1))


@dataclass
class Polygon:
    points: list[tuple[float, float]]
    fill: Optional[Paint] = None
    stroke: Optional[Paint] = None
    stroke_width: float = 0
    opacity: float = 1.0
    closed: bool = True

    def bounds(self) -> tuple[int, int, int, int]:
        xs = [p[0] for p in self.points] or [0]
        ys = [p[1] for p in self.points] or [0]
        return clip_box(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))


@dataclass
class SvgText:
    x: float
    y: float
    text: str
    size: int
    fill: Paint
    anchor: str = "middle"
    weight: str = "bold"
    letter_spacing: str = ""
    opacity: float = 1.0

    def bounds(self) -> tuple[int, int, int, int]:
        half = len(self.text) * self.size * 0.3
        return clip_box(self.x - half, self.y - self.size, 2 * half, self.size)


Node = Union[Rect, TextBlock, ImageBlock, Circle, Line, Polygon, SvgText]
SVG_NODES = (Circle, Line, Polygon, SvgText)


# ── Scene ─────────────────────────────────────────────────────────


@dataclass
class Scene:
    """Everything one slide draws, in paint order."""

    uid: str
    background: list[Node] = field(default_factory=list)
    nodes: list[Node] = field(default_factory=list)
    overlay: list[Node] = field(default_factory=list)
    arrow_paint: Paint = field(default_factory=lambda: Paint(ColorRole.BORDER))
    item_count: int = 0

    def add(self, *nodes: Node) -> None:
        self.nodes.extend(nodes)

    def all_nodes(self) -> list[Node]:
        return [*self.background, *self.nodes, *self.overlay]

    def texts(self) -> list[str]:
        return [n.text for n in self.all_nodes() if isinstance(n, (TextBlock, SvgText))]

    @property
    def arrow_id(self) -> str:
        return f"arrow-{self.uid}"


# ── Serialization ─────────────────────────────────────────────────


def _num(value: float) -> str:
    if value is None or math.isnan(value):
        return "0"
    rounded = round(value, 2)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:g}"


def _fill_css(fill: Fill, r: Resolver) -> str:
    if isinstance(fill, Gradient):
        stops = ",".join(f"{r.color(p)} {pct}%" for p, pct in fill.stops)
        return f"{fill.kind}-gradient({fill.shape},{stops})"
    return r.color(fill)


def _stroke_css(stroke: Stroke, r: Resolver) -> str:
    return f"{_num(stroke.width)}px {stroke.style} {r.color(stroke.paint)}"


def _rect_html(n: Rect, r: Resolver) -> str:
    x, y, w, h = n.bounds()
    css = [f"position:absolute;left:{x}px;top:{y}px;width:{w}px;height:{h}px"]
    if n.fill is not None:
        css.append(f"background:{_fill_css(n.fill, r)}")
    if n.border:
        css.append(f"border:{_stroke_css(n.border, r)}")
    if n.border_top:
        css.append(f"border-top:{_stroke_css(n.border_top, r)}")
    if n.border_left:
        css.append(f"border-left:{_stroke_css(n.border_left, r)}")
    if n.radius:
        css.append(f"border-radius:{n.radius}")
    if n.shadow:
        css.append(f"box-shadow:{n.shadow[0]} {r.color(n.shadow[1])}")
    if n.opacity != 1.0:
        css.append(f"opacity:{_num(n.opacity)}")
    if n.transform:
        css.append(f"transform:{n.transform}")
    css.append("box-sizing:border-box")
    return f'<div style="{";".join(css)}"></div>'


def _text_html(n: TextBlock, r: Resolver) -> str:
    x, y, w, h = n.bounds()
    css = [
        f"position:absolute;left:{x}px;top:{y}px;width:{w}px;max-height:{h}px;overflow:hidden",
        f"font-size:{n.size}px",
        f"line-height:{_num(n.line_height)}",
        f"color:{r.text_color(n.color)}",
    ]
    if n.weight != "normal":
        css.append(f"font-weight:{n.weight}")
    if n.align != "left":
        css.append(f"text-align:{n.align}")
    if n.italic:
        css.append("font-style:italic")
    if n.opacity != 1.0:
        css.append(f"opacity:{_num(n.opacity)}")
    if n.letter_spacing:
        css.append(f"letter-spacing:{n.letter_spacing}")
    if n.uppercase:
        css.append("text-transform:uppercase")
    if n.font_family:
        css.append(f"font-family:{n.font_family}")
    if n.fill is not None:
        css.append(f"background:{_fill_css(n.fill, r)}")
    if n.radius:
        css.append(f"border-radius:{n.radius}")
    if n.border_left:
        css.append(f"border-left:{_stroke_css(n.border_left, r)}")
    if n.padding_left:
        css.append(f"padding-left:{n.padding_left}px")
    if n.center_vertically:
        css.append(f"height:{h}px;line-height:{h}px;white-space:nowrap;text-overflow:ellipsis")
    css.append("word-wrap:break-word;box-sizing:border-box")

    content = escape(n.text)
    if n.marker:
        glyph, glyph_paint = n.marker
        content = (
            f'<span style="color:{r.text_color(glyph_paint)};font-weight:bold;'
            f'margin-right:8px">{escape(glyph)}</span>{content}'
        )
    cls = f' class="{n.css_class}"' if n.css_class else ""
    return f'<div{cls} style="{";".join(css)}">{content}</div>'


def _image_html(n: ImageBlock, r: Resolver) -> str:
    x, y, w, h = n.bounds()
    url = escape(n.url, quote=True)
    return (
        f'<div style="position:absolute;left:{x}px;top:{y}px;width:{w}px;height:{h}px;'
        f"background-image:url('{url}');background-size:cover;"
        f'background-position:center"></div>'
    )


def _opacity_attr(value: float) -> str:
    return f' opacity="{_num(value)}"' if value != 1.0 else ""


def _svg_node(n: Node, r: Resolver, arrow_id: str) -> str:
    if isinstance(n, Circle):
        attrs = [f'cx="{_num(n.cx)}" cy="{_num(n.cy)}" r="{_num(max(0.0, n.r))}"']
        attrs.append(f'fill="{r.color(n.fill)}"' if n.fill else 'fill="none"')
        if n.stroke:
            attrs.append(f'stroke="{r.color(n.stroke)}" stroke-width="{_num(n.stroke_width)}"')
        if n.dasharray is not None:
            attrs.append(f'stroke-dasharray="{_num(n.dasharray)}"')
        if n.dashoffset is not None:
            attrs.append(f'stroke-dashoffset="{_num(n.dashoffset)}" stroke-linecap="round"')
        if n.rotate:
            attrs.append(f'transform="rotate(-90 {_num(n.cx)} {_num(n.cy)})"')
        return f"<circle {' '.join(attrs)}{_opacity_attr(n.opacity)} />"
    if isinstance(n, Line):
        attrs = [
            f'x1="{_num(n.x1)}" y1="{_num(n.y1)}" x2="{_num(n.x2)}" y2="{_num(n.y2)}"',
            f'stroke="{r.color(n.stroke)}" stroke-width="{_num(n.width)}"',
        ]
        if n.dasharray:
            attrs.append(f'stroke-dasharray="{n.dasharray}"')
        if n.marker_end:
            attrs.append(f'marker-end="url(#{arrow_id})"')
        if n.marker_start:
            attrs.append(f'marker-start="url(#{arrow_id}-rev)"')
        return f"<line {' '.join(attrs)}{_opacity_attr(n.opacity)} />"
    if isinstance(n, Polygon):
        pts = " ".join(f"{_num(x)},{_num(y)}" for x, y in n.points)
        tag = "polygon" if n.closed else "polyline"
        attrs = [f'points="{pts}"']
        attrs.append(f'fill="{r.color(n.fill)}"' if n.fill else 'fill="none"')
        if n.stroke:
            attrs.append(
                f'stroke="{r.color(n.stroke)}" stroke-width="{_num(n.stroke_width)}" '
                f'stroke-linecap="round" stroke-linejoin="round"'
            )
        return f"<{tag} {' '.join(attrs)}{_opacity_attr(n.opacity)} />"
    if isinstance(n, SvgText):
        attrs = [
            f'x="{_num(n.x)}" y="{_num(n.y)}" text-anchor="{n.anchor}"',
            f'fill="{r.text_color(n.fill)}" font-size="{n.size}" font-weight="{n.weight}"',
        ]
        if n.letter_spacing:
            attrs.append(f'letter-spacing="{n.letter_spacing}"')
        return f"<text {' '.join(attrs)}{_opacity_attr(n.opacity)}>{escape(n.text)}</text>"
    raise TypeError(f"not an SVG primitive: {type(n).__name__}")


def _arrow_defs(scene: Scene, r: Resolver) -> str:
    color = r.color(scene.arrow_paint)
    return (
        f'<defs><marker id="{scene.arrow_id}" markerWidth="8" markerHeight="6" refX="8" '
        f'refY="3" orient="auto"><polygon points="0 0, 8 3, 0 6" fill="{color}" /></marker>'
        f'<marker id="{scene.arrow_id}-rev" markerWidth="8" markerHeight="6" refX="0" '
        f'refY="3" orient="auto"><polygon points="8 0, 0 3, 8 6" fill="{color}" /></marker></defs>'
    )


def _uses_markers(nodes: list[Node]) -> bool:
    return any(isinstance(n, Line) and (n.marker_end or n.marker_start) for n in nodes)


def _svg_block(nodes: list[Node], scene: Scene, r: Resolver) -> str:
    defs = _arrow_defs(scene, r) if _uses_markers(nodes) else ""
    inner = "".join(_svg_node(n, r, scene.arrow_id) for n in nodes)
    return (
        f'<svg style="position:absolute;left:0;top:0" width="{CANVAS_W}" '
        f'height="{CANVAS_H}" xmlns="http://www.w3.org/2000/svg">{defs}{inner}</svg>'
    )


def _html_node(n: Node, r: Resolver) -> str:
    if isinstance(n, TextBlock):
        return _text_html(n, r)
    if isinstance(n, ImageBlock):
        return _image_html(n, r)
    return _rect_html(n, r)


def serialize_nodes(nodes: list[Node], scene: Scene, r: Resolver) -> list[str]:
    """HTML lines for nodes; consecutive SVG primitives share one <svg>."""
    out: list[str] = []
    pending: list[Node] = []
    for n in nodes:
        if isinstance(n, SVG_NODES):
            pending.append(n)
            continue
        if pending:
            out.append(_svg_block(pending, scene, r))
            pending = []
        out.append(_html_node(n, r))
    if pending:
        out.append(_svg_block(pending, scene, r))
    return out


def render_scene(scene: Scene, r: Resolver) -> str:
    """Serialize a scene into a self-contained 1280x720 HTML fragment."""
    body = serialize_nodes(scene.all_nodes(), scene, r)
    bg = r.color(Paint(ColorRole.BACKGROUND))
    lines = [
        SCOPED_RESET,
        f'<div style="position:relative;width:{CANVAS_W}px;height:{CANVAS_H}px;'
        f'overflow:hidden;background:{bg}">',
        *(f"  {line}" for line in body),
        "</div>",
    ]
    return "\n".join(lines)
