"""
tests/test_builders.py — Tests for the geometry builders

Covers:
  - Dispatch table completeness
  - Every builder on typical, empty and oversized content
  - Each layout variant, forced through SlideContent.variant
  - Item caps and title-implied counts
  - Canvas containment and the reduced content width next to an image
"""

import dataclasses
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.compose.models import ColorPalette, SlideInput, SlideType
from src.renderer.builders import (
    MAX_CONTENT_ITEMS,
    MAX_FEATURES,
    MAX_MILESTONES,
    _BUILDERS,
    SlideContent,
    get_builder,
    hero_font_size,
    split_attribution,
)
from src.renderer.layout import IMAGE_CONTENT_W, PAD, Frame
from src.renderer.scene import (
    CANVAS_H,
    CANVAS_W,
    Circle,
    ColorRole,
    ImageBlock,
    Line,
    Polygon,
    Rect,
    Scene,
    TextBlock,
)


@pytest.fixture
def palette():
    return ColorPalette(
        primary="#1E40AF",
        secondary="#7C3AED",
        accent="#0EA5E9",
        background="#FFFFFF",
        text="#0F172A",
        surface="#F1F5F9",
        border="#CBD5E1",
        success="#16A34A",
        warning="#CA8A04",
        error="#DC2626",
    )


SAMPLES = {
    SlideType.MARKET_SIZING: "TAM: $50B global spend\nSAM: $8B mid-market\nSOM: $400M by 2027",
    SlideType.TIMELINE: "Q1 2024: Founded\nQ3 2024: Seed round\nQ1 2025: Beta launch\nQ3 2025: GA",
    SlideType.METRICS_HIGHLIGHT: "87%\nCustomer retention\n$2M ARR\n150 customers",
    SlideType.COMPARISON: "Legacy\n- Manual entry\n- Slow reports\nvs\nModern\n- Automated sync\n- Live dashboards",
    SlideType.TEAM: "Jane Doe - CEO\nJohn Smith - CTO\nAda Park - VP Sales",
    SlideType.FEATURE_GRID: "Sync: Real-time data sync\nSSO: Single sign-on\nAudit: Full audit log\nAPI: Open REST API",
    SlideType.PROCESS: "Discover: Interview users\nDesign: Prototype flows\nBuild: Ship weekly\nMeasure: Track adoption",
    SlideType.PROBLEM: "Teams lose 6 hours a week to manual reporting\nData is stale by the time it is shared\nErrors creep in",
    SlideType.SOLUTION: "Automated pipelines\nLive dashboards\nAlerting on anomalies",
    SlideType.CTA: "Book a demo\nStart a pilot\nTalk to sales",
    SlideType.CONTENT: "First point\nSecond point\nThird point",
    SlideType.QUOTE: "Great products start with empathy.\n— Jane Doe, CEO",
    SlideType.ARCHITECTURE: "Client: Web and mobile\nGateway: Auth and routing\nServices: Core logic\nStore: Postgres",
}


def _content(slide_type, body, title="Slide Title", variant=None, image=False):
    slide = SlideInput(
        title=title,
        body=body,
        slide_type=slide_type,
        image_url="https://example.com/img.png" if image else None,
    )
    content = SlideContent.from_input(slide)
    if variant is not None:
        content = dataclasses.replace(content, variant=variant)
    return content


def _build(palette, slide_type, body, title="Slide Title", variant=None, image=False):
    content = _content(slide_type, body, title, variant, image)
    scene = Scene(uid="test")
    get_builder(slide_type)(scene, content, Frame(palette, has_image=image))
    return scene


def _boxes(scene):
    return [n for n in scene.all_nodes() if isinstance(n, (Rect, TextBlock, ImageBlock))]


def _assert_on_canvas(scene, right=CANVAS_W):
    for n in _boxes(scene):
        assert n.x >= 0 and n.y >= 0, n
        assert n.w >= 0 and n.h >= 0, n
        assert n.x + n.w <= right + 1, n
        assert n.y + n.h <= CANVAS_H + 1, n


# ── Dispatch ─────────────────────────────────────────────────────


class TestDispatch:
    def test_every_composed_type_has_a_builder(self):
        composed = {t for t in SlideType if t != SlideType.PLAIN}
        assert set(_BUILDERS) == composed

    def test_plain_has_no_builder(self):
        assert get_builder(SlideType.PLAIN) is None


# ── All builders ─────────────────────────────────────────────────


class TestAllBuilders:
    @pytest.mark.parametrize("slide_type", list(SAMPLES))
    def test_typical_content_on_canvas(self, palette, slide_type):
        scene = _build(palette, slide_type, SAMPLES[slide_type])
        assert scene.nodes
        assert scene.item_count >= 1
        _assert_on_canvas(scene)

    @pytest.mark.parametrize("slide_type", list(SAMPLES))
    def test_empty_body_renders_title_only(self, palette, slide_type):
        scene = _build(palette, slide_type, "   ")
        assert scene.item_count == 0
        assert "Slide Title" in scene.texts()
        _assert_on_canvas(scene)

    @pytest.mark.parametrize("slide_type", list(SAMPLES))
    def test_image_narrows_content(self, palette, slide_type):
        scene = _build(palette, slide_type, SAMPLES[slide_type], image=True)
        _assert_on_canvas(scene, right=IMAGE_CONTENT_W)

    @pytest.mark.parametrize("slide_type", list(SAMPLES))
    def test_oversized_content_stays_bounded(self, palette, slide_type):
        body = "\n".join(f"Item {i}: detail text number {i}" for i in range(30))
        scene = _build(palette, slide_type, body)
        assert scene.item_count <= MAX_CONTENT_ITEMS
        _assert_on_canvas(scene)

    @pytest.mark.parametrize("slide_type", list(SAMPLES))
    def test_long_title_on_canvas(self, palette, slide_type):
        title = "An extremely long slide title that keeps going well past ninety characters in total length"
        scene = _build(palette, slide_type, SAMPLES[slide_type], title=title)
        _assert_on_canvas(scene)

    def test_title_uses_title_role(self, palette):
        scene = _build(palette, SlideType.CONTENT, SAMPLES[SlideType.CONTENT])
        title = next(n for n in scene.nodes if isinstance(n, TextBlock) and n.text == "Slide Title")
        assert title.color.role == ColorRole.TITLE
        assert title.css_class == "slide-title"


# ── Caps ─────────────────────────────────────────────────────────


class TestItemCaps:
    def test_feature_grid_cap(self, palette):
        body = "\n".join(f"Feature {i}: does thing {i}" for i in range(8))
        scene = _build(palette, SlideType.FEATURE_GRID, body)
        assert scene.item_count == MAX_FEATURES

    def test_timeline_cap(self, palette):
        body = "\n".join(f"Q{i}: step {i}" for i in range(8))
        scene = _build(palette, SlideType.TIMELINE, body)
        assert scene.item_count == MAX_MILESTONES

    def test_content_cap(self, palette):
        body = "\n".join(f"point {i}" for i in range(12))
        scene = _build(palette, SlideType.CONTENT, body)
        assert scene.item_count == MAX_CONTENT_ITEMS

    def test_title_count_caps_cards(self, palette):
        body = "\n".join(f"Pillar {i}: detail {i}" for i in range(6))
        scene = _build(palette, SlideType.FEATURE_GRID, body, title="Three Pillars of Growth")
        assert scene.item_count == 3

    def test_title_count_caps_content(self, palette):
        body = "\n".join(f"point {i}" for i in range(6))
        scene = _build(palette, SlideType.CONTENT, body, title="Two Takeaways")
        assert scene.item_count == 2


# ── Variants ─────────────────────────────────────────────────────


class TestTimeline:
    def _main_line(self, scene):
        return next(n for n in scene.nodes if isinstance(n, Line) and n.y1 == n.y2 and n.x1 != n.x2)

    def test_default_variant_line_position(self, palette):
        scene = _build(palette, SlideType.TIMELINE, SAMPLES[SlideType.TIMELINE], variant=0)
        assert self._main_line(scene).y1 == round(CANVAS_H * 0.45)

    def test_zigzag_alternates_cards(self, palette):
        scene = _build(palette, SlideType.TIMELINE, SAMPLES[SlideType.TIMELINE], variant=1)
        line_y = self._main_line(scene).y1
        cards = [n for n in scene.nodes if isinstance(n, Rect) and n.border_top is not None]
        assert len(cards) == 4
        assert [c.y < line_y for c in cards] == [True, False, True, False]

    def test_two_items_never_zigzag(self, palette):
        scene = _build(palette, SlideType.TIMELINE, "Founded\nFirst customer", title="Our Journey", variant=1)
        assert scene.item_count == 2
        assert self._main_line(scene).y1 == round(CANVAS_H * 0.45)

    def test_dates_rendered(self, palette):
        scene = _build(palette, SlideType.TIMELINE, SAMPLES[SlideType.TIMELINE], variant=0)
        assert "Q1 2024" in scene.texts()
        assert "Founded" in scene.texts()

    def test_prose_split_into_milestones(self, palette):
        body = (
            "We started in a garage with two people. "
            "A seed round funded the first hires. "
            "Today we serve customers worldwide."
        )
        scene = _build(palette, SlideType.TIMELINE, body)
        assert scene.item_count == 3


class TestMetrics:
    def test_percentage_ring(self, palette):
        scene = _build(palette, SlideType.METRICS_HIGHLIGHT, "87%\nCustomer retention")
        ring = next(n for n in scene.nodes if isinstance(n, Circle) and n.dashoffset is not None)
        assert ring.dashoffset == pytest.approx(ring.dasharray * 0.13)
        hero = next(n for n in scene.nodes if isinstance(n, TextBlock) and n.text == "87%")
        label = next(n for n in scene.nodes if isinstance(n, TextBlock) and n.text == "Customer retention")
        assert hero.size == 80
        assert label.y > hero.y

    def test_non_percentage_has_no_ring(self, palette):
        scene = _build(palette, SlideType.METRICS_HIGHLIGHT, "$1.2B\nAnnual revenue")
        assert not any(isinstance(n, Circle) and n.dashoffset is not None for n in scene.nodes)

    def test_secondary_row(self, palette):
        scene = _build(palette, SlideType.METRICS_HIGHLIGHT, SAMPLES[SlideType.METRICS_HIGHLIGHT])
        assert "$2M" in scene.texts()
        assert "150" in scene.texts()
        assert scene.item_count == 3

    def test_hero_font_steps(self):
        assert hero_font_size("87%") == 80
        assert hero_font_size("x" * 20) == 56
        assert hero_font_size("x" * 40) == 38
        assert hero_font_size("x" * 60) == 28


class TestComparison:
    def test_vs_layout_headers(self, palette):
        scene = _build(palette, SlideType.COMPARISON, SAMPLES[SlideType.COMPARISON])
        texts = scene.texts()
        assert "Legacy" in texts and "Modern" in texts
        assert "VS" in texts
        assert scene.item_count == 4

    def test_default_headers_for_bulleted_sides(self, palette):
        body = "- slow builds\n- manual deploys\n- costly fixes\n- fast builds\n- automatic deploys\n- cheap fixes"
        scene = _build(palette, SlideType.COMPARISON, body)
        texts = scene.texts()
        assert "Before" in texts and "After" in texts

    def test_three_groups_render_cards(self, palette):
        body = "Alpha\nFast\nCheap\nvs\nBeta\nSlow\nExpensive\nvs\nGamma\nMedium\nModerate"
        scene = _build(palette, SlideType.COMPARISON, body)
        texts = scene.texts()
        assert {"Alpha", "Beta", "Gamma"} <= set(texts)
        assert "VS" not in texts
        assert scene.item_count == 3

    def test_table_layout(self, palette):
        body = "| Plan | Price | Seats |\n|---|---|---|\n| Free | $0 |\n| Pro | $10 | 5 |"
        scene = _build(palette, SlideType.COMPARISON, body)
        texts = scene.texts()
        assert {"Plan", "Price", "Seats", "Free", "Pro"} <= set(texts)
        assert scene.item_count == 2


class TestGridBuilders:
    @pytest.mark.parametrize("variant", [0, 1, 2])
    def test_process_variants(self, palette, variant):
        scene = _build(palette, SlideType.PROCESS, SAMPLES[SlideType.PROCESS], variant=variant)
        assert scene.item_count == 4
        assert "01" in scene.texts() and "04" in scene.texts()
        _assert_on_canvas(scene)

    def test_process_arrows_between_cards(self, palette):
        scene = _build(palette, SlideType.PROCESS, SAMPLES[SlideType.PROCESS], variant=0)
        arrows = [n for n in scene.nodes if isinstance(n, Line) and n.marker_end]
        assert len(arrows) == 3

    @pytest.mark.parametrize("variant", [0, 1, 2])
    def test_feature_grid_variants(self, palette, variant):
        scene = _build(palette, SlideType.FEATURE_GRID, SAMPLES[SlideType.FEATURE_GRID], variant=variant)
        assert scene.item_count == 4
        assert "Sync" in scene.texts()
        _assert_on_canvas(scene)

    def test_bento_falls_back_for_six_features(self, palette):
        body = "\n".join(f"Feature {i}: does thing {i}" for i in range(6))
        scene = _build(palette, SlideType.FEATURE_GRID, body, variant=2)
        assert scene.item_count == 6
        _assert_on_canvas(scene)

    def test_team_initials(self, palette):
        scene = _build(palette, SlideType.TEAM, SAMPLES[SlideType.TEAM])
        assert {"JD", "JS", "AP"} <= set(scene.texts())

    def test_team_two_rows(self, palette):
        body = "\n".join(f"Person {i} - Role {i}" for i in range(8))
        scene = _build(palette, SlideType.TEAM, body)
        assert scene.item_count == 8
        _assert_on_canvas(scene)

    def test_architecture_arrows(self, palette):
        scene = _build(palette, SlideType.ARCHITECTURE, SAMPLES[SlideType.ARCHITECTURE])
        arrows = [n for n in scene.nodes if isinstance(n, Line) and n.marker_end]
        assert len(arrows) == 3


class TestProblemSolution:
    def test_problem_side_bar(self, palette):
        scene = _build(palette, SlideType.PROBLEM, SAMPLES[SlideType.PROBLEM], variant=0)
        bar = scene.nodes[0]
        assert isinstance(bar, Rect)
        assert (bar.x, bar.w, bar.h) == (0, 6, CANVAS_H)
        assert bar.fill.role == ColorRole.ERROR

    def test_problem_diagonal_split(self, palette):
        scene = _build(palette, SlideType.PROBLEM, SAMPLES[SlideType.PROBLEM], variant=1)
        assert any(isinstance(n, Polygon) and n.fill is not None for n in scene.nodes)
        assert scene.item_count == 3

    def test_problem_header_label(self, palette):
        body = "Current state\nReports take days\nNumbers disagree\nNobody trusts data"
        scene = _build(palette, SlideType.PROBLEM, body, variant=0)
        header = next(n for n in scene.nodes if isinstance(n, TextBlock) and n.text == "Current state")
        assert header.uppercase
        assert scene.item_count == 3

    def test_problem_header_written_as_heading(self, palette):
        body = "### Current state\nReports take days\nNumbers disagree\nNobody trusts data"
        scene = _build(palette, SlideType.PROBLEM, body, variant=0)
        header = next(n for n in scene.nodes if isinstance(n, TextBlock) and n.text == "Current state")
        assert header.uppercase
        assert scene.item_count == 3

    def test_solution_staircase(self, palette):
        scene = _build(palette, SlideType.SOLUTION, SAMPLES[SlideType.SOLUTION], variant=1)
        steps = [n for n in scene.nodes if isinstance(n, Rect) and n.border_left is not None]
        assert len(steps) == 3
        assert steps[0].x < steps[1].x < steps[2].x
        assert scene.nodes[0].fill.role == ColorRole.SUCCESS

    def test_solution_table(self, palette):
        body = "| Before | After |\n|---|---|\n| Days | Minutes |"
        scene = _build(palette, SlideType.SOLUTION, body)
        assert {"Before", "After", "Days", "Minutes"} <= set(scene.texts())


class TestSimpleBuilders:
    def test_quote_attribution(self, palette):
        scene = _build(palette, SlideType.QUOTE, SAMPLES[SlideType.QUOTE])
        texts = scene.texts()
        assert "“" in texts
        assert "— Jane Doe, CEO" in texts
        quote = next(n for n in scene.nodes if isinstance(n, TextBlock) and n.italic)
        assert quote.text == "Great products start with empathy."

    def test_split_attribution_by_role(self):
        assert split_attribution(["Ship it.", "Ada Park, Founder"]) == (["Ship it."], "Ada Park, Founder")

    def test_split_attribution_single_line(self):
        assert split_attribution(["Only a quote."]) == (["Only a quote."], "")

    def test_cta_actions_and_button(self, palette):
        scene = _build(palette, SlideType.CTA, SAMPLES[SlideType.CTA])
        texts = scene.texts()
        assert "Get Started →" in texts
        assert scene.item_count == 3

    def test_content_cards_fill_height(self, palette):
        scene = _build(palette, SlideType.CONTENT, SAMPLES[SlideType.CONTENT])
        cards = [n for n in scene.nodes if isinstance(n, Rect) and n.border_left is not None]
        assert len(cards) == 3
        assert cards[-1].y + cards[-1].h == pytest.approx(CANVAS_H - PAD, abs=1)

    def test_market_rings(self, palette):
        scene = _build(palette, SlideType.MARKET_SIZING, SAMPLES[SlideType.MARKET_SIZING])
        rings = [n for n in scene.nodes if isinstance(n, Circle)]
        assert [r.r for r in rings] == [210, 140, 80]
        assert {"TAM", "SAM", "SOM", "$50B global spend"} <= set(scene.texts())
