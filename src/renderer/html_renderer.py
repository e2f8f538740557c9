"""
src/renderer/html_renderer.py — HTML Slide Composition Engine

Turns one SlideInput + ColorPalette into a self-contained 1280x720
HTML+SVG fragment. Pure and deterministic: the same slide and palette
always produce the same string, and nothing here touches the filesystem
or the network.

Pipeline per slide:
  1. SlideContent.from_input   normalize body, detect tables, pick variant
  2. builder (dispatch table)  geometry in semantic colour roles
  3. apply_mood                overlay motif + accent bar
  4. apply_image_overlay       right-hand image panel
  5. render_scene              roles -> colours (mood recolor, contrast repair)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from src.compose.models import ColorPalette, ContentMood, SlideInput, SlideType
from src.compose.mood import detect_mood, mood_colors
from src.compose.variants import content_hash
from src.renderer.builders import DEFAULT_CTA_LABEL, SlideContent, get_builder
from src.renderer.layout import Frame
from src.renderer.postprocess import (
    CONTRAST_THRESHOLD,
    ColorResolver,
    apply_image_overlay,
    apply_mood,
    apply_page_number,
)
from src.renderer.scene import Scene, render_scene

logger = logging.getLogger(__name__)

COMPOSED_TYPES: frozenset[SlideType] = frozenset(
    t for t in SlideType if t != SlideType.PLAIN
)


@dataclass
class ComposeConfig:
    """Tunables for the composition engine."""

    # Slide types routed through the engine; anything else renders as ""
    composed_types: frozenset[SlideType] = field(default_factory=lambda: COMPOSED_TYPES)

    # Mood
    mood_enabled: bool = True
    mood_contrast_threshold: float = 40

    # Contrast repair
    contrast_threshold: float = CONTRAST_THRESHOLD

    # CTA button text
    cta_label: str = DEFAULT_CTA_LABEL


@dataclass
class ComposedSlide:
    """A built scene and the resolver that will colour it."""

    scene: Scene
    resolver: ColorResolver
    mood: ContentMood = ContentMood.NEUTRAL
    variant: int = 0


def is_composed_type(slide_type, composed_types: Optional[frozenset] = None) -> bool:
    """True when slide_type is routed through the composition engine."""
    try:
        st = SlideType(slide_type)
    except ValueError:
        return False
    return st in (COMPOSED_TYPES if composed_types is None else composed_types)


def _scene_uid(slide: SlideInput) -> str:
    return f"{slide.slide_type.value}-{content_hash(slide.title, slide.body) & 0xFFFFFFFF:08x}"


def compose_scene(
    slide: SlideInput,
    palette: ColorPalette,
    config: Optional[ComposeConfig] = None,
) -> Optional[ComposedSlide]:
    """Build the scene for one slide; None for types outside the allow-list."""
    config = config or ComposeConfig()
    if slide.slide_type not in config.composed_types:
        logger.debug("Slide type %s not composed", slide.slide_type.value)
        return None
    builder = get_builder(slide.slide_type)
    if builder is None:
        logger.debug("No builder for slide type %s", slide.slide_type.value)
        return None

    content = SlideContent.from_input(slide, button_label=config.cta_label)
    frame = Frame(palette, has_image=bool(slide.image_url))
    scene = Scene(uid=_scene_uid(slide))

    builder(scene, content, frame)

    mood = detect_mood(slide.title, slide.body) if config.mood_enabled else ContentMood.NEUTRAL
    colors = mood_colors(mood, palette, config.mood_contrast_threshold)
    apply_mood(scene, mood, frame)
    apply_image_overlay(scene, slide.image_url)

    logger.debug(
        "Composed %s: variant=%d mood=%s recolor=%s items=%d",
        slide.slide_type.value,
        content.variant,
        mood.value,
        colors is not None,
        scene.item_count,
    )
    return ComposedSlide(
        scene=scene,
        resolver=ColorResolver(palette, colors, config.contrast_threshold),
        mood=mood,
        variant=content.variant,
    )


def compose(
    slide: SlideInput,
    palette: ColorPalette,
    config: Optional[ComposeConfig] = None,
    page_number: Optional[int] = None,
    total_slides: Optional[int] = None,
) -> str:
    """Compose a slide into an HTML fragment.

    Args:
        slide: Title, body, slide type and optional image URL.
        palette: Theme colours.
        config: Engine tunables; defaults to ComposeConfig().
        page_number: 1-based slide number for the corner stamp.
        total_slides: Deck length; the stamp is drawn only when both are set.

    Returns:
        The HTML fragment, or "" when the slide type is not composed.
    """
    composed = compose_scene(slide, palette, config)
    if composed is None:
        return ""
    apply_page_number(composed.scene, page_number, total_slides)
    return render_scene(composed.scene, composed.resolver)
