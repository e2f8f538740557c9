"""
skills/compose_slide.py — Compose one slide into an HTML+SVG fragment.

Wraps src.renderer.html_renderer.compose.
"""

from typing import Optional

from src.compose.models import ColorPalette, SlideInput
from src.renderer.html_renderer import ComposeConfig, compose as _compose


def compose_slide(
    title: str,
    body: str,
    slide_type: str,
    palette: dict,
    image_url: Optional[str] = None,
    page_number: Optional[int] = None,
    total_slides: Optional[int] = None,
    config: Optional[ComposeConfig] = None,
) -> str:
    """Compose a slide from plain values.

    Args:
        title: Slide title.
        body: Loose markdown body.
        slide_type: Type tag, e.g. "timeline" or "METRICS_HIGHLIGHT".
        palette: Mapping with the ColorPalette fields.
        image_url: Optional image shown in a right-hand panel.
        page_number: Slide number for the corner stamp.
        total_slides: Deck length for the corner stamp.
        config: Engine tunables.

    Returns:
        HTML fragment, or "" for slide types the engine does not compose.
    """
    slide = SlideInput(title=title, body=body, slide_type=slide_type, image_url=image_url)
    return _compose(
        slide,
        ColorPalette(**palette),
        config=config,
        page_number=page_number,
        total_slides=total_slides,
    )
