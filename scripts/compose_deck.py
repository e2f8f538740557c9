#!/usr/bin/env python3
"""
scripts/compose_deck.py — Compose every slide of a JSON deck into HTML fragments.

Input JSON:
    {
      "palette": {"primary": "#2563EB", "secondary": "...", ...},
      "slides": [{"title": "...", "body": "...", "slide_type": "timeline"}, ...]
    }

Writes one slide-NN.html per composed slide. Slides whose type the engine
does not compose are skipped.

Usage:
    python scripts/compose_deck.py deck.json --output-dir ./output

Options:
    --output-dir DIR     Where to write fragments (default: ./output)
    --no-mood            Disable mood decoration and recolor
    --no-page-numbers    Omit the "n / total" stamp
    --verbose            Show debug logging
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

logger = logging.getLogger("compose_deck")


def main():
    ap = argparse.ArgumentParser(
        description="Compose a JSON slide deck into HTML fragments.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    ap.add_argument("deck", help="Path to the deck JSON file")
    ap.add_argument("--output-dir", default="./output", help="Output directory (default: ./output)")
    ap.add_argument("--no-mood", action="store_true", help="Disable mood decoration and recolor")
    ap.add_argument("--no-page-numbers", action="store_true", help="Omit page number stamps")
    ap.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    from src.compose.models import ColorPalette, SlideInput
    from src.renderer.html_renderer import ComposeConfig, compose

    try:
        raw = json.loads(Path(args.deck).read_text(encoding="utf-8"))
        palette = ColorPalette(**raw["palette"])
        slides = [SlideInput(**s) for s in raw.get("slides", [])]
    except (OSError, json.JSONDecodeError, KeyError, TypeError) as e:
        print(f"ERROR: could not read deck {args.deck}: {e}", file=sys.stderr)
        sys.exit(1)
    except ValidationError as e:
        print(f"ERROR: invalid deck {args.deck}:\n{e}", file=sys.stderr)
        sys.exit(1)

    config = ComposeConfig(mood_enabled=not args.no_mood)
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    total = len(slides)
    written = 0
    for n, slide in enumerate(slides, start=1):
        html = compose(
            slide,
            palette,
            config=config,
            page_number=None if args.no_page_numbers else n,
            total_slides=None if args.no_page_numbers else total,
        )
        if not html:
            logger.info("Slide %d (%s) skipped: not a composed type", n, slide.slide_type.value)
            continue
        path = output_dir / f"slide-{n:02d}.html"
        path.write_text(html, encoding="utf-8")
        written += 1

    print(f"Composed {written}/{total} slides into {output_dir}")


if __name__ == "__main__":
    main()
