"""
src/compose/normalizer.py — Content Normalizer

Turns a loosely-markdown slide body into a short list of clean lines.
Lenient on purpose: anything it does not recognise is kept as text.
"""

from __future__ import annotations

import re
from typing import Optional

MAX_LINES = 8

EM_DASH_SEP = " — "
# Tolerates the blank cells that join() leaves at either end of a row
RE_DASH_CELL = re.compile(r"\s—\s?|\s?—\s")

RE_BOLD = re.compile(r"\*\*(.+?)\*\*")
RE_BOLD_UNDERSCORE = re.compile(r"__(.+?)__")
RE_ITALIC = re.compile(r"\*(.+?)\*")
RE_ITALIC_UNDERSCORE = re.compile(r"(?<!\w)_(.+?)_(?!\w)")
RE_HEADING_PREFIX = re.compile(r"^\s*#{1,3}\s+")
RE_RESIDUAL_HEADING = re.compile(r"^#+(?:\s|$)")
RE_TABLE_SEPARATOR = re.compile(r"^\s*\|[-:\s|]+\|\s*$")
RE_PIPE_ROW = re.compile(r"^\s*\|")
RE_BULLET = re.compile(r"^\s*(?:[-*+]\s+|[•→►▸➜]\s*)")
RE_HTML_TAG = re.compile(r"<[^>]*>")
RE_RULE = re.compile(r"^-{3,}$")
RE_SOURCES = re.compile(r"^sources?:", re.IGNORECASE)
RE_SENTENCE_BREAK = re.compile(r"(?<=\.)\s+")

_COUNT_WORDS = {
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
}
RE_COUNT_WORD = re.compile(r"\b(" + "|".join(_COUNT_WORDS) + r")\b", re.IGNORECASE)
RE_COUNT_DIGIT = re.compile(r"(?<![\w.,$])([2-8])(?![\w.,%])")


def strip_markdown(text: str) -> str:
    """Remove bold/italic markers and a leading heading marker."""
    text = RE_BOLD.sub(r"\1", text)
    text = RE_BOLD_UNDERSCORE.sub(r"\1", text)
    text = RE_ITALIC.sub(r"\1", text)
    text = RE_ITALIC_UNDERSCORE.sub(r"\1", text)
    return RE_HEADING_PREFIX.sub("", text).strip()


def pipe_cells(line: str) -> list[str]:
    """Split a `| a | b |` row into stripped cells."""
    inner = line.strip()
    if inner.startswith("|"):
        inner = inner[1:]
    if inner.endswith("|"):
        inner = inner[:-1]
    return [strip_markdown(c.strip()) for c in inner.split("|")]


def dash_cells(line: str) -> list[str]:
    """Split an em-dash joined row back into its cells, blanks included."""
    return [c.strip() for c in RE_DASH_CELL.split(line)]


def dash_count(line: str) -> int:
    return len(RE_DASH_CELL.findall(line))


def is_table_separator(line: str) -> bool:
    return "-" in line and bool(RE_TABLE_SEPARATOR.match(line))


def clean_line(raw: str) -> Optional[str]:
    """Normalize one body line; None when the line should be dropped."""
    line = raw.strip()
    if not line or is_table_separator(line) or RE_RULE.match(line):
        return None
    if RE_PIPE_ROW.match(line):
        cells = pipe_cells(line)
        if not any(cells):
            return None
        line = EM_DASH_SEP.join(cells)
    line = RE_BULLET.sub("", line)
    line = RE_HTML_TAG.sub("", line)
    line = strip_markdown(line)
    if not line or RE_SOURCES.match(line) or RE_RULE.match(line) or RE_RESIDUAL_HEADING.match(line):
        return None
    return line


def normalize(body: str, max_lines: Optional[int] = MAX_LINES) -> list[str]:
    """Parse a slide body into cleaned display lines, capped at max_lines."""
    lines: list[str] = []
    for raw in (body or "").split("\n"):
        line = clean_line(raw)
        if line is None:
            continue
        lines.append(line)
        if max_lines is not None and len(lines) >= max_lines:
            break
    return lines


def split_prose_to_items(lines: list[str], min_items: int) -> list[str]:
    """Break long prose into sentences when a layout needs more items.

    Only kicks in below min_items and only when some line is longer than
    80 characters. Never returns fewer items than it was given.
    """
    if len(lines) >= min_items or not any(len(line) > 80 for line in lines):
        return list(lines)

    expanded: list[str] = []
    for line in lines:
        if len(line) > 80:
            expanded.extend(p.strip() for p in RE_SENTENCE_BREAK.split(line) if p.strip())
        else:
            expanded.append(line)
    return expanded if len(expanded) > len(lines) else list(lines)


def title_count_cap(title: str) -> Optional[int]:
    """Item count implied by the title ("Three Pillars" -> 3), if any."""
    text = title or ""
    word = RE_COUNT_WORD.search(text)
    digit = RE_COUNT_DIGIT.search(text)
    if word and (not digit or word.start() < digit.start()):
        return _COUNT_WORDS[word.group(1).lower()]
    if digit:
        return int(digit.group(1))
    return None


def apply_count_cap(items: list, title: str, hard_cap: int) -> list:
    """Truncate items to the slide type's cap and the title's implied count."""
    cap = hard_cap
    implied = title_count_cap(title)
    if implied is not None:
        cap = min(cap, implied)
    return items[: max(0, cap)]
