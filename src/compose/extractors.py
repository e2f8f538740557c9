"""
src/compose/extractors.py — Structure Extractors

Heuristics that recover structure from free-form slide text:
  - parse_table: markdown pipe tables (or em-dash pseudo-tables)
  - detect_comparison_groups: 3+ named groups for multi-card comparisons
  - extract_hero_metric: the single big number of a metrics slide

Each extractor returns None or an empty result when nothing fits; callers
fall back to a simpler layout.
"""

from __future__ import annotations

import re
from typing import Optional

from .models import (
    CardItem,
    ComparisonGroup,
    HeroMetric,
    Milestone,
    ParsedTable,
    SecondaryMetric,
)
from .normalizer import (
    RE_HTML_TAG,
    RE_SOURCES,
    dash_cells,
    dash_count,
    is_table_separator,
    normalize,
    pipe_cells,
    strip_markdown,
)

MAX_GROUPS = 4
MAX_GROUP_ITEMS = 6

RE_TAKEAWAY = re.compile(r"^\s*###\s+(.+)$")
RE_VS = re.compile(r"^vs\.?$", re.IGNORECASE)
RE_HEADER_PUNCT = re.compile(r"[.,;:!?()]")
RE_METRIC_START = re.compile(r"^[\d$€£¥]|%$")
RE_NUMERIC_LINE = re.compile(r"^[\d$€£¥]|%")
RE_INLINE_METRIC = re.compile(r"^(\$?[\d,]+\.?\d*[BMKTbmkt]?\+?%?)\s+(.*)")
RE_EMBEDDED_METRIC = re.compile(
    r"(?:over|up to|nearly|about|approximately)?\s*(\$?[\d,]+\.?\d*[BMKTbmkt]?\+?%?)",
    re.IGNORECASE,
)
RE_METRIC_SPLIT = re.compile(r"\s*[:–—]\s*|\s+-\s+")
RE_NAME_SPLIT = re.compile(r"^(.{2,40}?)\s*(?::|\s—\s|\s–\s|\s-\s)\s*(.+)$")
RE_CARD_BREAK = re.compile(r"^(.{10,40}?)\s*[,\-—–]\s+(.+)")
RE_STEP_NUMBER = re.compile(r"^\d+[.)]\s*")


# ── Tables ─────────────────────────────────────────────────────────


def _fit_row(cells: list[str], width: int) -> list[str]:
    """Pad short rows with empty cells, truncate long ones."""
    row = list(cells[:width])
    row.extend([""] * (width - len(row)))
    return row


def _prose(line: str) -> str:
    return strip_markdown(RE_HTML_TAG.sub("", line.strip()))


def parse_table(body: str) -> Optional[ParsedTable]:
    """Find a header + separator + data-row table in a slide body."""
    raw_lines = (body or "").split("\n")

    for i in range(len(raw_lines) - 2):
        head, sep = raw_lines[i].strip(), raw_lines[i + 1].strip()
        if not head.startswith("|") or not is_table_separator(sep):
            continue

        headers = pipe_cells(head)
        width = len(headers)
        rows: list[list[str]] = []
        j = i + 2
        while j < len(raw_lines) and raw_lines[j].strip().startswith("|"):
            if not is_table_separator(raw_lines[j]):
                rows.append(_fit_row(pipe_cells(raw_lines[j]), width))
            j += 1
        if not rows:
            continue

        lead = [_prose(l) for l in raw_lines[:i] if l.strip() and not RE_TAKEAWAY.match(l)]
        takeaway = ""
        source = ""
        for tail in raw_lines[j:]:
            stripped = tail.strip()
            m = RE_TAKEAWAY.match(stripped)
            if m and not takeaway:
                takeaway = strip_markdown(m.group(1))
            elif RE_SOURCES.match(_prose(stripped)) and not source:
                source = _prose(stripped).split(":", 1)[1].strip()

        return ParsedTable(
            headers=headers,
            rows=rows,
            lead_text=" ".join(l for l in lead if l),
            takeaway=takeaway,
            source=source,
        )

    return _parse_dash_table(body)


def _parse_dash_table(body: str) -> Optional[ParsedTable]:
    """Pseudo-table from lines with 2+ em-dash separators."""
    lines = normalize(body, max_lines=None)
    dashed = [i for i, line in enumerate(lines) if dash_count(line) >= 2]
    if len(dashed) < 3:
        return None

    headers = dash_cells(lines[dashed[0]])
    rows = [
        _fit_row(dash_cells(lines[i]), len(headers))
        for i in dashed[1:]
    ]
    lead = " ".join(lines[: dashed[0]])
    after = [l for l in lines[dashed[-1] + 1 :] if dash_count(l) < 2]
    return ParsedTable(
        headers=headers,
        rows=rows,
        lead_text=lead,
        takeaway=after[0] if after else "",
    )


# ── Comparison groups ──────────────────────────────────────────────


def _groups_by_vs(lines: list[str]) -> list[ComparisonGroup]:
    separators = [i for i, l in enumerate(lines) if RE_VS.match(l.strip())]
    if len(separators) < 2:
        return []

    chunks: list[list[str]] = [[]]
    for line in lines:
        if RE_VS.match(line.strip()):
            chunks.append([])
        else:
            chunks[-1].append(line)
    chunks = [c for c in chunks if c]
    if len(chunks) < 3:
        return []
    return [ComparisonGroup(name=c[0], items=c[1:]) for c in chunks]


def _looks_like_header(line: str) -> bool:
    return (
        len(line) < 35
        and line[:1].isupper()
        and not RE_HEADER_PUNCT.search(line)
    )


def _groups_by_headers(lines: list[str]) -> list[ComparisonGroup]:
    groups: list[ComparisonGroup] = []
    for line in lines:
        if _looks_like_header(line) and (not groups or groups[-1].items):
            groups.append(ComparisonGroup(name=line))
        elif groups:
            groups[-1].items.append(line)
        else:
            return []
    if len(groups) < 3 or any(not g.items for g in groups):
        return []
    return groups


def _split_name(line: str) -> tuple[str, str]:
    """Leading capitalised phrase as a name, the remainder as detail."""
    m = RE_NAME_SPLIT.match(line)
    if m:
        return m.group(1).strip(), m.group(2).strip()
    words = line.split()
    name_words: list[str] = []
    for word in words[:4]:
        if not word[:1].isupper():
            break
        name_words.append(word.strip(",;:"))
    if not name_words or len(name_words) == len(words):
        name_words = words[:2]
    return " ".join(name_words), " ".join(words[len(name_words) :])


def _groups_by_uniform_lines(lines: list[str]) -> list[ComparisonGroup]:
    if not 3 <= len(lines) <= 5 or any(RE_VS.match(l.strip()) for l in lines):
        return []
    mean = sum(len(l) for l in lines) / len(lines)
    if any(not (0.3 * mean <= len(l) <= 2.5 * mean) for l in lines):
        return []
    groups = []
    for line in lines:
        name, rest = _split_name(line)
        groups.append(ComparisonGroup(name=name, items=[rest] if rest else []))
    return groups


def detect_comparison_groups(lines: list[str]) -> list[ComparisonGroup]:
    """Try the vs / header / uniform-line heuristics in order; first hit wins."""
    if len(lines) < 3:
        return []
    for heuristic in (_groups_by_vs, _groups_by_headers, _groups_by_uniform_lines):
        groups = heuristic(lines)
        if groups:
            for g in groups:
                g.items = g.items[:MAX_GROUP_ITEMS]
            return groups[:MAX_GROUPS]
    return []


# ── Hero metric ────────────────────────────────────────────────────


def _secondary(line: str) -> SecondaryMetric:
    parts = RE_METRIC_SPLIT.split(line, maxsplit=1)
    if len(parts) == 2:
        return SecondaryMetric(value=parts[0].strip(), label=parts[1].strip())
    m = RE_INLINE_METRIC.match(line.strip())
    if m:
        return SecondaryMetric(value=m.group(1), label=m.group(2).strip())
    return SecondaryMetric(value=line.strip())


def extract_hero_metric(lines: list[str], title: str) -> HeroMetric:
    """Promote the first numeric value in the body to the hero slot."""
    hero = HeroMetric(value=title)
    rest: list[str] = list(lines)

    if lines and RE_METRIC_START.search(lines[0].strip()):
        hero.value = lines[0].strip()
        hero.label = lines[1].strip() if len(lines) > 1 else ""
        hero.extracted = True
        rest = lines[2:]
    else:
        for i, line in enumerate(lines):
            inline = RE_INLINE_METRIC.match(line)
            if inline and len(inline.group(1)) >= 2:
                hero.value = inline.group(1)
                hero.label = inline.group(2).strip() or line
            else:
                embedded = next(
                    (
                        m
                        for m in RE_EMBEDDED_METRIC.finditer(line)
                        if len(m.group(1)) >= 2 and re.search(r"\d", m.group(1))
                    ),
                    None,
                )
                if embedded is None:
                    continue
                hero.value = embedded.group(1)
                hero.label = line.replace(embedded.group(0), " ", 1).strip() or line
                hero.label = re.sub(r"\s{2,}", " ", hero.label)
            hero.extracted = True
            rest = lines[:i] + lines[i + 1 :]
            break

    numeric = [l for l in rest if RE_NUMERIC_LINE.search(l.strip())]
    if len(numeric) >= 2:
        hero.secondary = [_secondary(l) for l in numeric[:3]]
        hero.support = [l for l in rest if l not in numeric]
    else:
        hero.support = rest
    return hero


# ── Line splitters shared by builders ──────────────────────────────


def parse_milestones(lines: list[str]) -> list[Milestone]:
    """`Q1 2025: Launch` -> date + text; lines without a colon have no date."""
    milestones = []
    for line in lines:
        date, sep, text = line.partition(":")
        if sep and text.strip() and len(date) <= 30:
            milestones.append(Milestone(date=date.strip(), text=text.strip()))
        else:
            milestones.append(Milestone(date="", text=line.strip()))
    return milestones


def parse_card(line: str, title_limit: int = 40) -> CardItem:
    """Split a line into a short card title and a description."""
    line = RE_STEP_NUMBER.sub("", line).strip()
    head, sep, tail = line.partition(":")
    if sep and 0 < len(head) < title_limit:
        return CardItem(title=head.strip(), desc=tail.strip())
    m = RE_CARD_BREAK.match(line)
    if m:
        return CardItem(title=m.group(1).strip(), desc=m.group(2).strip())
    if len(line) > 50:
        space = line.find(" ", 30)
        if space > -1:
            return CardItem(title=line[:space].strip(), desc=line[space + 1 :].strip())
    return CardItem(title=line)


def parse_member(line: str) -> CardItem:
    """`Jane Doe - CEO` style team lines."""
    for sep in (" - ", " — ", " – ", ", ", ": "):
        name, found, role = line.partition(sep)
        if found and name.strip():
            return CardItem(title=name.strip(), desc=role.strip())
    return CardItem(title=line.strip())

