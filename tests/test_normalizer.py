"""
tests/test_normalizer.py — Tests for the content normalizer

Covers:
  - strip_markdown: bold/italic/heading removal
  - normalize: bullets, pipes, separators, rules, sources, HTML, line cap
  - split_prose_to_items: sentence splitting only when needed
  - title_count_cap / apply_count_cap
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.compose.normalizer import (
    MAX_LINES,
    apply_count_cap,
    clean_line,
    dash_cells,
    is_table_separator,
    normalize,
    pipe_cells,
    split_prose_to_items,
    strip_markdown,
    title_count_cap,
)


class TestStripMarkdown:
    def test_bold_and_italic(self):
        assert strip_markdown("**Bold** and *italic*") == "Bold and italic"

    def test_underscore_emphasis(self):
        assert strip_markdown("__strong__ and _soft_") == "strong and soft"

    def test_heading_prefix(self):
        assert strip_markdown("## Market Overview") == "Market Overview"

    def test_snake_case_untouched(self):
        assert strip_markdown("use max_lines here") == "use max_lines here"


class TestTableHelpers:
    def test_pipe_cells(self):
        assert pipe_cells("| a | **b** | c |") == ["a", "b", "c"]

    def test_separator(self):
        assert is_table_separator("|---|:---:|---|")
        assert is_table_separator("| --- | --- |")

    def test_pipe_row_is_not_separator(self):
        assert not is_table_separator("| a | b |")
        assert not is_table_separator("|  |  |")


class TestNormalize:
    def test_strips_bullet_glyphs(self):
        body = "- one\n• two\n→ three\n* four\n► five\n▸ six\n➜ seven"
        assert normalize(body) == ["one", "two", "three", "four", "five", "six", "seven"]

    def test_pipe_rows_become_em_dash_text(self):
        body = "| Plan | Price |\n|---|---|\n| Pro | $10 |"
        assert normalize(body) == ["Plan — Price", "Pro — $10"]

    def test_drops_rules_and_sources(self):
        body = "Keep me\n---\nSources: Gartner\nsource: IDC"
        assert normalize(body) == ["Keep me"]

    def test_heading_markers_are_stripped_not_dropped(self):
        body = "## Why now\nMarkets are shifting\n### Section"
        assert normalize(body) == ["Why now", "Markets are shifting", "Section"]

    def test_deep_headings_are_dropped(self):
        assert normalize("#### Appendix\nKeep me") == ["Keep me"]

    def test_hash_without_space_is_text(self):
        assert normalize("#1 priority") == ["#1 priority"]

    def test_blank_pipe_cells_keep_their_position(self):
        assert dash_cells(normalize("| Free |  | $0 |")[0]) == ["Free", "", "$0"]
        assert dash_cells(normalize("| Pro | 10 |  |")[0]) == ["Pro", "10", ""]

    def test_all_blank_pipe_row_is_dropped(self):
        assert normalize("|  |  |\nKeep me") == ["Keep me"]

    def test_strips_html(self):
        assert normalize("<b>Bold</b> claim<br/>") == ["Bold claim"]

    def test_skips_blank_lines(self):
        assert normalize("\n\n  a  \n\n b \n") == ["a", "b"]

    def test_hard_cap(self):
        body = "\n".join(f"item {i}" for i in range(20))
        assert len(normalize(body)) == MAX_LINES == 8

    def test_uncapped(self):
        body = "\n".join(f"item {i}" for i in range(20))
        assert len(normalize(body, max_lines=None)) == 20

    def test_empty(self):
        assert normalize("") == []
        assert normalize("   \n  ") == []

    def test_clean_line_none_for_dropped(self):
        assert clean_line("|---|---|") is None
        assert clean_line("-----") is None
        assert clean_line("   ") is None


class TestSplitProse:
    LONG = (
        "Alpha launched in spring with a small team. "
        "Beta followed in summer across five markets. "
        "Gamma shipped in fall."
    )

    def test_splits_long_line_into_sentences(self):
        items = split_prose_to_items([self.LONG], 3)
        assert items == [
            "Alpha launched in spring with a small team.",
            "Beta followed in summer across five markets.",
            "Gamma shipped in fall.",
        ]

    def test_no_split_when_enough_lines(self):
        lines = [self.LONG, "b", "c"]
        assert split_prose_to_items(lines, 3) == lines

    def test_no_split_for_short_lines(self):
        lines = ["Founded", "First customer"]
        assert split_prose_to_items(lines, 3) == lines

    def test_never_fewer_items(self):
        lines = ["x" * 90, "y"]
        assert split_prose_to_items(lines, 3) == lines


class TestCountCap:
    def test_number_word(self):
        assert title_count_cap("Three Pillars of Growth") == 3

    def test_digit(self):
        assert title_count_cap("Top 5 Risks") == 5

    def test_no_count(self):
        assert title_count_cap("Our Journey") is None

    def test_year_is_not_a_count(self):
        assert title_count_cap("Plan for 2025") is None

    def test_out_of_range_digit(self):
        assert title_count_cap("9 Ideas") is None

    def test_money_is_not_a_count(self):
        assert title_count_cap("A $5M Opportunity") is None

    def test_apply_title_cap(self):
        assert apply_count_cap(list(range(6)), "Three Pillars", 8) == [0, 1, 2]

    def test_apply_hard_cap_wins(self):
        assert apply_count_cap(list(range(10)), "Eight Things", 5) == [0, 1, 2, 3, 4]

    def test_apply_without_title_count(self):
        assert apply_count_cap(list(range(3)), "Plan", 8) == [0, 1, 2]
