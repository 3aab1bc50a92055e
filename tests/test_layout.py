"""
Tests layout responsive — résolution columnSpan, classes, placement sur la grille.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from form_builder import FieldDefinition, resolve_column_span, responsive_classes
from form_builder.core.layout import (
    GridPlacement, calculate_grid_positions, grid_column_style,
    sort_by_grid_position, validate_grid_positions,
)


def _spans(cs):
    s = resolve_column_span(cs)
    return (s.mobile, s.tablet, s.desktop)


# ── resolve_column_span ──────────────────────────────────────────────────────

@pytest.mark.parametrize("n", [1, 4, 6, 12])
def test_number_applies_to_every_breakpoint(n):
    assert _spans(n) == (n, n, n)


def test_none_uses_defaults():
    assert _spans(None) == (12, 6, 4)


def test_desktop_only_object_fills_defaults():
    assert _spans({"desktop": 3}) == (12, 6, 3)


def test_mobile_only_object_does_not_blend_number_branch():
    assert _spans({"mobile": 6}) == (6, 6, 4)


def test_out_of_range_values_clamped():
    assert _spans(0) == (1, 1, 1)
    assert _spans(99) == (12, 12, 12)
    assert _spans({"tablet": -3, "desktop": 14}) == (12, 1, 12)


def test_garbage_object_values_use_defaults():
    assert _spans({"mobile": "wide", "tablet": None}) == (12, 6, 4)


# ── Classes / style ──────────────────────────────────────────────────────────

def test_classes_number_form():
    assert responsive_classes(6) == "col-span-6"


def test_classes_object_form():
    assert responsive_classes({"mobile": 12, "desktop": 4}) == "col-span-12 md:col-span-6 lg:col-span-4"


def test_classes_default():
    assert responsive_classes(None) == "col-span-12 md:col-span-6 lg:col-span-4"


def test_grid_column_style():
    assert grid_column_style(6, 4) == "4 / span 6"
    assert grid_column_style({"desktop": 6}, 4) is None
    assert grid_column_style(None) is None


# ── Placement ────────────────────────────────────────────────────────────────

def test_positions_wrap_rows():
    fields = [
        FieldDefinition(name="a", columnSpan=8),
        FieldDefinition(name="b", columnSpan=6),
        FieldDefinition(name="c", columnSpan=6),
    ]
    placements = calculate_grid_positions(fields)
    assert [(p.row, p.column, p.span) for p in placements] == [(1, 1, 8), (2, 1, 6), (2, 7, 6)]


def test_explicit_position_kept():
    fields = [
        FieldDefinition(name="a", columnSpan=4, gridRow=3, gridColumn=5),
        FieldDefinition(name="b", columnSpan=4),
    ]
    placements = calculate_grid_positions(fields)
    assert (placements[0].row, placements[0].column) == (3, 5)
    assert (placements[1].row, placements[1].column) == (3, 9)


def test_validate_detects_overlap_and_overflow():
    ok, errors = validate_grid_positions([
        GridPlacement(field_id="a", row=1, column=1, span=6),
        GridPlacement(field_id="b", row=1, column=4, span=6),
        GridPlacement(field_id="c", row=2, column=10, span=6),
    ])
    assert not ok
    assert any("overlaps" in e for e in errors)
    assert any("exceeds grid width" in e for e in errors)


def test_validate_accepts_clean_layout():
    ok, errors = validate_grid_positions(calculate_grid_positions([
        FieldDefinition(name="a", columnSpan=6), FieldDefinition(name="b", columnSpan=6),
    ]))
    assert ok and errors == []


def test_sort_by_grid_position():
    placements = [
        GridPlacement(field_id="c", row=2, column=1, span=4),
        GridPlacement(field_id="b", row=1, column=7, span=4),
        GridPlacement(field_id="a", row=1, column=1, span=4),
    ]
    assert [p.field_id for p in sort_by_grid_position(placements)] == ["a", "b", "c"]
