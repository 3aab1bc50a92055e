"""
Layout responsive — grille 12 colonnes.

columnSpan accepte deux formats qui ne doivent jamais se mélanger :
  - nombre  : 6                              → 6 sur tous les breakpoints
  - objet   : {"mobile": 12, "desktop": 4}   → breakpoints manquants = défauts 12 / 6 / 4
"""
from typing import Any, List, Mapping, Optional, Tuple

from pydantic import BaseModel

from .schemas import DEFAULT_SPANS, GRID_COLUMNS, ColumnSpan, FieldDefinition, clamp_span

BREAKPOINT_PREFIXES = {"mobile": "", "tablet": "md:", "desktop": "lg:"}
BREAKPOINT_MIN_WIDTH = {"tablet": 768, "desktop": 1024}


def _coerce_span(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return clamp_span(value)
    if isinstance(value, str) and value.strip().isdigit():
        return clamp_span(int(value))
    return None


def _is_object_form(column_span: Any) -> bool:
    return isinstance(column_span, (Mapping, BaseModel))


def resolve_column_span(column_span: Any) -> ColumnSpan:
    """
    Résout un columnSpan en {mobile, tablet, desktop}, chaque valeur dans [1, 12].

    >>> resolve_column_span(6)
    ColumnSpan(mobile=6, tablet=6, desktop=6)
    >>> resolve_column_span({"desktop": 3})
    ColumnSpan(mobile=12, tablet=6, desktop=3)
    """
    if isinstance(column_span, ColumnSpan):
        return column_span

    if _is_object_form(column_span):
        raw = column_span.model_dump() if isinstance(column_span, BaseModel) else column_span
        spans = {}
        for bp, default in DEFAULT_SPANS.items():
            v = _coerce_span(raw.get(bp))
            spans[bp] = default if v is None else v
        return ColumnSpan(**spans)

    n = _coerce_span(column_span)
    if n is None:
        return ColumnSpan()
    return ColumnSpan(mobile=n, tablet=n, desktop=n)


def desktop_span(column_span: Any) -> int:
    return resolve_column_span(column_span).desktop


def responsive_classes(column_span: Any) -> str:
    """Classes utilitaires du grid (format nombre → une seule classe)."""
    if column_span is not None and not _is_object_form(column_span):
        n = _coerce_span(column_span)
        if n is not None:
            return f"col-span-{n}"
    spans = resolve_column_span(column_span)
    return " ".join(
        f"{prefix}col-span-{getattr(spans, bp)}"
        for bp, prefix in BREAKPOINT_PREFIXES.items()
    )


def grid_column_style(column_span: Any, grid_column: int = 1) -> Optional[str]:
    """Valeur CSS grid-column pour le format nombre ; None pour le format objet."""
    if column_span is None or _is_object_form(column_span):
        return None
    n = _coerce_span(column_span)
    if n is None:
        return None
    return f"{grid_column} / span {n}"


# ── Placement sur la grille desktop ─────────────────────────────────────────

class GridPlacement(BaseModel):
    field_id: str
    row: int
    column: int
    span: int


def calculate_grid_positions(fields: List[FieldDefinition]) -> List[GridPlacement]:
    """
    Place les champs sur la grille desktop, ligne par ligne, avec retour à la
    ligne quand la largeur dépasse 12. Un champ avec gridRow + gridColumn garde
    sa position ; le curseur reprend après lui.
    """
    placements: List[GridPlacement] = []
    row, col = 1, 1
    for f in fields:
        span = desktop_span(f.column_span)
        if f.grid_row and f.grid_column:
            placements.append(GridPlacement(field_id=f.id, row=f.grid_row, column=f.grid_column, span=span))
            row, col = f.grid_row, f.grid_column + span
        else:
            if col + span - 1 > GRID_COLUMNS:
                row, col = row + 1, 1
            placements.append(GridPlacement(field_id=f.id, row=row, column=col, span=span))
            col += span
        if col > GRID_COLUMNS:
            row, col = row + 1, 1
    return placements


def validate_grid_positions(placements: List[GridPlacement]) -> Tuple[bool, List[str]]:
    """Détecte les colonnes hors grille et les chevauchements."""
    errors: List[str] = []
    occupied = {}
    for p in placements:
        if p.column < 1 or p.column > GRID_COLUMNS:
            errors.append(f"Field {p.field_id} has invalid column: {p.column}")
        if p.column + p.span - 1 > GRID_COLUMNS:
            errors.append(f"Field {p.field_id} exceeds grid width: column {p.column} + span {p.span}")
        for c in range(p.column, p.column + p.span):
            other = occupied.get((p.row, c))
            if other is not None:
                errors.append(f"Field {p.field_id} overlaps with field {other}")
                break
        for c in range(p.column, p.column + p.span):
            occupied.setdefault((p.row, c), p.field_id)
    return not errors, errors


def sort_by_grid_position(placements: List[GridPlacement]) -> List[GridPlacement]:
    return sorted(placements, key=lambda p: (p.row, p.column))
