"""
Moteur de validation — fonctions pures de (schéma, réponses).

validate_field()    → FieldResult(valid, message)
validate_section()  → SectionStatus
validate_page()     → pire statut des sections (error > empty > valid)
validate_form()     → pire statut de toutes les sections
"""
import re
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel

from .schemas import (
    BOOLEAN_TYPES,
    FieldDefinition,
    Form,
    FormPage,
    Section,
    SectionStatus,
    all_fields,
    iter_sections,
)
from .visibility import as_number, as_text, is_empty, resolve_visibility

REQUIRED_MESSAGE = "This field is required"
EMAIL_RE = re.compile(r"\S+@\S+\.\S+")

_STATUS_RANK = {SectionStatus.VALID: 0, SectionStatus.EMPTY: 1, SectionStatus.ERROR: 2}


class FieldResult(BaseModel):
    valid: bool
    message: Optional[str] = None


_OK = FieldResult(valid=True)


def _fmt(n: float) -> str:
    return str(int(n)) if float(n).is_integer() else str(n)


def is_missing(field: FieldDefinition, value: Any) -> bool:
    """Valeur absente au sens de `required` (case à cocher : doit valoir True)."""
    if field.type in BOOLEAN_TYPES:
        return not (value is True or as_text(value).lower() in ("true", "on", "1"))
    if isinstance(value, str):
        return value.strip() == ""
    return is_empty(value)


# ── Vérifications par type ──────────────────────────────────────────────────

def _check_text(field: FieldDefinition, value: Any) -> Optional[str]:
    rules = field.validation
    text = value if isinstance(value, str) else as_text(value)
    if rules.min_length is not None and len(text) < rules.min_length:
        return rules.message or f"Minimum length is {rules.min_length}"
    if rules.max_length is not None and len(text) > rules.max_length:
        return rules.message or f"Maximum length is {rules.max_length}"
    if rules.pattern and not re.search(rules.pattern, text):
        return rules.message or "Invalid format"
    return None


def _check_number(field: FieldDefinition, value: Any) -> Optional[str]:
    rules = field.validation
    n = as_number(value)
    if n is None:
        return rules.message or "Please enter a valid number"
    if rules.min is not None and n < rules.min:
        return rules.message or f"Value is below the minimum of {_fmt(rules.min)}"
    if rules.max is not None and n > rules.max:
        return rules.message or f"Value is above the maximum of {_fmt(rules.max)}"
    return None


def _check_email(field: FieldDefinition, value: Any) -> Optional[str]:
    if isinstance(value, str) and EMAIL_RE.search(value):
        return None
    return field.validation.message or "Invalid email format"


def _check_date(field: FieldDefinition, value: Any) -> Optional[str]:
    if isinstance(value, date):
        return None
    try:
        date.fromisoformat(str(value))
    except ValueError:
        return field.validation.message or "Invalid date"
    return None


def _check_choice(field: FieldDefinition, value: Any) -> Optional[str]:
    allowed = {as_text(v) for v in field.option_values}
    if as_text(value) in allowed:
        return None
    return field.validation.message or "Please select a valid option"


def _check_multi(field: FieldDefinition, value: Any) -> Optional[str]:
    allowed = {as_text(v) for v in field.option_values}
    selected = value if isinstance(value, (list, tuple, set, frozenset)) else [value]
    if all(as_text(v) in allowed for v in selected):
        return None
    return field.validation.message or "Please select valid options"


_CHECKERS: Dict[str, Callable[[FieldDefinition, Any], Optional[str]]] = {
    "text":        _check_text,
    "textarea":    _check_text,
    "password":    _check_text,
    "number":      _check_number,
    "email":       _check_email,
    "date":        _check_date,
    "select":      _check_choice,
    "radio":       _check_choice,
    "multiselect": _check_multi,
}


def validate_field(field: FieldDefinition, value: Any) -> FieldResult:
    """Valide une valeur ; `required` court-circuite les contrôles de type."""
    if not field.is_input:
        return _OK
    if is_missing(field, value):
        if field.required:
            return FieldResult(valid=False, message=REQUIRED_MESSAGE)
        return _OK
    checker = _CHECKERS.get(field.type)
    message = checker(field, value) if checker else None
    return _OK if message is None else FieldResult(valid=False, message=message)


# ── Agrégats ────────────────────────────────────────────────────────────────

def worst_status(statuses: Iterable[SectionStatus]) -> SectionStatus:
    """error > empty > valid ; aucun statut → valid."""
    return max(statuses, key=lambda s: _STATUS_RANK[s], default=SectionStatus.VALID)


def _visible_inputs(section: Section, answers: Mapping[str, Any],
                    visibility: Optional[Mapping[str, bool]]) -> List[FieldDefinition]:
    if visibility is None:
        visibility = resolve_visibility(section.fields, answers)
    return [f for f in section.fields if f.is_input and visibility.get(f.id, True)]


def validate_section(
    section: Section,
    answers: Mapping[str, Any],
    visibility: Optional[Mapping[str, bool]] = None,
) -> SectionStatus:
    """
    valid : aucun champ de saisie visible
    empty : aucun champ visible n'a encore de valeur
    error : au moins un champ visible échoue (y compris requis vide)
    valid : sinon

    visibility : résultat de resolve_visibility() sur tout le formulaire ;
    calculé sur la seule section si absent.
    """
    fields = _visible_inputs(section, answers, visibility)
    if not fields:
        return SectionStatus.VALID
    if all(is_missing(f, answers.get(f.name)) for f in fields):
        return SectionStatus.EMPTY
    for f in fields:
        if not validate_field(f, answers.get(f.name)).valid:
            return SectionStatus.ERROR
    return SectionStatus.VALID


def validate_page(
    page: FormPage,
    answers: Mapping[str, Any],
    visibility: Optional[Mapping[str, bool]] = None,
) -> SectionStatus:
    return worst_status(validate_section(s, answers, visibility) for s in page.sections)


def validate_form(form: Form, answers: Mapping[str, Any]) -> SectionStatus:
    visibility = resolve_visibility(all_fields(form), answers)
    return worst_status(validate_section(s, answers, visibility) for s in iter_sections(form))


def section_statuses(form: Form, answers: Mapping[str, Any]) -> Dict[str, SectionStatus]:
    """Statut de chaque section, indexé par section.id (barre latérale de navigation)."""
    visibility = resolve_visibility(all_fields(form), answers)
    return {s.id: validate_section(s, answers, visibility) for s in iter_sections(form)}


def collect_errors(
    sections: Iterable[Section],
    answers: Mapping[str, Any],
    visibility: Optional[Mapping[str, bool]] = None,
) -> Dict[str, str]:
    """Messages d'erreur {field.name: message} des champs visibles en échec."""
    errors: Dict[str, str] = {}
    for section in sections:
        for f in _visible_inputs(section, answers, visibility):
            result = validate_field(f, answers.get(f.name))
            if not result.valid and f.name not in errors:
                errors[f.name] = result.message
    return errors
