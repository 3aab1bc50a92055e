"""
Visibilité conditionnelle — évalue `visibleIf` contre les réponses courantes.

Pas de cache : recalcul à chaque changement de réponse (O(champs)).
Une condition qui référence un champ inexistant vaut False (le champ reste caché).
"""
from typing import Any, Collection, Dict, Iterable, Mapping, Optional, Set

from .schemas import FieldDefinition, VisibilityCondition


def as_text(value: Any) -> str:
    """Coercition texte pour equals/notEquals : True → "true", 18.0 → "18"."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def is_empty(value: Any) -> bool:
    """Absent, chaîne vide ou séquence vide."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) == 0
    return False


def evaluate_condition(condition: VisibilityCondition, actual: Any) -> bool:
    op, expected = condition.operator, condition.value

    if op == "equals":
        return as_text(actual) == as_text(expected)
    if op == "notEquals":
        return as_text(actual) != as_text(expected)
    if op == "contains":
        if isinstance(actual, str):
            return as_text(expected) in actual
        if isinstance(actual, (list, tuple, set, frozenset)):
            return any(as_text(item) == as_text(expected) for item in actual)
        return False
    if op in ("greaterThan", "lessThan"):
        a, b = as_number(actual), as_number(expected)
        if a is None or b is None:
            return False
        return a > b if op == "greaterThan" else a < b
    if op == "isEmpty":
        return is_empty(actual)
    if op == "isNotEmpty":
        return not is_empty(actual)
    return False


def is_visible(
    field: FieldDefinition,
    answers: Mapping[str, Any],
    known_fields: Optional[Collection[str]] = None,
) -> bool:
    """
    True si le champ doit être rendu.

    known_fields : noms des champs du formulaire ; si fourni, une condition
    sur un nom absent échoue (fail closed).
    """
    condition = field.visible_if
    if condition is None:
        return True
    if known_fields is not None and condition.field_name not in known_fields:
        return False
    return evaluate_condition(condition, answers.get(condition.field_name))


def resolve_visibility(fields: Iterable[FieldDefinition], answers: Mapping[str, Any]) -> Dict[str, bool]:
    """
    Visibilité de tous les champs d'un formulaire, indexée par field.id.

    Itère jusqu'au point fixe : un champ dont la condition porte sur un champ
    caché voit ce champ comme absent.
    """
    fields = list(fields)
    names = {f.name for f in fields}
    hidden: Set[str] = set()

    for _ in range(len(fields) + 1):
        dropped = hidden_names(fields, hidden)
        effective = {k: v for k, v in answers.items() if k not in dropped}
        now_hidden = {f.id for f in fields if not is_visible(f, effective, names)}
        if now_hidden == hidden:
            break
        hidden = now_hidden

    return {f.id: f.id not in hidden for f in fields}


def hidden_names(fields: Iterable[FieldDefinition], hidden_ids: Collection[str]) -> Set[str]:
    """Noms dont toutes les occurrences sont cachées (un nom peut exister dans plusieurs sections)."""
    visible, hidden = set(), set()
    for f in fields:
        (hidden if f.id in hidden_ids else visible).add(f.name)
    return hidden - visible


def strip_hidden(
    answers: Mapping[str, Any],
    fields: Iterable[FieldDefinition],
    visibility: Mapping[str, bool],
) -> Dict[str, Any]:
    """Retire des réponses les valeurs des champs cachés (payload brouillon et publication)."""
    hidden_ids = {fid for fid, shown in visibility.items() if not shown}
    drop = hidden_names(fields, hidden_ids)
    return {k: v for k, v in answers.items() if k not in drop}
