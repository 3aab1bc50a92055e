"""
Schémas Pydantic pour le Form Builder.
Structure récursive : Form → Page → Section → FieldDefinition

Deux variantes de formulaire, discriminées par `kind` :
  - SinglePageForm  : sections à plat (format historique)
  - MultiPageForm   : pages → sections (settings.multiPage = true)
"""
import re
import uuid
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


FieldType = Literal[
    "text", "textarea", "number", "email", "password", "date",
    "select", "multiselect", "checkbox", "radio", "toggle",
    "file", "hidden", "heading", "divider",
]

FIELD_TYPES: tuple = FieldType.__args__
NON_INPUT_TYPES = frozenset({"heading", "divider"})
OPTION_TYPES = frozenset({"select", "radio", "multiselect"})
BOOLEAN_TYPES = frozenset({"checkbox", "toggle"})

VisibilityOperator = Literal[
    "equals", "notEquals", "contains", "greaterThan", "lessThan", "isEmpty", "isNotEmpty",
]

VISIBILITY_OPERATORS: tuple = VisibilityOperator.__args__

GRID_COLUMNS = 12
DEFAULT_SPANS = {"mobile": 12, "tablet": 6, "desktop": 4}


class SectionStatus(str, Enum):
    """Statut dérivé d'une section (jamais stocké)."""
    EMPTY = "empty"
    VALID = "valid"
    ERROR = "error"


def clamp_span(value: int) -> int:
    return max(1, min(GRID_COLUMNS, int(value)))


# ── Field ───────────────────────────────────────────────────────────────────

class FieldOption(BaseModel):
    value: Any
    label: str = ""

    @model_validator(mode="before")
    @classmethod
    def _from_scalar(cls, data):
        # ["a", "b"] → [{"value": "a", "label": "a"}, ...]
        if isinstance(data, (str, int, float)):
            return {"value": data, "label": str(data)}
        return data


class ValidationRules(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    min_length: Optional[int] = Field(default=None, alias="minLength", ge=0)
    max_length: Optional[int] = Field(default=None, alias="maxLength", ge=0)
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None
    message: Optional[str] = None

    @field_validator("pattern")
    @classmethod
    def _pattern_compiles(cls, v):
        if v:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"invalid pattern {v!r}: {e}") from e
        return v or None


class VisibilityCondition(BaseModel):
    """Affiche le champ seulement si answers[field_name] satisfait l'opérateur."""
    model_config = ConfigDict(populate_by_name=True)

    field_name: str = Field(..., alias="fieldName", min_length=1)
    operator: VisibilityOperator = "equals"
    value: Any = None


class ColumnSpan(BaseModel):
    """Largeur résolue par breakpoint (toujours dans [1, 12])."""
    mobile: int = DEFAULT_SPANS["mobile"]
    tablet: int = DEFAULT_SPANS["tablet"]
    desktop: int = DEFAULT_SPANS["desktop"]

    @field_validator("mobile", "tablet", "desktop")
    @classmethod
    def _clamp(cls, v):
        return clamp_span(v)


class FieldDefinition(BaseModel):
    """Définition d'un champ de formulaire."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = ""
    name: str = Field(..., min_length=1)
    type: FieldType = "text"
    label: str = ""
    placeholder: Optional[str] = None
    help_text: Optional[str] = Field(default=None, alias="helpText")
    required: bool = False
    validation: ValidationRules = Field(default_factory=ValidationRules)
    options: List[FieldOption] = Field(default_factory=list)
    visible_if: Optional[VisibilityCondition] = Field(default=None, alias="visibleIf")
    column_span: Union[int, Dict[str, int], None] = Field(default=None, alias="columnSpan")
    grid_row: Optional[int] = Field(default=None, alias="gridRow", ge=1)
    grid_column: Optional[int] = Field(default=None, alias="gridColumn", ge=1, le=GRID_COLUMNS)
    rows: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def _legacy_keys(cls, data):
        """Normalise les clés du format historique (hint, dependsOn, validation.required…)."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "hint" in data and "helpText" not in data and "help_text" not in data:
            data["helpText"] = data.pop("hint")
        depends = data.pop("dependsOn", None)
        if isinstance(depends, dict) and "visibleIf" not in data and "visible_if" not in data:
            data["visibleIf"] = {
                "fieldName": depends.get("field"),
                "operator": "equals",
                "value": depends.get("value"),
            }
        validation = data.get("validation")
        if isinstance(validation, dict) and validation.get("required"):
            data["required"] = True
        if data.get("type") == "select" and data.get("multiSelect"):
            data["type"] = "multiselect"
        return data

    @field_validator("column_span", mode="before")
    @classmethod
    def _clamp_column_span(cls, v):
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, dict):
            return {
                k: clamp_span(v[k])
                for k in DEFAULT_SPANS
                if isinstance(v.get(k), (int, float)) and not isinstance(v.get(k), bool)
            }
        if isinstance(v, (int, float)):
            return clamp_span(v)
        if isinstance(v, str) and v.strip().isdigit():
            return clamp_span(int(v))
        raise ValueError(f"invalid columnSpan {v!r}")

    @model_validator(mode="after")
    def _check(self):
        if not self.id:
            self.id = self.name
        if self.type in OPTION_TYPES and not self.options:
            raise ValueError(f"field {self.name!r} of type {self.type} needs options")
        return self

    @property
    def is_input(self) -> bool:
        return self.type not in NON_INPUT_TYPES

    @property
    def option_values(self) -> List[Any]:
        return [o.value for o in self.options]


# ── Section / Page ──────────────────────────────────────────────────────────

class Section(BaseModel):
    """Groupe de champs ; `order` détermine l'ordre d'affichage."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    title: str = ""
    description: str = ""
    order: int = 0
    fields: List[FieldDefinition] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_names(self):
        seen = set()
        for f in self.fields:
            if f.name in seen:
                raise ValueError(f"duplicate field name {f.name!r} in section {self.id!r}")
            seen.add(f.name)
        return self


class FormPage(BaseModel):
    """Page d'un formulaire multi-pages (distincte de l'entité Page du site)."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    title: str = ""
    sections: List[Section] = Field(default_factory=list)


class FormSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    multi_page: bool = Field(default=False, alias="multiPage")
    show_progress_bar: bool = Field(default=True, alias="showProgressBar")
    allow_save_draft: bool = Field(default=True, alias="allowSaveDraft")


# ── Form (variante taguée) ──────────────────────────────────────────────────

class BaseForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    title: str = ""
    description: str = ""
    settings: FormSettings = Field(default_factory=FormSettings)
    published: bool = False


class SinglePageForm(BaseForm):
    kind: Literal["single"] = "single"
    sections: List[Section] = Field(default_factory=list)


class MultiPageForm(BaseForm):
    kind: Literal["multi"] = "multi"
    pages: List[FormPage] = Field(default_factory=list)


FormUnion = Annotated[Union[SinglePageForm, MultiPageForm], Field(discriminator="kind")]
Form = Union[SinglePageForm, MultiPageForm]


def ordered_sections(sections: List[Section]) -> List[Section]:
    """Tri par `order` ; sorted() est stable donc l'égalité garde l'ordre du tableau."""
    return sorted(sections, key=lambda s: s.order)


def form_pages(form: Form) -> List[FormPage]:
    """Pages effectives d'un formulaire ; un formulaire simple n'a qu'une page."""
    if isinstance(form, MultiPageForm):
        return [
            FormPage(id=p.id, title=p.title, sections=ordered_sections(p.sections))
            for p in form.pages
        ]
    if isinstance(form, SinglePageForm):
        return [FormPage(id=form.id, title=form.title, sections=ordered_sections(form.sections))]
    raise TypeError(f"unsupported form type: {type(form).__name__}")


def iter_sections(form: Form) -> List[Section]:
    return [s for page in form_pages(form) for s in page.sections]


def all_fields(form: Form) -> List[FieldDefinition]:
    return [f for s in iter_sections(form) for f in s.fields]
