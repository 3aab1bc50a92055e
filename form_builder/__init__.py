"""
Form Builder — formulaires dynamiques : schéma, validation, visibilité, layout responsive.

Usage :
    >>> from form_builder import parse_form, FormSession, render_document
    >>> import json
    >>> with open("seeds/project_form.json") as f:
    ...     loaded = parse_form(json.load(f))
    >>> session = FormSession(loaded.form, warnings=loaded.warnings, on_submit=print)
    >>> session.set_answer("title", "Rénovation")
    >>> html = render_document(session)
"""

# ── Schémas ─────────────────────────────────────────────────────────────────
from .core.schemas import (
    ColumnSpan,
    FieldDefinition,
    FieldOption,
    Form,
    FormPage,
    FormSettings,
    MultiPageForm,
    Section,
    SectionStatus,
    SinglePageForm,
    ValidationRules,
    VisibilityCondition,
)

# ── Moteur ──────────────────────────────────────────────────────────────────
from .core.visibility import is_visible, resolve_visibility
from .core.validation import (
    REQUIRED_MESSAGE,
    FieldResult,
    section_statuses,
    validate_field,
    validate_form,
    validate_page,
    validate_section,
)
from .core.layout import resolve_column_span, responsive_classes

# ── Manifest + session + rendu ──────────────────────────────────────────────
from .manifest import FormManifest, FormSchemaError, LoadedForm, dump_form, parse_form
from .session import FormSession, SessionMode, SessionState, SubmitResult
from .renderer.html import render_document, render_form

__version__ = "0.3.0"

__all__ = [
    "ColumnSpan", "FieldDefinition", "FieldOption", "Form", "FormPage", "FormSettings",
    "MultiPageForm", "Section", "SectionStatus", "SinglePageForm",
    "ValidationRules", "VisibilityCondition",
    "is_visible", "resolve_visibility",
    "REQUIRED_MESSAGE", "FieldResult", "section_statuses",
    "validate_field", "validate_form", "validate_page", "validate_section",
    "resolve_column_span", "responsive_classes",
    "FormManifest", "FormSchemaError", "LoadedForm", "dump_form", "parse_form",
    "FormSession", "SessionMode", "SessionState", "SubmitResult",
    "render_document", "render_form",
]
