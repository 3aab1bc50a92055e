"""Core module pour form_builder."""
from .schemas import (
    ColumnSpan,
    FieldDefinition,
    FieldOption,
    Form,
    FormPage,
    FormSettings,
    FormUnion,
    MultiPageForm,
    Section,
    SectionStatus,
    SinglePageForm,
    ValidationRules,
    VisibilityCondition,
    all_fields,
    form_pages,
    iter_sections,
)
from .visibility import is_visible, resolve_visibility
from .validation import (
    REQUIRED_MESSAGE,
    FieldResult,
    collect_errors,
    section_statuses,
    validate_field,
    validate_form,
    validate_page,
    validate_section,
)
from .layout import resolve_column_span, responsive_classes

__all__ = [
    "ColumnSpan",
    "FieldDefinition",
    "FieldOption",
    "Form",
    "FormPage",
    "FormSettings",
    "FormUnion",
    "MultiPageForm",
    "Section",
    "SectionStatus",
    "SinglePageForm",
    "ValidationRules",
    "VisibilityCondition",
    "all_fields",
    "form_pages",
    "iter_sections",
    "is_visible",
    "resolve_visibility",
    "REQUIRED_MESSAGE",
    "FieldResult",
    "collect_errors",
    "section_statuses",
    "validate_field",
    "validate_form",
    "validate_page",
    "validate_section",
    "resolve_column_span",
    "responsive_classes",
]
