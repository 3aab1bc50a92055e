"""
Tests unitaires pour les schémas Pydantic (champs, sections, variantes de formulaire).
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from pydantic import TypeAdapter, ValidationError

from form_builder import (
    FieldDefinition, FormPage, FormSettings, MultiPageForm, Section, SinglePageForm,
)
from form_builder.core.schemas import FormUnion, all_fields, form_pages, iter_sections


def test_field_defaults():
    f = FieldDefinition(name="title")
    assert f.id == "title"
    assert f.type == "text"
    assert f.required is False
    assert f.column_span is None
    assert f.is_input


def test_field_camel_case_aliases():
    f = FieldDefinition.model_validate({
        "name": "age", "type": "number", "helpText": "En années",
        "validation": {"minLength": 1, "min": 18},
        "columnSpan": {"desktop": 3},
        "gridRow": 2, "gridColumn": 5,
    })
    assert f.help_text == "En années"
    assert f.validation.min == 18
    assert f.validation.min_length == 1
    assert f.column_span == {"desktop": 3}
    assert (f.grid_row, f.grid_column) == (2, 5)


def test_field_requires_name():
    with pytest.raises(ValidationError):
        FieldDefinition.model_validate({"type": "text", "label": "Sans nom"})


def test_field_unknown_type_rejected():
    with pytest.raises(ValidationError):
        FieldDefinition(name="x", type="slider")


def test_choice_field_needs_options():
    with pytest.raises(ValidationError):
        FieldDefinition(name="color", type="select")


def test_scalar_options_normalised():
    f = FieldDefinition(name="color", type="radio", options=["red", "blue"])
    assert f.option_values == ["red", "blue"]
    assert f.options[0].label == "red"


def test_invalid_pattern_rejected():
    with pytest.raises(ValidationError):
        FieldDefinition(name="code", validation={"pattern": "[a-"})


def test_column_span_clamped():
    assert FieldDefinition(name="a", columnSpan=20).column_span == 12
    assert FieldDefinition(name="b", columnSpan=0).column_span == 1
    assert FieldDefinition(name="c", columnSpan={"mobile": 40, "desktop": 0}).column_span == {"mobile": 12, "desktop": 1}


# ── Format historique ────────────────────────────────────────────────────────

def test_legacy_hint_and_depends_on():
    f = FieldDefinition.model_validate({
        "name": "petName", "hint": "Son petit nom",
        "dependsOn": {"field": "hasPet", "value": True},
    })
    assert f.help_text == "Son petit nom"
    assert f.visible_if.field_name == "hasPet"
    assert f.visible_if.operator == "equals"
    assert f.visible_if.value is True


def test_legacy_validation_required():
    f = FieldDefinition.model_validate({"name": "email", "type": "email", "validation": {"required": True}})
    assert f.required is True


def test_legacy_multi_select():
    f = FieldDefinition.model_validate({"name": "tags", "type": "select", "multiSelect": True, "options": ["a", "b"]})
    assert f.type == "multiselect"


# ── Sections / formulaires ───────────────────────────────────────────────────

def test_section_duplicate_names_rejected():
    with pytest.raises(ValidationError):
        Section(fields=[FieldDefinition(name="a"), FieldDefinition(name="a", id="a2")])


def test_settings_defaults():
    s = FormSettings()
    assert s.multi_page is False
    assert s.show_progress_bar is True
    assert s.allow_save_draft is True


def test_form_union_discriminates_on_kind():
    adapter = TypeAdapter(FormUnion)
    single = adapter.validate_python({"kind": "single", "sections": []})
    multi = adapter.validate_python({"kind": "multi", "pages": [{"sections": []}]})
    assert isinstance(single, SinglePageForm)
    assert isinstance(multi, MultiPageForm)


def test_single_page_form_is_one_page_ordered():
    form = SinglePageForm(id="f1", sections=[
        Section(id="b", order=2, fields=[FieldDefinition(name="y")]),
        Section(id="a", order=1, fields=[FieldDefinition(name="x")]),
    ])
    pages = form_pages(form)
    assert len(pages) == 1
    assert pages[0].id == "f1"
    assert [s.id for s in pages[0].sections] == ["a", "b"]
    assert [f.name for f in all_fields(form)] == ["x", "y"]


def test_multi_page_form_pages_and_sections():
    form = MultiPageForm(pages=[
        FormPage(id="p1", sections=[Section(id="s1")]),
        FormPage(id="p2", sections=[Section(id="s2"), Section(id="s3")]),
    ])
    assert [p.id for p in form_pages(form)] == ["p1", "p2"]
    assert [s.id for s in iter_sections(form)] == ["s1", "s2", "s3"]
