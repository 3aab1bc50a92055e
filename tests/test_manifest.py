"""Tests manifest — chargement seed, formats historiques, warnings de chargement."""
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from form_builder import FormManifest, FormSchemaError, MultiPageForm, SinglePageForm, dump_form, parse_form
from form_builder.core.schemas import all_fields, iter_sections

SEEDS_DIR = Path(__file__).parent.parent / "seeds"


def _load_seed(name="project_form.json") -> dict:
    with open(SEEDS_DIR / name) as f:
        return json.load(f)


# ── Chargement seed ───────────────────────────────────────────────────────────

def test_load_project_form_seed():
    loaded = parse_form(_load_seed())
    form = loaded.form
    assert isinstance(form, MultiPageForm)
    assert form.id == "project-form"
    assert [p.id for p in form.pages] == ["page-basics", "page-contact"]
    assert loaded.warnings == []


def test_manifest_model_accepted():
    loaded = parse_form(FormManifest(**_load_seed()))
    assert loaded.form.title == "New Project"


def test_dump_then_parse_is_stable():
    form = parse_form(_load_seed()).form
    dumped = dump_form(form)
    assert dumped["settings"]["multiPage"] is True
    assert "visibleIf" in dumped["pages"][0]["sections"][0]["fields"][3]
    assert parse_form(dumped).form == form


# ── Formats historiques ───────────────────────────────────────────────────────

def test_legacy_flat_sections_single_page():
    loaded = parse_form({
        "title": "Legacy",
        "sections": [
            {"title": "B", "order": 1, "fields": [{"name": "b"}]},
            {"title": "A", "order": 0, "fields": [{"name": "a"}]},
        ],
    })
    form = loaded.form
    assert isinstance(form, SinglePageForm)
    assert [s.title for s in iter_sections(form)] == ["A", "B"]
    assert [s.id for s in form.sections] == ["section-1", "section-2"]


def test_legacy_multi_page_sections_become_pages():
    form = parse_form({
        "title": "Wizard",
        "settings": {"multiPage": True},
        "sections": [
            {"id": "s1", "title": "One", "fields": [{"name": "a"}]},
            {"id": "s2", "title": "Two", "fields": [{"name": "b"}]},
        ],
    }).form
    assert isinstance(form, MultiPageForm)
    assert [p.title for p in form.pages] == ["Page 1", "Page 2"]
    assert [p.sections[0].id for p in form.pages] == ["s1", "s2"]


def test_pages_flattened_without_multi_page():
    form = parse_form({
        "pages": [
            {"sections": [{"id": "x", "order": 5}]},
            {"sections": [{"id": "y", "order": 0}]},
        ],
    }).form
    assert isinstance(form, SinglePageForm)
    assert [s.id for s in iter_sections(form)] == ["x", "y"]


def test_legacy_field_keys():
    form = parse_form({"sections": [{"fields": [
        {"name": "hasPet", "type": "checkbox"},
        {"name": "petName", "hint": "Nom", "dependsOn": {"field": "hasPet", "value": True},
         "validation": {"required": True}},
    ]}]}).form
    pet = all_fields(form)[1]
    assert pet.required and pet.help_text == "Nom"
    assert pet.visible_if.field_name == "hasPet"


def test_unnamed_heading_gets_generated_name():
    form = parse_form({"sections": [{"fields": [{"type": "heading", "label": "Intro"}, {"name": "a"}]}]}).form
    assert [f.name for f in all_fields(form)] == ["__heading_1", "a"]


# ── Warnings : champs exclus, frères conservés ───────────────────────────────

def test_malformed_field_skipped_with_warning():
    loaded = parse_form({"sections": [{"title": "S", "fields": [
        {"type": "text", "label": "No name"},
        {"name": "ok"},
        "not-an-object",
        {"name": "color", "type": "select"},
        {"name": "slider", "type": "range"},
        {"name": "code", "validation": {"pattern": "[a-"}},
    ]}]})
    assert [f.name for f in all_fields(loaded.form)] == ["ok"]
    assert len(loaded.warnings) == 5
    assert all("ignored" in w for w in loaded.warnings)


def test_duplicate_name_skipped():
    loaded = parse_form({"sections": [{"fields": [{"name": "a"}, {"name": "a", "id": "a-2"}]}]})
    assert len(all_fields(loaded.form)) == 1
    assert "duplicate name" in loaded.warnings[0]


def test_duplicate_id_across_sections_skipped():
    loaded = parse_form({"sections": [
        {"fields": [{"name": "a"}]},
        {"fields": [{"name": "b", "id": "a"}]},
    ]})
    assert len(all_fields(loaded.form)) == 1
    assert "duplicate id" in loaded.warnings[0]


def test_same_name_in_two_sections_kept():
    loaded = parse_form({"sections": [
        {"id": "a", "fields": [{"name": "notes"}]},
        {"id": "b", "fields": [{"name": "notes", "type": "textarea"}]},
    ]})
    assert loaded.warnings == []
    a, b = iter_sections(loaded.form)
    assert [f.name for f in a.fields] == ["notes"]
    assert [f.name for f in b.fields] == ["notes"]
    assert a.fields[0].id == "notes"
    assert b.fields[0].id == "b.notes"


def test_generated_id_skips_taken_ids():
    loaded = parse_form({"sections": [
        {"id": "a", "fields": [{"name": "notes"}, {"name": "other", "id": "b.notes"}]},
        {"id": "b", "fields": [{"name": "notes"}]},
    ]})
    assert [f.id for f in all_fields(loaded.form)] == ["notes", "b.notes", "b.notes-2"]
    assert loaded.warnings == []


def test_unknown_visibility_reference_warned():
    loaded = parse_form({"sections": [{"fields": [
        {"name": "a", "visibleIf": {"fieldName": "ghost", "operator": "isNotEmpty"}},
    ]}]})
    assert len(all_fields(loaded.form)) == 1
    assert "unknown field 'ghost'" in loaded.warnings[0]


def test_grid_overlap_warned():
    loaded = parse_form({"sections": [{"title": "Grid", "fields": [
        {"name": "a", "columnSpan": 6, "gridRow": 1, "gridColumn": 1},
        {"name": "b", "columnSpan": 6, "gridRow": 1, "gridColumn": 4},
    ]}]})
    assert any("overlaps" in w for w in loaded.warnings)


def test_non_list_fields_warned():
    loaded = parse_form({"sections": [{"title": "S", "fields": "nope"}]})
    assert iter_sections(loaded.form)[0].fields == []
    assert "expected a list" in loaded.warnings[0]


# ── Erreurs fatales ───────────────────────────────────────────────────────────

@pytest.mark.parametrize("raw", [
    "not a form",
    ["a", "b"],
    {"sections": "nope"},
    {"settings": {"multiPage": "maybe"}},
    {"pages": [{"sections": "nope"}]},
])
def test_unusable_schema_raises(raw):
    with pytest.raises(FormSchemaError):
        parse_form(raw)


def test_schema_error_is_value_error():
    assert issubclass(FormSchemaError, ValueError)
