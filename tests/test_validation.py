"""
Tests moteur de validation — champs, sections, agrégats page / formulaire.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from form_builder import (
    REQUIRED_MESSAGE, FieldDefinition, FormPage, MultiPageForm, Section, SectionStatus,
    SinglePageForm, section_statuses, validate_field, validate_form, validate_page, validate_section,
)
from form_builder.core.validation import collect_errors, worst_status


# ── validate_field ───────────────────────────────────────────────────────────

@pytest.mark.parametrize("ftype,extra", [
    ("text", {}), ("textarea", {}), ("number", {}), ("email", {}), ("date", {}),
    ("select", {"options": ["a"]}), ("multiselect", {"options": ["a"]}),
    ("radio", {"options": ["a"]}), ("checkbox", {}), ("toggle", {}),
])
@pytest.mark.parametrize("empty", [None, "", "   ", []])
def test_required_empty_fails(ftype, extra, empty):
    f = FieldDefinition(name="f", type=ftype, required=True, **extra)
    r = validate_field(f, empty)
    assert r.valid is False
    assert r.message == REQUIRED_MESSAGE


def test_required_checkbox_must_be_checked():
    f = FieldDefinition(name="terms", type="checkbox", required=True)
    assert validate_field(f, False).message == REQUIRED_MESSAGE
    assert validate_field(f, True).valid


def test_optional_empty_passes():
    f = FieldDefinition(name="f", type="email")
    assert validate_field(f, "").valid


def test_number_below_minimum_mentions_minimum():
    f = FieldDefinition(name="age", type="number", required=True, validation={"min": 18})
    r = validate_field(f, "15")
    assert r.valid is False
    assert "minimum" in r.message
    assert "18" in r.message


def test_number_checks():
    f = FieldDefinition(name="n", type="number", validation={"min": 1, "max": 10})
    assert validate_field(f, "5").valid
    assert validate_field(f, 10).valid
    assert "maximum of 10" in validate_field(f, 11).message
    assert validate_field(f, "abc").message == "Please enter a valid number"


def test_text_length_and_pattern():
    f = FieldDefinition(name="code", validation={"minLength": 3, "maxLength": 5, "pattern": "^[A-Z]+$"})
    assert validate_field(f, "AB").message == "Minimum length is 3"
    assert validate_field(f, "ABCDEF").message == "Maximum length is 5"
    assert validate_field(f, "abc").message == "Invalid format"
    assert validate_field(f, "ABCD").valid


def test_custom_message_overrides_type_rule_only():
    f = FieldDefinition(name="code", required=True, validation={"pattern": "^x", "message": "Doit commencer par x"})
    assert validate_field(f, "abc").message == "Doit commencer par x"
    assert validate_field(f, "").message == REQUIRED_MESSAGE


def test_email():
    f = FieldDefinition(name="email", type="email")
    assert validate_field(f, "a@b.co").valid
    assert validate_field(f, "not-an-email").message == "Invalid email format"


def test_date():
    f = FieldDefinition(name="d", type="date")
    assert validate_field(f, "2024-02-29").valid
    assert validate_field(f, "29/02/2024").message == "Invalid date"


def test_select_and_multiselect():
    s = FieldDefinition(name="s", type="select", options=[{"value": 1, "label": "One"}, {"value": 2}])
    assert validate_field(s, "1").valid
    assert validate_field(s, 3).message == "Please select a valid option"
    m = FieldDefinition(name="m", type="multiselect", options=["a", "b"])
    assert validate_field(m, ["a", "b"]).valid
    assert validate_field(m, ["a", "z"]).message == "Please select valid options"


def test_non_input_always_valid():
    assert validate_field(FieldDefinition(name="h", type="heading", required=True), None).valid


def test_validate_field_is_pure():
    f = FieldDefinition(name="age", type="number", validation={"min": 18})
    assert validate_field(f, "15") == validate_field(f, "15")


# ── validate_section ─────────────────────────────────────────────────────────

@pytest.fixture
def two_required():
    return Section(id="s", fields=[
        FieldDefinition(name="first", required=True),
        FieldDefinition(name="last", required=True),
    ])


def test_one_required_filled_one_empty_is_error(two_required):
    assert validate_section(two_required, {"first": "Ada"}) == SectionStatus.ERROR


def test_untouched_section_is_empty(two_required):
    assert validate_section(two_required, {}) == SectionStatus.EMPTY


def test_complete_section_is_valid(two_required):
    assert validate_section(two_required, {"first": "Ada", "last": "Lovelace"}) == SectionStatus.VALID


def test_invalid_value_is_error():
    section = Section(fields=[FieldDefinition(name="email", type="email")])
    assert validate_section(section, {"email": "nope"}) == SectionStatus.ERROR


def test_hidden_required_field_ignored():
    section = Section(fields=[
        FieldDefinition(name="hasPet", type="checkbox"),
        FieldDefinition(name="petName", required=True,
                        visibleIf={"fieldName": "hasPet", "operator": "equals", "value": True}),
        FieldDefinition(name="owner", required=True),
    ])
    assert validate_section(section, {"hasPet": False, "owner": "Ada"}) == SectionStatus.VALID
    assert validate_section(section, {"hasPet": True, "owner": "Ada"}) == SectionStatus.ERROR


def test_validate_section_does_not_mutate(two_required):
    answers = {"first": "Ada"}
    validate_section(two_required, answers)
    assert answers == {"first": "Ada"}


# ── Agrégats ─────────────────────────────────────────────────────────────────

def test_worst_status_order():
    assert worst_status([SectionStatus.VALID, SectionStatus.EMPTY]) == SectionStatus.EMPTY
    assert worst_status([SectionStatus.EMPTY, SectionStatus.ERROR, SectionStatus.VALID]) == SectionStatus.ERROR
    assert worst_status([]) == SectionStatus.VALID


def test_validate_page_and_form():
    ok = Section(id="ok", fields=[FieldDefinition(name="a", required=True)])
    untouched = Section(id="untouched", fields=[FieldDefinition(name="b", required=True)])
    page = FormPage(sections=[ok, untouched])
    assert validate_page(page, {"a": "x"}) == SectionStatus.EMPTY
    assert validate_page(page, {"a": "x", "b": "y"}) == SectionStatus.VALID

    form = MultiPageForm(pages=[page, FormPage(sections=[
        Section(id="bad", fields=[FieldDefinition(name="c", type="email")]),
    ])])
    assert validate_form(form, {"a": "x", "b": "y", "c": "bad"}) == SectionStatus.ERROR


def test_cross_section_visibility_in_form():
    form = SinglePageForm(sections=[
        Section(id="s1", order=0, fields=[FieldDefinition(name="mode", type="radio", options=["a", "b"])]),
        Section(id="s2", order=1, fields=[
            FieldDefinition(name="detail", required=True,
                            visibleIf={"fieldName": "mode", "operator": "equals", "value": "b"}),
        ]),
    ])
    statuses = section_statuses(form, {"mode": "a"})
    # s2 n'a plus aucun champ visible
    assert statuses == {"s1": SectionStatus.VALID, "s2": SectionStatus.VALID}
    assert validate_form(form, {"mode": "a"}) == SectionStatus.VALID
    assert section_statuses(form, {"mode": "b"})["s2"] == SectionStatus.EMPTY
    assert validate_form(form, {"mode": "b", "detail": "x"}) == SectionStatus.VALID


def test_collect_errors_messages(two_required):
    assert collect_errors([two_required], {"first": "Ada"}) == {"last": REQUIRED_MESSAGE}
