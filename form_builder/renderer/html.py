"""
Renderer HTML — génère le HTML d'une FormSession.
Dispatch par field.type ; la page courante seulement pour un formulaire multi-pages.
"""
from html import escape
from typing import Any, Dict, Optional

from ..core.layout import (
    calculate_grid_positions,
    grid_column_style,
    responsive_classes,
    sort_by_grid_position,
)
from ..core.schemas import FieldDefinition, MultiPageForm, Section, SectionStatus
from ..core.visibility import as_text
from ..session import FormSession, SessionMode
from .css import generate_form_css


# ── Point d'entrée public ───────────────────────────────────────────────────

def render_document(session: FormSession, extra_head: str = "") -> str:
    """HTML complet : formulaire + barre latérale des sections."""
    title = escape(session.form.title or "Form")
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
  <style>{generate_form_css()}</style>
  {extra_head}
</head>
<body>
<div class="form-layout">
{render_form(session)}
{render_section_nav(session)}
</div>
</body>
</html>"""


def render_form(session: FormSession, action: str = "") -> str:
    form = session.form
    page = session.current_page
    sections = page.sections if page else []

    parts = [f'<form class="form" method="post" action="{escape(action)}" autocomplete="off">']
    if form.title:
        parts.append(f'  <h1 class="form__title">{escape(form.title)}</h1>')
    if form.description:
        parts.append(f'  <p class="form__description">{escape(form.description)}</p>')
    if session.warnings:
        items = "".join(f"<li>{escape(w)}</li>" for w in session.warnings)
        parts.append(f'  <ul class="form__warnings">{items}</ul>')
    if session.notice:
        parts.append(f'  <p class="form__notice" role="alert">{escape(session.notice)}</p>')

    parts.append(render_progress(session))
    parts.extend(render_section(session, s) for s in sections)
    parts.append(render_actions(session))
    parts.append("</form>")
    return "\n".join(p for p in parts if p)


def render_progress(session: FormSession) -> str:
    if not isinstance(session.form, MultiPageForm) or session.page_count < 2:
        return ""
    progress = session.progress
    if progress is None:
        return ""
    pct = round(progress * 100)
    return f"""  <div class="progress">
    <div class="progress__label"><span>Step {session.page_index + 1} of {session.page_count}</span><span>{pct}% Complete</span></div>
    <div class="progress__track"><div class="progress__bar" style="width:{pct}%"></div></div>
  </div>"""


# ── Section ─────────────────────────────────────────────────────────────────

def render_section(session: FormSession, section: Section) -> str:
    active = " form-section--active" if section.id == session.active_section_id else ""
    desc = (f'\n      <p class="form-section__description">{escape(section.description)}</p>'
            if section.description else "")

    visible = {f.id: f for f in session.visible_fields(section)}
    fields = section.fields
    if any(f.grid_row and f.grid_column for f in fields):
        by_id = {f.id: f for f in fields}
        fields = [by_id[p.field_id] for p in sort_by_grid_position(calculate_grid_positions(fields))]

    cells = "\n".join(
        render_cell(f, session.answers.get(f.name), session.errors.get(f.name), session.read_only)
        for f in fields if f.id in visible
    )
    return f"""  <section id="{escape(section.id)}" class="form-section{active}">
    <div class="form-section__header">
      <h2 class="form-section__title">{escape(section.title)}</h2>{desc}
    </div>
    <div class="grid">
{cells}
    </div>
  </section>"""


def render_cell(field: FieldDefinition, value: Any, error: Optional[str], read_only: bool) -> str:
    """Cellule de grille : classes responsive (format objet) ou grid-column (format nombre)."""
    if field.type == "textarea" and field.column_span is None:
        classes = "col-span-12"
    else:
        classes = responsive_classes(field.column_span)
    style = grid_column_style(field.column_span, field.grid_column or 1) if field.grid_column else None
    style_attr = f' style="grid-column:{style}"' if style else ""
    error_cls = " field--error" if error else ""
    return (f'      <div class="field {classes}{error_cls}"{style_attr}>\n'
            f'{render_field(field, value, error, read_only)}\n'
            f'      </div>')


# ── Dispatch par type ───────────────────────────────────────────────────────

def render_field(field: FieldDefinition, value: Any, error: Optional[str] = None,
                 read_only: bool = False) -> str:
    if field.type == "heading":
        return f'        <h3 class="field__heading">{escape(field.label)}</h3>'
    if field.type == "divider":
        return '        <hr class="field__divider">'
    if field.type == "hidden":
        return f'        <input type="hidden" name="{escape(field.name)}" value="{escape(as_text(value))}">'

    renderer = _FIELD_RENDERERS.get(field.type, _render_input)
    control = renderer(field, value, _attrs(field, read_only))
    return "\n".join(p for p in (_label(field), control, _feedback(field, error)) if p)


def _attrs(field: FieldDefinition, read_only: bool) -> str:
    attrs = [f'id="field-{escape(field.id)}"', f'name="{escape(field.name)}"']
    if field.required:
        attrs.append("required")
    if read_only:
        attrs.append("disabled")
    return " ".join(attrs)


def _label(field: FieldDefinition) -> str:
    if field.type in ("checkbox", "toggle"):
        return ""
    star = '<span class="field__required">*</span>' if field.required else ""
    return f'        <label for="field-{escape(field.id)}">{escape(field.label)}{star}</label>'


def _feedback(field: FieldDefinition, error: Optional[str]) -> str:
    if error:
        return f'        <p class="field__error">{escape(error)}</p>'
    if field.help_text:
        return f'        <p class="field__help">{escape(field.help_text)}</p>'
    return ""


def _render_input(field: FieldDefinition, value: Any, attrs: str) -> str:
    input_type = field.type if field.type in ("email", "number", "password", "date", "file") else "text"
    placeholder = f' placeholder="{escape(field.placeholder)}"' if field.placeholder else ""
    val = "" if input_type in ("file", "password") else f' value="{escape(as_text(value))}"'
    return f'        <input type="{input_type}" {attrs}{val}{placeholder}>'


def _render_textarea(field: FieldDefinition, value: Any, attrs: str) -> str:
    placeholder = f' placeholder="{escape(field.placeholder)}"' if field.placeholder else ""
    return f'        <textarea {attrs} rows="{field.rows or 4}"{placeholder}>{escape(as_text(value))}</textarea>'


def _options(field: FieldDefinition, selected: set) -> str:
    return "".join(
        f'<option value="{escape(as_text(o.value))}"'
        f'{" selected" if as_text(o.value) in selected else ""}>{escape(o.label or as_text(o.value))}</option>'
        for o in field.options
    )


def _render_select(field: FieldDefinition, value: Any, attrs: str) -> str:
    prompt = f'<option value="">Select {escape(field.label)}</option>'
    return f'        <select {attrs}>{prompt}{_options(field, {as_text(value)})}</select>'


def _render_multiselect(field: FieldDefinition, value: Any, attrs: str) -> str:
    values = value if isinstance(value, (list, tuple, set)) else ([] if value is None else [value])
    return f'        <select {attrs} multiple>{_options(field, {as_text(v) for v in values})}</select>'


def _render_radio(field: FieldDefinition, value: Any, attrs: str) -> str:
    disabled = " disabled" if attrs.endswith("disabled") else ""
    current = as_text(value)
    items = "".join(
        f'<label><input type="radio" name="{escape(field.name)}" value="{escape(as_text(o.value))}"'
        f'{" checked" if as_text(o.value) == current else ""}{disabled}> {escape(o.label or as_text(o.value))}</label>'
        for o in field.options
    )
    return f'        <div class="field__options" role="radiogroup">{items}</div>'


def _render_checkbox(field: FieldDefinition, value: Any, attrs: str) -> str:
    checked = " checked" if value is True or as_text(value).lower() in ("true", "on", "1") else ""
    role = ' role="switch"' if field.type == "toggle" else ""
    star = '<span class="field__required">*</span>' if field.required else ""
    return (f'        <label><input type="checkbox" {attrs} value="true"{checked}{role}> '
            f'{escape(field.label)}{star}</label>')


_FIELD_RENDERERS: Dict[str, Any] = {
    "textarea":    _render_textarea,
    "select":      _render_select,
    "multiselect": _render_multiselect,
    "radio":       _render_radio,
    "checkbox":    _render_checkbox,
    "toggle":      _render_checkbox,
}


# ── Actions + navigation ────────────────────────────────────────────────────

def render_actions(session: FormSession) -> str:
    if session.mode == SessionMode.VIEW or session.is_terminal:
        return ""
    buttons = []
    if not session.is_first_page:
        buttons.append('<button class="btn btn--outline" type="submit" name="_action" value="previous">Previous</button>')
    if not session.is_last_page:
        buttons.append('<button class="btn" type="submit" name="_action" value="next">Next</button>')
    else:
        buttons.append('<button class="btn" type="submit" name="_action" value="submit">Submit</button>')
    if session.form.settings.allow_save_draft:
        buttons.append('<button class="btn btn--outline" type="submit" name="_action" value="draft">Save Draft</button>')
    return '  <div class="form__actions">' + "".join(buttons) + "</div>"


_STATUS_ICONS = {SectionStatus.VALID: "✓", SectionStatus.ERROR: "!", SectionStatus.EMPTY: "○"}


def render_section_nav(session: FormSession) -> str:
    """Barre latérale : sections de la page courante avec leur statut."""
    page = session.current_page
    if page is None or not page.sections:
        return ""
    statuses = session.section_statuses()
    items = []
    for s in page.sections:
        status = statuses.get(s.id, SectionStatus.EMPTY)
        active = " section-nav__item--active" if s.id == session.active_section_id else ""
        items.append(
            f'  <a class="section-nav__item section-nav__item--{status.value}{active}" '
            f'href="#{escape(s.id)}" data-status="{status.value}">'
            f'{_STATUS_ICONS[status]} {escape(s.title or s.id)} '
            f'<small>({len(s.fields)} fields)</small></a>'
        )
    return (f'<nav class="section-nav">\n  <h3 class="section-nav__title">Sections ({len(page.sections)})</h3>\n'
            + "\n".join(items) + "\n</nav>")
