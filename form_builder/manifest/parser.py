"""
Manifest parser — dict / FormManifest → SinglePageForm | MultiPageForm.

Les erreurs locales (champ mal formé, nom dupliqué…) sont signalées une seule
fois dans `warnings` et le champ est exclu ; les autres champs sont chargés.
Seul un formulaire structurellement inutilisable lève FormSchemaError.
"""
import logging
from typing import Any, Dict, List, Mapping, Set, Union

from pydantic import BaseModel, Field, ValidationError

from ..core.layout import calculate_grid_positions, validate_grid_positions
from ..core.schemas import (
    NON_INPUT_TYPES,
    FieldDefinition,
    FormPage,
    FormSettings,
    FormUnion,
    MultiPageForm,
    Section,
    SinglePageForm,
    all_fields,
    iter_sections,
    ordered_sections,
)
from .schema import FormManifest

log = logging.getLogger(__name__)


class FormSchemaError(ValueError):
    """Schéma de formulaire inutilisable (pas un objet, sections/pages invalides…)."""


class LoadedForm(BaseModel):
    form: FormUnion
    warnings: List[str] = Field(default_factory=list)


def _first_error(e: ValidationError) -> str:
    err = e.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
    return f"{loc}: {err['msg']}" if loc else err["msg"]


class _Loader:
    """État d'un chargement : ids déjà vus + warnings accumulés."""

    def __init__(self):
        self.warnings: List[str] = []
        self.field_ids: Set[str] = set()
        self.section_count = 0

    def warn(self, msg: str):
        log.warning("form schema: %s", msg)
        self.warnings.append(msg)

    def field(
        self, raw: Any, index: int, section_id: str, section_label: str, names: Set[str],
    ) -> Union[FieldDefinition, None]:
        where = f"{section_label}, field #{index + 1}"
        if not isinstance(raw, Mapping):
            self.warn(f"{where} ignored: not an object")
            return None
        raw = dict(raw)
        explicit_id = bool(raw.get("id"))
        if raw.get("type") in NON_INPUT_TYPES and not raw.get("name"):
            raw["name"] = raw.get("id") or f"__{raw['type']}_{index + 1}"
        try:
            field = FieldDefinition.model_validate(raw)
        except ValidationError as e:
            label = raw.get("name") or raw.get("label") or "?"
            self.warn(f"{where} ({label}) ignored: {_first_error(e)}")
            return None
        if field.name in names:
            self.warn(f"{where} ignored: duplicate name {field.name!r}")
            return None
        if field.id in self.field_ids:
            if explicit_id:
                self.warn(f"{where} ignored: duplicate id {field.id!r}")
                return None
            # id implicite (= name) : le même name est permis dans une autre section
            field = field.model_copy(update={"id": self._free_id(f"{section_id}.{field.name}")})
        names.add(field.name)
        self.field_ids.add(field.id)
        return field

    def _free_id(self, base: str) -> str:
        candidate, n = base, 2
        while candidate in self.field_ids:
            candidate, n = f"{base}-{n}", n + 1
        return candidate

    def section(self, raw: Any, position: int) -> Union[Section, None]:
        self.section_count += 1
        if not isinstance(raw, Mapping):
            self.warn(f"section #{self.section_count} ignored: not an object")
            return None
        sid = str(raw.get("id") or f"section-{self.section_count}")
        label = f"section {raw.get('title') or sid!r}"
        raw_fields = raw.get("fields") or []
        if not isinstance(raw_fields, list):
            self.warn(f"{label}: fields ignored, expected a list")
            raw_fields = []

        names: Set[str] = set()
        fields = [self.field(f, i, sid, label, names) for i, f in enumerate(raw_fields)]
        fields = [f for f in fields if f is not None]

        order = raw.get("order")
        if not isinstance(order, int) or isinstance(order, bool):
            order = position
        return Section(
            id=sid,
            title=str(raw.get("title") or ""),
            description=str(raw.get("description") or ""),
            order=order,
            fields=fields,
        )

    def sections(self, raw_sections: List[Any]) -> List[Section]:
        parsed = [self.section(s, i) for i, s in enumerate(raw_sections)]
        return [s for s in parsed if s is not None]

    def page(self, raw: Any, index: int) -> Union[FormPage, None]:
        if not isinstance(raw, Mapping):
            self.warn(f"page #{index + 1} ignored: not an object")
            return None
        raw_sections = raw.get("sections") or []
        if not isinstance(raw_sections, list):
            raise FormSchemaError(f"page #{index + 1}: sections must be a list")
        return FormPage(
            id=str(raw.get("id") or f"page-{index + 1}"),
            title=str(raw.get("title") or f"Page {index + 1}"),
            sections=self.sections(raw_sections),
        )


def _check_references(form, loader: _Loader):
    fields = all_fields(form)
    names = {f.name for f in fields}
    for f in fields:
        if f.visible_if and f.visible_if.field_name not in names:
            loader.warn(
                f"field {f.name!r}: visibleIf references unknown field "
                f"{f.visible_if.field_name!r} (field stays hidden)"
            )


def _check_grid(sections: List[Section], loader: _Loader):
    for s in sections:
        if not any(f.grid_row and f.grid_column for f in s.fields):
            continue
        _, errors = validate_grid_positions(calculate_grid_positions(s.fields))
        for e in errors:
            loader.warn(f"section {s.title or s.id!r}: {e}")


def parse_form(raw: Union[Mapping, FormManifest]) -> LoadedForm:
    """
    Convertit un manifest en formulaire typé.

    1. `pages` présent → pages ; sinon `sections` (format historique : avec
       multiPage, chaque section devient une page)
    2. multiPage → MultiPageForm, sinon SinglePageForm (pages aplaties)
    3. champs mal formés exclus avec un warning
    """
    if isinstance(raw, FormManifest):
        manifest = raw
    elif isinstance(raw, Mapping):
        try:
            manifest = FormManifest.model_validate(dict(raw))
        except ValidationError as e:
            raise FormSchemaError(_first_error(e)) from e
    else:
        raise FormSchemaError(f"form schema must be an object, got {type(raw).__name__}")

    try:
        settings = FormSettings.model_validate(manifest.settings or {})
    except ValidationError as e:
        raise FormSchemaError(f"settings: {_first_error(e)}") from e

    loader = _Loader()
    common: Dict[str, Any] = {
        "title": manifest.title,
        "description": manifest.description or "",
        "published": manifest.published,
    }
    if manifest.id:
        common["id"] = manifest.id

    if manifest.pages is not None:
        pages = [loader.page(p, i) for i, p in enumerate(manifest.pages)]
        pages = [p for p in pages if p is not None]
    elif settings.multi_page:
        pages = []
        for i, raw_section in enumerate(manifest.sections or []):
            parsed = loader.sections([raw_section])
            if parsed:
                pages.append(FormPage(id=parsed[0].id, title=f"Page {i + 1}", sections=parsed))
    else:
        pages = None

    if settings.multi_page:
        form = MultiPageForm(settings=settings, pages=pages or [], **common)
    else:
        if pages is None:
            sections = loader.sections(manifest.sections or [])
        else:
            # Pages aplaties : l'ordre global suit l'ordre des pages
            flat = [s for p in pages for s in ordered_sections(p.sections)]
            sections = [s.model_copy(update={"order": i}) for i, s in enumerate(flat)]
        form = SinglePageForm(settings=settings, sections=sections, **common)

    _check_references(form, loader)
    _check_grid(iter_sections(form), loader)
    return LoadedForm(form=form, warnings=loader.warnings)


def dump_form(form) -> Dict[str, Any]:
    """Forme canonique JSON (alias camelCase) — relisible par parse_form()."""
    return form.model_dump(by_alias=True, mode="json", exclude_none=True)
