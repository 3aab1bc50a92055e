"""
Formulaires — CRUD + sections + rendu.

GET    /api/forms                                 liste
POST   /api/forms                                 création (admin)
GET    /api/forms/{id}                            détail (schéma canonique)
PUT    /api/forms/{id}                            mise à jour partielle (admin)
DELETE /api/forms/{id}                            suppression, refusée si des entrées existent (admin)
POST   /api/forms/{id}/sections                   ajout de section (admin)
PUT    /api/forms/{id}/sections/{section_id}      mise à jour de section (admin)
DELETE /api/forms/{id}/sections/{section_id}      suppression de section (admin)
GET    /api/forms/{id}/render                     HTML du formulaire vierge
POST   /api/forms/{id}/status                     statuts des sections pour des réponses
"""
import logging
import os
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from ...database import (
    db_count_entries, db_create_form, db_delete_form, db_get_form,
    db_list_forms, db_update_form, get_db, jd, jl,
)
from ...manifest import FormManifest, FormSchemaError, LoadedForm, dump_form, parse_form
from ...models import FormDB, FormUpdate, SectionInput, SectionUpdate
from ...renderer.html import render_document
from ...router import session_status
from ...session import FormSession, SessionMode

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Forms"])


def _check_token(request: Request):
    token = request.query_params.get("token") or request.cookies.get("admin_token", "")
    if token != os.getenv("ADMIN_TOKEN", "changeme"):
        raise HTTPException(403, "Accès refusé")
    return token


# ── Helpers ────────────────────────────────────────────────────────────────

def get_form_or_404(db: Session, form_id: str) -> FormDB:
    obj = db_get_form(db, form_id)
    if not obj:
        raise HTTPException(404, "Form not found")
    return obj


def load_form(obj: FormDB) -> LoadedForm:
    """Schéma stocké → formulaire typé (les warnings sont recalculés à chaque lecture)."""
    raw = jl(obj.schema_json)
    raw["id"] = obj.form_id
    return parse_form(raw)


def _parse_or_400(raw: Dict[str, Any]) -> LoadedForm:
    try:
        return parse_form(raw)
    except FormSchemaError as e:
        raise HTTPException(400, f"Invalid form schema: {e}")


def _save_schema(db: Session, obj: FormDB, raw: Dict[str, Any]) -> List[str]:
    raw["id"] = obj.form_id
    loaded = _parse_or_400(raw)
    form = loaded.form
    db_update_form(
        db, obj,
        title=form.title, description=form.description, published=form.published,
        schema_json=jd(dump_form(form)),
    )
    return loaded.warnings


def form_out(obj: FormDB, warnings: Optional[List[str]] = None) -> dict:
    out = {
        "id":          obj.form_id,
        "title":       obj.title,
        "description": obj.description,
        "published":   obj.published,
        "schema":      jl(obj.schema_json),
        "created_at":  obj.created_at.isoformat() if obj.created_at else None,
        "updated_at":  obj.updated_at.isoformat() if obj.updated_at else None,
    }
    if warnings is not None:
        out["warnings"] = warnings
    return out


def _all_sections(raw: Dict[str, Any]) -> List[dict]:
    if isinstance(raw.get("pages"), list):
        return [s for p in raw["pages"] if isinstance(p, dict) for s in (p.get("sections") or [])]
    return list(raw.get("sections") or [])


def _remove_section(raw: Dict[str, Any], section_id: str) -> bool:
    containers = (
        [p for p in raw["pages"] if isinstance(p, dict)] if isinstance(raw.get("pages"), list) else [raw]
    )
    for c in containers:
        sections = c.get("sections") or []
        kept = [s for s in sections if not (isinstance(s, dict) and s.get("id") == section_id)]
        if len(kept) != len(sections):
            c["sections"] = kept
            return True
    return False


# ── CRUD ───────────────────────────────────────────────────────────────────

@router.get("/forms")
def list_forms(published: Optional[bool] = None, db: Session = Depends(get_db)):
    return {"forms": [form_out(f) for f in db_list_forms(db, published)]}


@router.post("/forms", status_code=201)
def create_form(manifest: FormManifest, request: Request, db: Session = Depends(get_db)):
    _check_token(request)
    if not manifest.title.strip():
        raise HTTPException(400, "Title is required")
    form_id = manifest.id or str(uuid.uuid4())
    if db_get_form(db, form_id):
        raise HTTPException(409, f"Form {form_id} already exists")

    raw = manifest.model_dump(exclude_none=True)
    raw["id"] = form_id
    loaded = _parse_or_400(raw)
    obj = db_create_form(db, FormDB(
        form_id=form_id,
        title=loaded.form.title,
        description=loaded.form.description,
        published=loaded.form.published,
        schema_json=jd(dump_form(loaded.form)),
    ))
    log.info("Form créé %s (%s) — %d warning(s)", obj.form_id, obj.title, len(loaded.warnings))
    return {"form": form_out(obj, loaded.warnings)}


@router.get("/forms/{form_id}")
def get_form(form_id: str, db: Session = Depends(get_db)):
    obj = get_form_or_404(db, form_id)
    return {"form": form_out(obj, load_form(obj).warnings)}


@router.put("/forms/{form_id}")
def update_form(form_id: str, body: FormUpdate, request: Request, db: Session = Depends(get_db)):
    _check_token(request)
    obj = get_form_or_404(db, form_id)
    raw = jl(obj.schema_json)

    if body.title:
        raw["title"] = body.title
    if body.description is not None:
        raw["description"] = body.description
    if body.settings is not None:
        raw["settings"] = {**(raw.get("settings") or {}), **body.settings}
    if body.published is not None:
        raw["published"] = body.published
    if body.pages is not None:
        raw.pop("sections", None)
        raw["pages"] = body.pages
    elif body.sections is not None:
        raw.pop("pages", None)
        raw["sections"] = body.sections

    warnings = _save_schema(db, obj, raw)
    return {"form": form_out(obj, warnings)}


@router.delete("/forms/{form_id}")
def delete_form(form_id: str, request: Request, db: Session = Depends(get_db)):
    _check_token(request)
    obj = get_form_or_404(db, form_id)
    count = db_count_entries(db, form_id)
    if count:
        raise HTTPException(400, {"message": "Cannot delete form with existing entries", "entry_count": count})
    db_delete_form(db, obj)
    log.info("Form supprimé %s", form_id)
    return {"ok": True}


# ── Sections ───────────────────────────────────────────────────────────────

@router.post("/forms/{form_id}/sections", status_code=201)
def add_section(form_id: str, body: SectionInput, request: Request, db: Session = Depends(get_db)):
    """
    Ajoute une section.
    Formulaire à pages : dans la page `pageId`, sinon dans une nouvelle page.
    """
    _check_token(request)
    obj = get_form_or_404(db, form_id)
    raw = jl(obj.schema_json)

    section = {
        "id": str(uuid.uuid4()),
        "title": body.title,
        "description": body.description,
        "fields": body.fields,
        "order": body.order if body.order is not None else len(_all_sections(raw)),
    }
    if isinstance(raw.get("pages"), list):
        page = next((p for p in raw["pages"] if p.get("id") == body.page_id), None) if body.page_id else None
        if body.page_id and page is None:
            raise HTTPException(404, "Page not found")
        if page is None:
            raw["pages"].append({"id": str(uuid.uuid4()), "title": body.title, "sections": [section]})
        else:
            page.setdefault("sections", []).append(section)
    else:
        raw.setdefault("sections", []).append(section)

    warnings = _save_schema(db, obj, raw)
    return {"section_id": section["id"], "form": form_out(obj, warnings)}


@router.put("/forms/{form_id}/sections/{section_id}")
def update_section(form_id: str, section_id: str, body: SectionUpdate, request: Request,
                   db: Session = Depends(get_db)):
    _check_token(request)
    obj = get_form_or_404(db, form_id)
    raw = jl(obj.schema_json)

    target = next((s for s in _all_sections(raw) if s.get("id") == section_id), None)
    if target is None:
        raise HTTPException(404, "Section not found")
    target.update(body.model_dump(exclude_none=True))

    warnings = _save_schema(db, obj, raw)
    return {"form": form_out(obj, warnings)}


@router.delete("/forms/{form_id}/sections/{section_id}")
def delete_section(form_id: str, section_id: str, request: Request, db: Session = Depends(get_db)):
    _check_token(request)
    obj = get_form_or_404(db, form_id)
    raw = jl(obj.schema_json)
    if not _remove_section(raw, section_id):
        raise HTTPException(404, "Section not found")
    warnings = _save_schema(db, obj, raw)
    return {"form": form_out(obj, warnings)}


# ── Rendu + statut ─────────────────────────────────────────────────────────

@router.get("/forms/{form_id}/render", response_class=HTMLResponse)
def render_form_page(form_id: str, section: Optional[str] = None, db: Session = Depends(get_db)):
    loaded = load_form(get_form_or_404(db, form_id))
    session = FormSession(loaded.form, warnings=loaded.warnings)
    if section:
        session.jump_to_section(section)
    return HTMLResponse(render_document(session))


@router.post("/forms/{form_id}/status")
def form_status(form_id: str, answers: Dict[str, Any] = Body(default={}),
                db: Session = Depends(get_db)):
    loaded = load_form(get_form_or_404(db, form_id))
    session = FormSession(loaded.form, initial_answers=answers, mode=SessionMode.EDIT)
    return session_status(session)
