"""
Router FastAPI — endpoints form_builder sans état (aucune persistance).

POST /form-builder/validate  → FormManifest → {"valid": bool, "warnings": [...], "error"?}
POST /form-builder/render    → {form, answers, mode, section} → HTMLResponse
POST /form-builder/status    → {form, answers} → statuts form / pages / sections + erreurs
GET  /form-builder/catalog   → types de champs, opérateurs, défauts responsive
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field

from .core.schemas import DEFAULT_SPANS, FIELD_TYPES, GRID_COLUMNS, VISIBILITY_OPERATORS
from .core.validation import collect_errors
from .manifest.parser import FormSchemaError, LoadedForm, parse_form
from .manifest.schema import FormManifest
from .renderer.html import render_document
from .session import FormSession, SessionMode

router = APIRouter(prefix="/form-builder", tags=["form_builder"])


class RenderRequest(BaseModel):
    form: FormManifest
    answers: Dict[str, Any] = Field(default_factory=dict)
    mode: SessionMode = SessionMode.CREATE
    section: Optional[str] = None


class StatusRequest(BaseModel):
    form: FormManifest
    answers: Dict[str, Any] = Field(default_factory=dict)


def load_or_400(manifest: FormManifest) -> LoadedForm:
    try:
        return parse_form(manifest)
    except FormSchemaError as e:
        raise HTTPException(400, f"Invalid form schema: {e}")


def session_status(session: FormSession) -> dict:
    """Statuts agrégés d'une session (réutilisé par les routes de l'application)."""
    vis = session.visibility()
    return {
        "status": session.form_status().value,
        "pages": [
            {"id": p.id, "title": p.title, "status": session.page_status(i).value}
            for i, p in enumerate(session.pages)
        ],
        "sections": {sid: st.value for sid, st in session.section_statuses().items()},
        "errors": collect_errors([s for p in session.pages for s in p.sections], session.answers, vis),
        "payload": session.payload(),
    }


@router.post("/validate", summary="Valide un schéma de formulaire sans le rendre")
def validate(manifest: FormManifest) -> dict:
    try:
        loaded = parse_form(manifest)
    except FormSchemaError as e:
        return {"valid": False, "error": str(e), "warnings": []}
    return {"valid": True, "kind": loaded.form.kind, "warnings": loaded.warnings}


@router.post("/render", response_class=HTMLResponse, summary="Rend un formulaire en HTML")
def render(req: RenderRequest) -> HTMLResponse:
    loaded = load_or_400(req.form)
    session = FormSession(loaded.form, initial_answers=req.answers, mode=req.mode, warnings=loaded.warnings)
    if req.mode == SessionMode.CREATE:
        for name, value in req.answers.items():
            session.set_answer(name, value)
    if req.section:
        session.jump_to_section(req.section)
    return HTMLResponse(content=render_document(session))


@router.post("/status", summary="Statut de validation des sections pour un jeu de réponses")
def status(req: StatusRequest) -> dict:
    loaded = load_or_400(req.form)
    session = FormSession(loaded.form, initial_answers=req.answers, mode=SessionMode.EDIT)
    return {**session_status(session), "warnings": loaded.warnings}


@router.get("/catalog", summary="Types de champs et opérateurs disponibles")
def catalog() -> JSONResponse:
    return JSONResponse({
        "field_types": list(FIELD_TYPES),
        "operators": list(VISIBILITY_OPERATORS),
        "grid_columns": GRID_COLUMNS,
        "column_span_defaults": DEFAULT_SPANS,
    })
