"""
Entrées — saisies d'un formulaire (brouillon ou publiées).

POST   /api/forms/{id}/entries    création (status draft → save_draft, published → submit)
GET    /api/forms/{id}/entries    liste paginée (status, search, sort, order, page, limit)
GET    /api/entries/{id}          détail
PUT    /api/entries/{id}          mise à jour (mêmes règles que la création)
DELETE /api/entries/{id}          suppression (admin)
GET    /api/entries/{id}/view     rendu HTML lecture seule
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from ...database import (
    db_create_entry, db_delete_entry, db_get_entry, db_list_entries,
    db_update_entry, get_db, jd, jl, pagination,
)
from ...models import EntryDB, EntryInput, EntrySort, EntryStatus
from ...renderer.html import render_document
from ...session import FormSession, SessionMode, SubmitResult
from .forms import _check_token, get_form_or_404, load_form

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Entries"])


def entry_out(e: EntryDB) -> dict:
    return {
        "id":         e.entry_id,
        "form_id":    e.form_id,
        "form":       {"id": e.form.form_id, "title": e.form.title} if e.form else None,
        "title":      e.title,
        "status":     e.status,
        "data":       jl(e.data_json),
        "created_by": e.created_by,
        "created_at": e.created_at.isoformat() if e.created_at else None,
        "updated_at": e.updated_at.isoformat() if e.updated_at else None,
    }


def _entry_title(body: EntryInput, payload: dict, fallback: str) -> str:
    return body.title or str(payload.get("title") or "").strip() or fallback


def _finish(session: FormSession, status: EntryStatus, db: Session) -> SubmitResult:
    """save_draft() / submit() puis traduction HTTP des refus."""
    result = session.save_draft() if status == EntryStatus.DRAFT else session.submit()
    if result.ok:
        return result
    if result.errors:
        raise HTTPException(422, {"message": "Validation failed", "errors": result.errors})
    if result.payload is not None:
        # le callback de persistance a échoué : rien n'est écrit
        db.rollback()
        raise HTTPException(503, result.notice or "Storage unavailable")
    raise HTTPException(400, result.notice or "Request refused")


# ── Création + liste ───────────────────────────────────────────────────────

@router.post("/forms/{form_id}/entries", status_code=201)
def create_entry(form_id: str, body: EntryInput, db: Session = Depends(get_db)):
    loaded = load_form(get_form_or_404(db, form_id))

    def persist(status: EntryStatus):
        def _cb(payload: dict) -> EntryDB:
            return db_create_entry(db, EntryDB(
                form_id=form_id,
                title=_entry_title(body, payload, "Untitled"),
                status=status.value,
                data_json=jd(payload),
                created_by=body.created_by,
            ))
        return _cb

    session = FormSession(
        loaded.form,
        mode=SessionMode.CREATE,
        on_submit=persist(EntryStatus.PUBLISHED),
        on_save_draft=persist(EntryStatus.DRAFT),
    )
    for name, value in body.data.items():
        session.set_answer(name, value)

    entry = _finish(session, body.status, db).result
    log.info("Entrée %s créée (%s) sur form %s", entry.entry_id, entry.status, form_id)
    return {"entry": entry_out(entry)}


@router.get("/forms/{form_id}/entries")
def list_entries(
    form_id: str,
    status: Optional[EntryStatus] = None,
    search: str = "",
    sort: EntrySort = EntrySort.CREATED_AT,
    order: str = "desc",
    page: int = 1,
    limit: int = 10,
    db: Session = Depends(get_db),
):
    get_form_or_404(db, form_id)
    items, total = db_list_entries(
        db, form_id,
        status=status.value if status else None,
        search=search, sort=sort, desc=order.lower() != "asc",
        page=page, limit=limit,
    )
    return {"entries": [entry_out(e) for e in items], "pagination": pagination(total, page, limit)}


# ── Détail / mise à jour / suppression ─────────────────────────────────────

def _get_entry_or_404(db: Session, entry_id: str) -> EntryDB:
    e = db_get_entry(db, entry_id)
    if not e:
        raise HTTPException(404, "Entry not found")
    return e


@router.get("/entries/{entry_id}")
def get_entry(entry_id: str, db: Session = Depends(get_db)):
    return {"entry": entry_out(_get_entry_or_404(db, entry_id))}


@router.put("/entries/{entry_id}")
def update_entry(entry_id: str, body: EntryInput, db: Session = Depends(get_db)):
    entry = _get_entry_or_404(db, entry_id)
    loaded = load_form(get_form_or_404(db, entry.form_id))

    def persist(status: EntryStatus):
        def _cb(payload: dict) -> EntryDB:
            return db_update_entry(
                db, entry,
                title=_entry_title(body, payload, entry.title),
                status=status.value,
                data_json=jd(payload),
            )
        return _cb

    session = FormSession(
        loaded.form,
        initial_answers=jl(entry.data_json),
        mode=SessionMode.EDIT,
        on_submit=persist(EntryStatus.PUBLISHED),
        on_save_draft=persist(EntryStatus.DRAFT),
    )
    for name, value in body.data.items():
        session.set_answer(name, value)

    updated = _finish(session, body.status, db).result
    log.info("Entrée %s mise à jour (%s)", entry_id, updated.status)
    return {"entry": entry_out(updated)}


@router.delete("/entries/{entry_id}")
def delete_entry(entry_id: str, request: Request, db: Session = Depends(get_db)):
    _check_token(request)
    db_delete_entry(db, _get_entry_or_404(db, entry_id))
    log.info("Entrée supprimée %s", entry_id)
    return {"ok": True}


@router.get("/entries/{entry_id}/view", response_class=HTMLResponse)
def view_entry(entry_id: str, db: Session = Depends(get_db)):
    entry = _get_entry_or_404(db, entry_id)
    loaded = load_form(get_form_or_404(db, entry.form_id))
    session = FormSession(loaded.form, initial_answers=jl(entry.data_json), mode=SessionMode.VIEW)
    return HTMLResponse(render_document(session))
