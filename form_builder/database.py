"""SQLite — init + session + CRUD helpers"""
import json, os
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from sqlalchemy import create_engine, func
from sqlalchemy.orm import Session, sessionmaker

from .models import Base, EntryDB, EntrySort, FormDB

DATA_DIR = Path(os.getenv("FORMS_DATA_DIR", str(Path(__file__).parent.parent / "data")))

DB_PATH      = os.getenv("FORMS_DB_PATH", str(DATA_DIR / "forms.db"))
ENGINE       = create_engine(f"sqlite:///{DB_PATH}", connect_args={"check_same_thread": False})
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=ENGINE)


def init_db(db_url: Optional[str] = None):
    """Crée les tables. db_url rebranche le moteur (tests, base alternative)."""
    global ENGINE
    if db_url:
        ENGINE = create_engine(db_url, connect_args={"check_same_thread": False})
        SessionLocal.configure(bind=ENGINE)
    elif ENGINE.url.database:
        Path(ENGINE.url.database).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=ENGINE)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ── JSON helpers ──
def jl(s: str) -> dict:
    try: return json.loads(s or "{}")
    except ValueError: return {}

def jd(o) -> str:
    return json.dumps(o, ensure_ascii=False)


# ── Form ──
def db_create_form(db: Session, obj: FormDB) -> FormDB:
    db.add(obj); db.commit(); db.refresh(obj); return obj

def db_get_form(db: Session, fid: str) -> Optional[FormDB]:
    return db.get(FormDB, fid)

def db_list_forms(db: Session, published: Optional[bool] = None) -> List[FormDB]:
    q = db.query(FormDB)
    if published is not None:
        q = q.filter_by(published=published)
    return q.order_by(FormDB.created_at.desc()).all()

def db_update_form(db: Session, obj: FormDB, **kw) -> FormDB:
    for k, v in kw.items():
        setattr(obj, k, v)
    obj.updated_at = datetime.utcnow()
    db.commit(); db.refresh(obj); return obj

def db_delete_form(db: Session, obj: FormDB):
    db.delete(obj); db.commit()


# ── Entry ──
def db_create_entry(db: Session, obj: EntryDB) -> EntryDB:
    db.add(obj); db.commit(); db.refresh(obj); return obj

def db_get_entry(db: Session, eid: str) -> Optional[EntryDB]:
    return db.get(EntryDB, eid)

def db_count_entries(db: Session, fid: str) -> int:
    return db.query(func.count(EntryDB.entry_id)).filter(EntryDB.form_id == fid).scalar() or 0

def db_list_entries(
    db: Session,
    fid: str,
    status: Optional[str] = None,
    search: str = "",
    sort: EntrySort = EntrySort.CREATED_AT,
    desc: bool = True,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[EntryDB], int]:
    """Liste paginée → (entrées de la page, total filtré)."""
    q = db.query(EntryDB).filter(EntryDB.form_id == fid)
    if status:
        q = q.filter(EntryDB.status == status)
    if search:
        q = q.filter(EntryDB.title.ilike(f"%{search}%"))
    total = q.count()
    col = getattr(EntryDB, EntrySort(sort).value)
    q = q.order_by(col.desc() if desc else col.asc())
    page, limit = max(1, page), max(1, limit)
    return q.offset((page - 1) * limit).limit(limit).all(), total

def db_update_entry(db: Session, obj: EntryDB, **kw) -> EntryDB:
    for k, v in kw.items():
        setattr(obj, k, v)
    obj.updated_at = datetime.utcnow()
    db.commit(); db.refresh(obj); return obj

def db_delete_entry(db: Session, obj: EntryDB):
    db.delete(obj); db.commit()


def pagination(total: int, page: int, limit: int) -> dict:
    page, limit = max(1, page), max(1, limit)
    total_pages = (total + limit - 1) // limit
    return {
        "total": total, "page": page, "limit": limit, "total_pages": total_pages,
        "has_next": page < total_pages, "has_prev": page > 1,
    }
