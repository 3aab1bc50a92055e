"""
Data models — Form, Entry
SQLAlchemy (SQLite) + Pydantic v2 + Enums
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import sqlalchemy as sa
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ── ENUMS ──────────────────────────────────────────────────────────────

class EntryStatus(str, Enum):
    DRAFT     = "draft"
    PUBLISHED = "published"


class EntrySort(str, Enum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    TITLE      = "title"


# ── ORM ────────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


class FormDB(Base):
    __tablename__ = "forms"
    form_id:     Mapped[str]      = mapped_column(sa.String, primary_key=True, default=lambda: str(uuid.uuid4()))
    title:       Mapped[str]      = mapped_column(sa.String, nullable=False)
    description: Mapped[str]      = mapped_column(sa.Text, default="")
    schema_json: Mapped[str]      = mapped_column(sa.Text, default="{}")   # forme canonique (dump_form)
    published:   Mapped[bool]     = mapped_column(sa.Boolean, default=False)
    created_at:  Mapped[datetime] = mapped_column(sa.DateTime, default=datetime.utcnow)
    updated_at:  Mapped[datetime] = mapped_column(sa.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    entries: Mapped[List["EntryDB"]] = relationship("EntryDB", back_populates="form")


class EntryDB(Base):
    __tablename__ = "entries"
    entry_id:   Mapped[str]           = mapped_column(sa.String, primary_key=True, default=lambda: str(uuid.uuid4()))
    form_id:    Mapped[str]           = mapped_column(sa.String, sa.ForeignKey("forms.form_id"), nullable=False, index=True)
    title:      Mapped[str]           = mapped_column(sa.String, nullable=False)
    status:     Mapped[str]           = mapped_column(sa.String, default=EntryStatus.DRAFT.value)
    data_json:  Mapped[str]           = mapped_column(sa.Text, default="{}")
    created_by: Mapped[Optional[str]] = mapped_column(sa.String, nullable=True)
    created_at: Mapped[datetime]      = mapped_column(sa.DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime]      = mapped_column(sa.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    form: Mapped["FormDB"] = relationship("FormDB", back_populates="entries")


# ── PYDANTIC (entrées API) ─────────────────────────────────────────────

class FormUpdate(BaseModel):
    """PUT /api/forms/{id} — mise à jour partielle ; settings fusionnés."""
    model_config = ConfigDict(extra="ignore")

    title:       Optional[str]             = None
    description: Optional[str]             = None
    settings:    Optional[Dict[str, Any]]  = None
    sections:    Optional[List[Any]]       = None
    pages:       Optional[List[Any]]       = None
    published:   Optional[bool]            = None


class SectionInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title:       str                  = Field(..., min_length=1)
    description: str                  = ""
    fields:      List[Any]            = Field(default_factory=list)
    order:       Optional[int]        = None
    page_id:     Optional[str]        = Field(default=None, alias="pageId")


class SectionUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title:       Optional[str]       = None
    description: Optional[str]       = None
    fields:      Optional[List[Any]] = None
    order:       Optional[int]       = None


class EntryInput(BaseModel):
    """POST /api/forms/{id}/entries et PUT /api/entries/{id}."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title:      Optional[str]     = None
    data:       Dict[str, Any]    = Field(default_factory=dict)
    status:     EntryStatus       = EntryStatus.DRAFT
    created_by: Optional[str]     = Field(default=None, alias="createdBy")
