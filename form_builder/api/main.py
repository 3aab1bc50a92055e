"""
FORM_BUILDER — FastAPI app
Démarrer : uvicorn form_builder.api.main:app --reload --port 8001
"""
import logging, os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s — %(message)s",
)
log = logging.getLogger(__name__)

app = FastAPI(title="FORM_BUILDER — Formulaires dynamiques", version=__version__, docs_url="/docs")

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


@app.on_event("startup")
def startup():
    from ..database import init_db
    init_db()
    log.info("DB initialisée (SQLite)")


@app.get("/health")
def health():
    return {"status": "ok", "service": "form_builder", "version": __version__}


# ── Routes ──
from ..router import router as form_builder_router
from .routes import entries, forms

app.include_router(form_builder_router)
app.include_router(forms.router)
app.include_router(entries.router)
