"""
FormSession — état d'une saisie de formulaire (navigation multi-pages + soumission).

États :
  viewing (page i)  →  next() / previous() / jump_to_section()
                    →  save_draft()  → submitted-draft
                    →  submit()      → submitted-published

Les réponses appartiennent à la session ; rien n'est persisté avant
save_draft() / submit(), qui délèguent aux callbacks on_save_draft / on_submit.
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .core.schemas import Form, FormPage, Section, SectionStatus, all_fields, form_pages
from .core.validation import collect_errors, validate_page, validate_section, worst_status
from .core.visibility import resolve_visibility, strip_hidden

log = logging.getLogger(__name__)


class SessionMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"
    VIEW = "view"


class SessionState(str, Enum):
    VIEWING = "viewing"
    SUBMITTED_DRAFT = "submitted-draft"
    SUBMITTED_PUBLISHED = "submitted-published"


class SubmitResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    ok: bool
    state: SessionState
    errors: Dict[str, str] = Field(default_factory=dict)
    notice: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
    result: Any = None


Callback = Callable[[Dict[str, Any]], Any]


class FormSession:
    """
    Usage:
        >>> session = FormSession(form, on_submit=save_entry)
        >>> session.set_answer("title", "Mon projet")
        >>> session.next()
        >>> result = session.submit()
    """

    def __init__(
        self,
        form: Form,
        initial_answers: Optional[Mapping[str, Any]] = None,
        mode: SessionMode = SessionMode.CREATE,
        on_submit: Optional[Callback] = None,
        on_save_draft: Optional[Callback] = None,
        warnings: Optional[List[str]] = None,
    ):
        self.form = form
        self.mode = SessionMode(mode)
        self.pages: List[FormPage] = form_pages(form)
        self.fields = all_fields(form)
        self.on_submit = on_submit
        self.on_save_draft = on_save_draft
        self.warnings = list(warnings or [])

        # create : toujours vide ; edit / view : pré-rempli
        if self.mode == SessionMode.CREATE:
            self._answers: Dict[str, Any] = {}
        else:
            self._answers = dict(initial_answers or {})

        self.page_index = 0
        self.state = SessionState.VIEWING
        self.active_section_id: Optional[str] = None
        self.errors: Dict[str, str] = {}
        self.notice: Optional[str] = None

    # ── Lecture ────────────────────────────────────────────────────────────

    @property
    def answers(self) -> Dict[str, Any]:
        return dict(self._answers)

    @property
    def page_count(self) -> int:
        return max(1, len(self.pages))

    @property
    def current_page(self) -> Optional[FormPage]:
        return self.pages[self.page_index] if self.pages else None

    @property
    def is_first_page(self) -> bool:
        return self.page_index == 0

    @property
    def is_last_page(self) -> bool:
        return self.page_index >= self.page_count - 1

    @property
    def is_terminal(self) -> bool:
        return self.state != SessionState.VIEWING

    @property
    def read_only(self) -> bool:
        return self.mode == SessionMode.VIEW or self.is_terminal

    @property
    def progress(self) -> Optional[float]:
        """(i + 1) / nombre de pages, si la barre de progression est activée."""
        if not self.form.settings.show_progress_bar:
            return None
        return (self.page_index + 1) / self.page_count

    def visibility(self) -> Dict[str, bool]:
        return resolve_visibility(self.fields, self._answers)

    def visible_fields(self, section: Section) -> list:
        vis = self.visibility()
        return [f for f in section.fields if vis.get(f.id, True)]

    def page_status(self, index: Optional[int] = None) -> SectionStatus:
        if not self.pages:
            return SectionStatus.VALID
        page = self.pages[self.page_index if index is None else index]
        return validate_page(page, self._answers, self.visibility())

    def form_status(self) -> SectionStatus:
        vis = self.visibility()
        return worst_status(validate_page(p, self._answers, vis) for p in self.pages)

    def section_statuses(self) -> Dict[str, SectionStatus]:
        """Mapping section.id → statut, consommé par la barre de navigation."""
        vis = self.visibility()
        return {
            s.id: validate_section(s, self._answers, vis)
            for page in self.pages
            for s in page.sections
        }

    def payload(self) -> Dict[str, Any]:
        """Réponses sans les valeurs des champs cachés."""
        return strip_hidden(self._answers, self.fields, self.visibility())

    # ── Mutations ──────────────────────────────────────────────────────────

    def set_answer(self, name: str, value: Any) -> bool:
        if self.read_only:
            return False
        self._answers[name] = value
        self.errors.pop(name, None)
        return True

    def next(self) -> bool:
        """Page suivante ; bloqué tant qu'un champ visible de la page échoue (requis vide compris)."""
        if self.is_terminal or self.is_last_page:
            return False
        errors = collect_errors(self.current_page.sections, self._answers, self.visibility())
        if errors:
            self.errors = errors
            log.info("next refused on page %d: %d field error(s)", self.page_index, len(errors))
            return False
        self.page_index += 1
        self.errors = {}
        self.active_section_id = None
        return True

    def previous(self) -> bool:
        """Page précédente ; jamais bloqué par la validation."""
        if self.is_terminal or self.is_first_page:
            return False
        self.page_index -= 1
        self.errors = {}
        self.active_section_id = None
        return True

    def jump_to_section(self, section_id: str) -> bool:
        if self.is_terminal:
            return False
        for i, page in enumerate(self.pages):
            if any(s.id == section_id for s in page.sections):
                self.page_index = i
                self.active_section_id = section_id
                return True
        return False

    def save_draft(self) -> SubmitResult:
        """Brouillon : aucune validation, champs cachés exclus du payload."""
        if self.read_only:
            return self._refuse("Form is read-only")
        if not self.form.settings.allow_save_draft:
            return self._refuse("Drafts are disabled for this form")
        return self._deliver(self.on_save_draft, SessionState.SUBMITTED_DRAFT)

    def submit(self) -> SubmitResult:
        """Publication : refusée tant qu'un champ visible est en échec."""
        if self.read_only:
            return self._refuse("Form is read-only")

        vis = self.visibility()
        for i, page in enumerate(self.pages):
            page_errors = collect_errors(page.sections, self._answers, vis)
            if page_errors:
                self.page_index = i
                self.active_section_id = next(
                    (s.id for s in page.sections if collect_errors([s], self._answers, vis)),
                    None,
                )
                self.errors = collect_errors(
                    [s for p in self.pages for s in p.sections], self._answers, vis
                )
                log.info("submit refused: %d field error(s)", len(self.errors))
                return SubmitResult(ok=False, state=self.state, errors=dict(self.errors))

        return self._deliver(self.on_submit, SessionState.SUBMITTED_PUBLISHED)

    # ── Internes ───────────────────────────────────────────────────────────

    def _refuse(self, notice: str) -> SubmitResult:
        self.notice = notice
        return SubmitResult(ok=False, state=self.state, notice=notice)

    def _deliver(self, callback: Optional[Callback], target: SessionState) -> SubmitResult:
        payload = self.payload()
        result = None
        if callback is not None:
            try:
                result = callback(payload)
            except Exception as e:
                # Échec du collaborateur : réponses conservées pour réessayer
                log.warning("%s callback failed: %s", target.value, e)
                self.notice = str(e) or e.__class__.__name__
                return SubmitResult(ok=False, state=self.state, notice=self.notice, payload=payload)
        self.state = target
        self.errors = {}
        self.notice = None
        log.info("form %s → %s (%d answer(s))", self.form.id, target.value, len(payload))
        return SubmitResult(ok=True, state=target, payload=payload, result=result)
