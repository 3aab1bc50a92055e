"""
Schéma du manifest JSON — format brut d'un formulaire tel que saisi par l'admin.
FormManifest → parse_form() → SinglePageForm | MultiPageForm

Volontairement permissif : les champs restent des dicts, la validation fine
(et l'exclusion des champs mal formés) se fait dans le parser.

Exemple minimal :
{
  "title": "Nouveau projet",
  "settings": {"multiPage": true, "showProgressBar": true, "allowSaveDraft": true},
  "pages": [
    {"title": "Page 1", "sections": [
      {"title": "Informations", "fields": [
        {"name": "title", "type": "text", "label": "Titre", "required": true,
         "columnSpan": {"mobile": 12, "tablet": 6, "desktop": 4}}
      ]}
    ]}
  ]
}
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FormManifest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = None
    title: str = ""
    description: str = ""
    settings: Dict[str, Any] = Field(default_factory=dict)
    published: bool = False
    sections: Optional[List[Any]] = None
    pages: Optional[List[Any]] = None
