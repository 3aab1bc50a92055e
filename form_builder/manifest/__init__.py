"""Manifest — schema + parser."""
from .schema import FormManifest
from .parser import FormSchemaError, LoadedForm, dump_form, parse_form

__all__ = [
    "FormManifest",
    "FormSchemaError",
    "LoadedForm",
    "dump_form",
    "parse_form",
]
