"""Renderers — HTML + CSS du formulaire."""
from .css import generate_form_css, generate_grid_css
from .html import render_document, render_form, render_field, render_section_nav

__all__ = [
    "generate_form_css",
    "generate_grid_css",
    "render_document",
    "render_form",
    "render_field",
    "render_section_nav",
]
