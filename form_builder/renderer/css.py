"""
Générateur CSS — grille 12 colonnes responsive + styles du formulaire.

Les classes col-span-N / md:col-span-N / lg:col-span-N produites par
core.layout.responsive_classes() sont générées ici, une fois, et mises en cache.
"""
from ..core.layout import BREAKPOINT_MIN_WIDTH
from ..core.schemas import GRID_COLUMNS

_CSS_CACHE: dict = {}

_BASE_CSS = """
*{box-sizing:border-box}
body{font-family:'Segoe UI',sans-serif;background:#f7fafc;color:#2d3748;margin:0}
.form-layout{display:flex;gap:24px;max-width:1200px;margin:0 auto;padding:24px}
.form{flex:1;min-width:0}
.form__title{font-size:22px;margin:0 0 4px}
.form__description{color:#718096;margin:0 0 20px}
.form__warnings{background:#fffbeb;border:1px solid #f6e05e;border-radius:6px;padding:10px 14px;font-size:13px;margin-bottom:16px}
.form__notice{background:#fff5f5;border:1px solid #feb2b2;border-radius:6px;padding:10px 14px;font-size:13px;margin-bottom:16px}
.progress{margin-bottom:24px}
.progress__label{display:flex;justify-content:space-between;font-size:13px;margin-bottom:6px}
.progress__track{background:#e2e8f0;border-radius:99px;height:8px}
.progress__bar{background:#667eea;border-radius:99px;height:8px}
.form-section{background:#fff;border:1px solid #e2e8f0;border-radius:8px;padding:24px;margin-bottom:24px}
.form-section--active{border-color:#667eea;box-shadow:0 0 0 3px rgba(102,126,234,.2)}
.form-section__title{font-size:17px;margin:0}
.form-section__description{color:#718096;font-size:14px;margin:4px 0 0}
.grid{display:grid;grid-template-columns:repeat(12,minmax(0,1fr));gap:12px;margin-top:20px}
.field{display:flex;flex-direction:column;gap:4px}
.field label{font-size:14px;font-weight:500}
.field__required{color:#e53e3e;margin-left:4px}
.field input,.field select,.field textarea{padding:9px 12px;border:1px solid #cbd5e0;border-radius:6px;background:#f7fafc;font:inherit}
.field--error input,.field--error select,.field--error textarea{border-color:#fc8181;background:#fff5f5}
.field__help{font-size:12px;color:#718096;margin:0}
.field__error{font-size:12px;color:#e53e3e;margin:0}
.field__heading{font-size:16px;margin:8px 0 0}
.field__divider{border:0;border-top:1px solid #e2e8f0;width:100%}
.form__actions{display:flex;gap:12px;padding-top:20px;border-top:1px solid #e2e8f0}
.btn{border:none;border-radius:6px;padding:10px 20px;font-size:14px;cursor:pointer;background:#667eea;color:#fff}
.btn--outline{background:#fff;color:#4a5568;border:1px solid #cbd5e0}
.section-nav{width:260px;position:sticky;top:24px;align-self:flex-start;background:#fff;border:1px solid #e2e8f0;border-radius:8px;padding:16px}
.section-nav__title{font-size:14px;margin:0 0 12px}
.section-nav__item{display:block;padding:8px 12px;border:1px solid #e2e8f0;border-radius:6px;margin-bottom:8px;text-decoration:none;color:inherit;font-size:13px}
.section-nav__item--valid{border-color:#9ae6b4;background:#f0fff4}
.section-nav__item--error{border-color:#feb2b2;background:#fff5f5}
.section-nav__item--active{border-color:#667eea;background:#ebf4ff}
"""


def _span_rules(prefix: str = "") -> str:
    escaped = prefix.replace(":", "\\:")
    return "\n".join(
        f".{escaped}col-span-{n}{{grid-column:span {n} / span {n}}}"
        for n in range(1, GRID_COLUMNS + 1)
    )


def generate_grid_css() -> str:
    """Utilitaires col-span : base (mobile) puis media queries tablet / desktop."""
    if "grid" not in _CSS_CACHE:
        parts = [_span_rules()]
        for bp, prefix in (("tablet", "md:"), ("desktop", "lg:")):
            parts.append(
                f"@media (min-width:{BREAKPOINT_MIN_WIDTH[bp]}px){{\n{_span_rules(prefix)}\n}}"
            )
        _CSS_CACHE["grid"] = "\n".join(parts)
    return _CSS_CACHE["grid"]


def generate_form_css() -> str:
    return _BASE_CSS.strip() + "\n" + generate_grid_css()
