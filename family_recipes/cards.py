"""HTML documents generated from a single recipe.

Both renderers are pure: they return the document as a string and leave
displaying or printing it to the caller. Every text field goes through
Jinja2's autoescaping; the photo is embedded as the data URL produced when the
upload was read.
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import escape

from .models import Recipe

UNKNOWN_AUTHOR = "Unknown"
PRINT_DELAY_MS = 120
TEMPLATE_DIR = Path(__file__).resolve().parent / "templates" / "cards"

_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(default=True, default_for_string=True),
)


def escape_html(text: Optional[str]) -> str:
    return str(escape(text or ""))


def format_date(value: Optional[str]) -> str:
    """Format an ISO date as e.g. ``March 4, 2024``.

    Values that do not parse are returned unchanged.
    """

    if not value:
        return ""
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(value).date()
        except ValueError:
            return value
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def _lines(text: Optional[str]) -> list[str]:
    return (text or "").split("\n")


_env.filters["format_date"] = format_date
_env.filters["lines"] = _lines
_env.globals["UNKNOWN_AUTHOR"] = UNKNOWN_AUTHOR


def render_detail(recipe: Recipe) -> str:
    """Full-page view of a recipe with a print button."""

    return _env.get_template("detail.html").render(recipe=recipe)


def render_print_card(recipe: Recipe) -> str:
    """Single 3x5 inch index card that prints itself shortly after loading."""

    return _env.get_template("print_card.html").render(
        recipe=recipe, print_delay_ms=PRINT_DELAY_MS
    )


__all__ = ["escape_html", "format_date", "render_detail", "render_print_card"]
