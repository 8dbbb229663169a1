"""Jinja2 environment for marker and popup HTML."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATES_DIR = Path(__file__).parent / "templates"


def format_price(price: float | None) -> str:
    """Format a price per litre, "Sin datos" when unknown or zero."""
    if not price:
        return "Sin datos"
    return f"{price:.3f} €/L"


templates = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
templates.filters["format_price"] = format_price


def render(name: str, **context) -> str:
    return templates.get_template(name).render(**context).strip()
