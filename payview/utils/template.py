from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from payview.services.fees import format_cents

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


def format_utc(value) -> str:
    return value.strftime("%B %d, %Y %H:%M UTC") if value else ""


env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
# {{ amount_cents | cents(currency) }}, {{ access_expires_at | utc }}
env.filters["cents"] = format_cents
env.filters["utc"] = format_utc


def render_template(template_path: str, **context) -> str:
    return env.get_template(template_path).render(**context)
