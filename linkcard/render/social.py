"""Open Graph and Twitter meta tags for a generated card."""

from jinja2 import Environment, FileSystemLoader, select_autoescape

from linkcard.models.card import CardRecord
from linkcard.render.surface import TEMPLATE_DIR

IMAGE_PLACEHOLDER = "YOUR_IMAGE_URL_HERE"

_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html", "xml"]),
    keep_trailing_newline=False,
)


def render_meta_tags(record: CardRecord, image_url: str = IMAGE_PLACEHOLDER) -> str:
    """Social meta tags ready to paste into a page's <head>."""
    template = _env.get_template("meta_tags.html")
    return template.render(card=record, image_url=image_url).strip()
