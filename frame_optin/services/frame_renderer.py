"""HTML rendering for frames and the consent page."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from frame_optin.core.config import settings
from frame_optin.schemas.subscriber import ConsentState

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "frame"
_jinja_env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)), autoescape=True)

SUBSCRIBE_BUTTON_LABEL = "Subscribe"


def frame_post_url() -> str:
    """Absolute URL the frame host POSTs button clicks to."""
    return f"{settings.api_base_url}/frame"


def render_frame(
    button_label: str,
    *,
    image_url: str | None = None,
    post_url: str | None = None,
    title: str | None = None,
) -> str:
    """Render a vNext frame with a single button."""
    template = _jinja_env.get_template("frame.html")
    return template.render(
        title=title or settings.project_name,
        image_url=image_url or settings.frame_image_url,
        post_url=post_url or frame_post_url(),
        button_label=button_label,
    )


def render_consent_page(state: ConsentState, *, toggle_url: str, error: str | None = None) -> str:
    """Render the consent page showing the current state and a toggle button."""
    template = _jinja_env.get_template("consent.html")
    return template.render(
        title=settings.project_name,
        consent_label=f"Consent State: {state.value}",
        toggle_url=toggle_url,
        error=error,
    )


def render_invalid_link_page() -> str:
    template = _jinja_env.get_template("invalid_link.html")
    return template.render(title=settings.project_name)
