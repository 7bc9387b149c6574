"""
SnipBin Backend — HTML Templates
=================================

What:  Loads and renders the Jinja2 page templates shipped in
       `snipbin/templates/` (index, document, reader, error).
How:   FastAPI's Jinja2Templates environment with HTML autoescaping.
       Trusted fragments (highlighted code, stylesheet, Markdown output,
       analytics snippet) are passed in as `markupsafe.Markup`.
"""

import logging
from pathlib import Path
from typing import Any

from fastapi.templating import Jinja2Templates
from jinja2 import TemplateError

from snipbin.exceptions import RenderFailedError

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


class TemplateRenderer:
    """Renders named templates to strings."""

    def __init__(self, directory: Path = TEMPLATE_DIR):
        self.templates = Jinja2Templates(directory=str(directory))

    def render(self, name: str, **data: Any) -> str:
        """
        Render template `name` with `data`.

        Raises:
            RenderFailedError: the template is missing or fails to render
        """
        try:
            return self.templates.get_template(name).render(**data)
        except TemplateError as e:
            logger.error("Template %s failed to render: %s", name, e)
            raise RenderFailedError(
                message=f"Could not render template {name}",
                context={"template": name, "error_type": type(e).__name__},
            ) from e
