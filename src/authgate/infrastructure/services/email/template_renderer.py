"""Jinja2 template renderer for email templates.

Provides safe template rendering with HTML escaping and error handling.
"""

from jinja2 import TemplateSyntaxError, UndefinedError
from jinja2.sandbox import SandboxedEnvironment

from authgate.core.logging import get_logger

logger = get_logger(__name__)


class TemplateRenderer:
    """Jinja2 template renderer using a sandboxed environment."""

    def __init__(self, autoescape: bool = True) -> None:
        self.env = SandboxedEnvironment(
            autoescape=autoescape,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_string: str, variables: dict[str, object]) -> str:
        """Render a template string with variables.

        Raises:
            TemplateSyntaxError: If template syntax is invalid.
            UndefinedError: If a variable used as an object is missing.
        """
        try:
            return self.env.from_string(template_string).render(**variables)
        except TemplateSyntaxError as e:
            logger.error("Template syntax error", error=str(e), line=e.lineno)
            raise
        except UndefinedError as e:
            logger.error("Undefined variable in template", error=str(e))
            raise


# Global template renderer instances
_html_renderer: TemplateRenderer | None = None
_text_renderer: TemplateRenderer | None = None


def get_template_renderer(html: bool = True) -> TemplateRenderer:
    """Get the shared renderer for HTML (escaped) or plain-text templates."""
    global _html_renderer, _text_renderer
    if html:
        if _html_renderer is None:
            _html_renderer = TemplateRenderer(autoescape=True)
        return _html_renderer
    if _text_renderer is None:
        _text_renderer = TemplateRenderer(autoescape=False)
    return _text_renderer
