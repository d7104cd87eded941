from typing import Any

from jinja2 import TemplateError
from litestar import Request
from litestar.exceptions import TemplateNotFoundException

from inkwell.lib.exceptions import RenderError


def render_template(request: Request, template_name: str, **context: Any) -> str:
    """Render a template eagerly so failures surface as :class:`RenderError`.

    Litestar's ``Template`` response renders after the handler returns,
    outside the reach of handler-level error mapping.
    """
    try:
        template = request.app.template_engine.get_template(template_name)
        return template.render(**context)
    except (TemplateNotFoundException, TemplateError) as exc:
        raise RenderError(f"{template_name}: {exc}") from exc
