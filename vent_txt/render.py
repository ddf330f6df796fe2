"""Turn stored messages into a document through a pluggable template."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, TextIO

import jinja2

from vent_txt.common import format_timestamp
from vent_txt.models import Message

Template = Callable[[dict[str, Any]], str]


class TemplateRenderError(RuntimeError):
    pass


def build_context(messages: Iterable[Message]) -> dict[str, Any]:
    """Template context in storage order. ``parent_id`` is not resolved."""
    nodes = [
        {
            "index": i,
            "id": m.message_id,
            "timestamp": m.created_at,
            "text": m.text,
            "parent_id": m.reply_to,
        }
        for i, m in enumerate(messages)
    ]
    return {"messages": nodes, "count": len(nodes)}


def newest_first(nodes: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    return list(reversed(list(nodes)))


def jinja_template(path: str | Path) -> Template:
    """Load a Jinja2 template file lazily and return it as a ``Template``."""
    template_path = Path(path).expanduser()

    def _render(context: dict[str, Any]) -> str:
        env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_path.parent)),
            undefined=jinja2.StrictUndefined,
            autoescape=True,
            keep_trailing_newline=True,
        )
        env.filters["format_timestamp"] = format_timestamp
        env.filters["newest_first"] = newest_first
        return env.get_template(template_path.name).render(context)

    return _render


class Renderer:
    def __init__(self, *, template: Template) -> None:
        self.template = template

    def render_text(self, messages: Iterable[Message]) -> str:
        context = build_context(messages)
        try:
            return self.template(context)
        except jinja2.TemplateError as e:
            raise TemplateRenderError(_describe(e)) from e
        except Exception as e:
            raise TemplateRenderError(f"template failed: {e}") from e

    def render(self, messages: Iterable[Message], out: TextIO) -> None:
        """Render the whole document before writing any of it to ``out``."""
        document = self.render_text(messages)
        out.write(document)


def _describe(e: jinja2.TemplateError) -> str:
    if isinstance(e, jinja2.TemplateNotFound):
        return f"template not found: {e.name}"
    if isinstance(e, jinja2.TemplateSyntaxError):
        where = e.filename or e.name or "<template>"
        return f"template syntax error in {where} line {e.lineno}: {e.message}"
    return f"template error: {e}"
