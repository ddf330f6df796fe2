from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from vent_txt.codec import ParseError
from vent_txt.common import format_timestamp
from vent_txt.config import VentConfig, load_config
from vent_txt.models import Message
from vent_txt.references import InvalidReferenceError
from vent_txt.render import Renderer, TemplateRenderError, jinja_template
from vent_txt.store import InvalidMessageError, MessageNotFoundError, MessageStore


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@click.group()
@click.option(
    "--csv-path",
    default=None,
    help="Message store path (defaults to $VENT_TXT_CSV or vent.csv).",
)
@click.option(
    "--template-path",
    default=None,
    help="Render template path (defaults to $VENT_TXT_HBS or template/vent.html.j2).",
)
@click.option("--verbose", "-v", is_flag=True, help="Log store activity to stderr.")
@click.pass_context
def cli(ctx: click.Context, csv_path: str | None, template_path: str | None, verbose: bool) -> None:
    """A personal vent log with reply threading, rendered to a static page."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(csv_path=csv_path, template_path=template_path)


def _config(ctx: click.Context) -> VentConfig:
    return ctx.obj["config"]


def _store(ctx: click.Context) -> MessageStore:
    return MessageStore(path=_config(ctx).csv_path)


@contextmanager
def _reported_errors() -> Iterator[None]:
    try:
        yield
    except MessageNotFoundError as e:
        raise click.ClickException(f"Message not found: {e.message_id}") from None
    except (ParseError, InvalidReferenceError, InvalidMessageError, TemplateRenderError) as e:
        raise click.ClickException(str(e)) from e
    except OSError as e:
        raise click.ClickException(f"{e.strerror or e}: {e.filename}" if e.filename else str(e)) from e


@cli.command("add")
@click.argument("words", nargs=-1, required=True)
@click.pass_context
def add_command(ctx: click.Context, words: tuple[str, ...]) -> None:
    """Add a message. Start it with '>>ID' to reply to message ID."""
    with _reported_errors():
        msg = _store(ctx).add(" ".join(words))
    click.echo(msg.message_id)


@cli.command("edit")
@click.argument("message_id", type=int)
@click.argument("words", nargs=-1, required=True)
@click.pass_context
def edit_command(ctx: click.Context, message_id: int, words: tuple[str, ...]) -> None:
    """Replace the text of a message."""
    with _reported_errors():
        _store(ctx).edit(message_id, " ".join(words))


@cli.command("rm")
@click.argument("message_id", type=int)
@click.pass_context
def rm_command(ctx: click.Context, message_id: int) -> None:
    """Delete a message. Replies to it are kept."""
    with _reported_errors():
        _store(ctx).remove(message_id)


@cli.command("render")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Output file path (default: stdout).",
)
@click.pass_context
def render_command(ctx: click.Context, output: str | None) -> None:
    """Render every message through the template."""
    renderer = Renderer(template=jinja_template(_config(ctx).template_path))
    with _reported_errors():
        messages = _store(ctx).load()
        if output:
            Path(output).write_text(renderer.render_text(messages), encoding="utf-8")
            click.echo(f"Rendered {len(messages)} messages to {output}", err=True)
        else:
            renderer.render(messages, sys.stdout)


def _format_message(msg: Message) -> str:
    parts = [
        click.style(f"[{msg.message_id}]", dim=True),
        click.style(format_timestamp(msg.created_at, "%Y-%m-%d %H:%M"), fg="cyan"),
    ]
    if msg.reply_to is not None:
        parts.append(click.style(f">>{msg.reply_to}", fg="green"))
    return f"{' '.join(parts)}: {msg.text}"


@cli.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of text.")
@click.pass_context
def list_command(ctx: click.Context, *, as_json: bool) -> None:
    """List messages in storage order."""
    with _reported_errors():
        messages = _store(ctx).load()

    if as_json:
        payload = {
            "messages": [
                {
                    "id": m.message_id,
                    "created_at": m.created_at,
                    "reply_to": m.reply_to,
                    "text": m.text,
                }
                for m in messages
            ]
        }
        click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    for m in messages:
        click.echo(_format_message(m))
