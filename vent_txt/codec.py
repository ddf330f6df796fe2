"""Flat row codec for stored messages.

A row is ``id,created_at,reply_to,text``. Only ``text`` can hold arbitrary
characters, so it is the only escaped field: backslash, the delimiter and
line breaks are written as two-character escapes and every message occupies
exactly one physical line.
"""

from __future__ import annotations

import math

from vent_txt.models import Message

DELIMITER = ","
ESCAPE = "\\"
FIELD_COUNT = 4

_ESCAPES = {
    ESCAPE: ESCAPE + ESCAPE,
    DELIMITER: ESCAPE + DELIMITER,
    "\n": ESCAPE + "n",
    "\r": ESCAPE + "r",
}
_UNESCAPES = {v[1]: k for k, v in _ESCAPES.items()}


class ParseError(ValueError):
    def __init__(self, reason: str, *, row: str, line_no: int | None = None) -> None:
        self.reason = reason
        self.row = row
        self.line_no = line_no
        where = f"line {line_no}" if line_no is not None else "row"
        super().__init__(f"{where}: {reason}: {row!r}")


def escape_text(text: str) -> str:
    return "".join(_ESCAPES.get(c, c) for c in text)


def unescape_text(raw: str, *, row: str, line_no: int | None = None) -> str:
    out: list[str] = []
    i = 0
    while i < len(raw):
        c = raw[i]
        if c == DELIMITER:
            raise ParseError("unescaped delimiter in text", row=row, line_no=line_no)
        if c == ESCAPE:
            if i + 1 >= len(raw):
                raise ParseError("dangling escape at end of text", row=row, line_no=line_no)
            nxt = raw[i + 1]
            if nxt not in _UNESCAPES:
                raise ParseError(f"unknown escape {ESCAPE}{nxt}", row=row, line_no=line_no)
            out.append(_UNESCAPES[nxt])
            i += 2
            continue
        out.append(c)
        i += 1
    return "".join(out)


def encode_message(message: Message) -> str:
    reply_to = "" if message.reply_to is None else str(message.reply_to)
    return DELIMITER.join(
        [
            str(message.message_id),
            repr(float(message.created_at)),
            reply_to,
            escape_text(message.text),
        ]
    )


def _parse_id(raw: str, *, field: str, row: str, line_no: int | None) -> int:
    if not raw.isascii() or not raw.isdigit():
        raise ParseError(f"{field} is not a positive integer", row=row, line_no=line_no)
    try:
        value = int(raw)
    except ValueError:
        raise ParseError(f"{field} has too many digits", row=row, line_no=line_no) from None
    if value <= 0:
        raise ParseError(f"{field} is not a positive integer", row=row, line_no=line_no)
    return value


def decode_message(row: str, *, line_no: int | None = None) -> Message:
    parts = row.split(DELIMITER, FIELD_COUNT - 1)
    if len(parts) < FIELD_COUNT:
        raise ParseError(
            f"expected {FIELD_COUNT} fields, got {len(parts)}", row=row, line_no=line_no
        )
    raw_id, raw_ts, raw_reply, raw_text = parts

    message_id = _parse_id(raw_id, field="id", row=row, line_no=line_no)
    try:
        created_at = float(raw_ts)
    except ValueError:
        raise ParseError("timestamp is not a number", row=row, line_no=line_no) from None
    if not math.isfinite(created_at):
        raise ParseError("timestamp is not a number", row=row, line_no=line_no)
    reply_to = (
        None if raw_reply == "" else _parse_id(raw_reply, field="reply_to", row=row, line_no=line_no)
    )
    text = unescape_text(raw_text, row=row, line_no=line_no)
    return Message(message_id=message_id, created_at=created_at, reply_to=reply_to, text=text)
