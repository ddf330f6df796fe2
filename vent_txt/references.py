from __future__ import annotations

import re
from collections.abc import Container

REPLY_MARKER = ">>"

_REPLY_RE = re.compile(r">>([0-9]+)(?:\s+|\Z)")


class InvalidReferenceError(RuntimeError):
    def __init__(self, reply_to: int | str) -> None:
        self.reply_to = reply_to
        shown = str(reply_to)
        if len(shown) > 20:
            shown = shown[:20] + "..."
        super().__init__(f"cannot reply to message {shown}: no such message")


def parse_reply(raw_text: str, *, known_ids: Container[int]) -> tuple[int | None, str]:
    """Split an optional leading ``>>N`` reply marker off ``raw_text``.

    Returns ``(reply_to, text)``. A marker must be followed by whitespace or the
    end of the input; otherwise the trimmed text is returned as-is. The target
    must be one of ``known_ids``.
    """
    text = raw_text.strip()
    match = _REPLY_RE.match(text)
    if match is None:
        return None, text

    digits = match.group(1)
    try:
        reply_to = int(digits)
    except ValueError:
        # past the interpreter's int digit limit; no stored id can be that long
        raise InvalidReferenceError(digits) from None
    if reply_to not in known_ids:
        raise InvalidReferenceError(reply_to)
    return reply_to, text[match.end() :]
