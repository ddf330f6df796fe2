from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import replace
from pathlib import Path

from vent_txt.codec import ParseError, decode_message, encode_message
from vent_txt.common import now
from vent_txt.models import Message
from vent_txt.references import parse_reply

logger = logging.getLogger(__name__)


class MessageNotFoundError(RuntimeError):
    def __init__(self, message_id: int) -> None:
        self.message_id = message_id
        super().__init__(f"message not found: {message_id}")


class InvalidMessageError(ValueError):
    pass


def _validate_text(text: str) -> str:
    text = text.strip()
    if not text:
        raise InvalidMessageError("message is empty")
    if "\n" in text or "\r" in text:
        raise InvalidMessageError("message contains a line break")
    return text


class MessageStore:
    """Ordered message log backed by a flat file.

    The whole file is loaded into memory and rewritten on every mutation.
    There is no locking: two processes writing the same path can lose updates.
    New ids are max + 1, so removing the newest message frees its id for reuse.
    """

    def __init__(self, *, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        self._messages: list[Message] | None = None

    @property
    def messages(self) -> list[Message]:
        if self._messages is None:
            self.load()
        assert self._messages is not None
        return list(self._messages)

    def load(self) -> list[Message]:
        messages: list[Message] = []
        seen: set[int] = set()
        try:
            with self.path.open("rb") as f:
                for line_no, raw in enumerate(f, start=1):
                    try:
                        row = raw.decode("utf-8").rstrip("\r\n")
                    except UnicodeDecodeError as e:
                        raise ParseError(
                            f"invalid UTF-8 ({e.reason})",
                            row=raw.decode("utf-8", errors="replace").rstrip("\r\n"),
                            line_no=line_no,
                        ) from e
                    if not row:
                        continue
                    msg = decode_message(row, line_no=line_no)
                    if msg.message_id in seen:
                        raise ParseError(
                            f"duplicate id {msg.message_id}", row=row, line_no=line_no
                        )
                    seen.add(msg.message_id)
                    messages.append(msg)
        except FileNotFoundError:
            logger.debug("store file %s does not exist yet", self.path)

        logger.debug("loaded %d message(s) from %s", len(messages), self.path)
        self._messages = messages
        return list(messages)

    def save(self) -> None:
        self._write(self.messages)

    def _write(self, messages: list[Message]) -> None:
        """Write every row to a temp file next to the store, then swap it in.

        The in-memory sequence is only replaced once the new file is in place.
        """
        rows = "".join(encode_message(m) + "\n" for m in messages)
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(rows)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        self._messages = list(messages)
        logger.debug("saved %d message(s) to %s", len(messages), self.path)

    def _index_of(self, message_id: int) -> int:
        for i, m in enumerate(self.messages):
            if m.message_id == message_id:
                return i
        raise MessageNotFoundError(message_id)

    def get(self, message_id: int) -> Message:
        return self.messages[self._index_of(message_id)]

    def add(self, raw_text: str) -> Message:
        messages = self.messages
        ids = {m.message_id for m in messages}
        reply_to, text = parse_reply(raw_text, known_ids=ids)
        text = _validate_text(text)

        msg = Message(
            message_id=max(ids, default=0) + 1,
            created_at=now(),
            reply_to=reply_to,
            text=text,
        )
        self._write([*messages, msg])
        logger.info("added message %d", msg.message_id)
        return msg

    def edit(self, message_id: int, new_text: str) -> Message:
        idx = self._index_of(message_id)
        text = _validate_text(new_text)

        messages = self.messages
        updated = replace(messages[idx], text=text)
        messages[idx] = updated
        self._write(messages)
        logger.info("edited message %d", message_id)
        return updated

    def remove(self, message_id: int) -> None:
        idx = self._index_of(message_id)

        messages = self.messages
        del messages[idx]
        self._write(messages)
        logger.info("removed message %d", message_id)
