from __future__ import annotations

import pytest

from vent_txt.references import InvalidReferenceError, parse_reply


def test_reply_marker_is_split_off():
    assert parse_reply(">>10 hello", known_ids={10}) == (10, "hello")


def test_plain_text_has_no_reply():
    assert parse_reply("hello", known_ids={10}) == (None, "hello")


def test_text_is_trimmed():
    assert parse_reply("  hello there \n", known_ids=set()) == (None, "hello there")
    assert parse_reply("  >>2   spaced  out  ", known_ids={2}) == (2, "spaced  out")


def test_unknown_reply_target_is_rejected():
    with pytest.raises(InvalidReferenceError) as exc:
        parse_reply(">>999 hi", known_ids={1, 2})
    assert exc.value.reply_to == 999
    assert "999" in str(exc.value)


@pytest.mark.parametrize("raw", [">>abc hi", ">>10x hi", "> >10 hi", ">10 hi", "hi >>10"])
def test_non_markers_are_kept_as_text(raw):
    assert parse_reply(raw, known_ids={10}) == (None, raw)


def test_marker_without_text():
    assert parse_reply(">>10", known_ids={10}) == (10, "")


def test_overlong_reply_target_is_rejected():
    digits = "9" * 5000
    with pytest.raises(InvalidReferenceError, match=r"cannot reply to message 9{20}\.\.\."):
        parse_reply(f">>{digits} hi", known_ids={1})
