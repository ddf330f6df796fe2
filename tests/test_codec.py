from __future__ import annotations

import sys

import pytest

from vent_txt.codec import ParseError, decode_message, encode_message
from vent_txt.models import Message


@pytest.mark.parametrize(
    "text",
    [
        "plain",
        "",
        "a, b, c",
        "line one\nline two",
        "crlf\r\nending",
        "back\\slash",
        "trailing backslash\\",
        "\\n is not a newline",
        ",,,",
        "ünïcødé ✓",
        ">>12 looks like a reply",
    ],
)
def test_round_trip(text):
    msg = Message(message_id=7, created_at=1700000000.123456, reply_to=3, text=text)
    row = encode_message(msg)
    assert "\n" not in row
    assert "\r" not in row
    assert decode_message(row) == msg


def test_round_trip_top_level():
    msg = Message(message_id=1, created_at=1700000000.0, reply_to=None, text="hi")
    assert decode_message(encode_message(msg)) == msg


def test_encode_layout():
    msg = Message(message_id=3, created_at=1.5, reply_to=1, text="a,b\nc\\")
    assert encode_message(msg) == "3,1.5,1,a\\,b\\nc\\\\"

    top = Message(message_id=4, created_at=2.0, reply_to=None, text="x")
    assert encode_message(top) == "4,2.0,,x"


@pytest.mark.parametrize(
    ("row", "reason"),
    [
        ("1,2.0", "expected 4 fields"),
        ("", "expected 4 fields"),
        ("x,2.0,,hi", "id is not a positive integer"),
        ("0,2.0,,hi", "id is not a positive integer"),
        ("-1,2.0,,hi", "id is not a positive integer"),
        ("1,yesterday,,hi", "timestamp is not a number"),
        ("1,nan,,hi", "timestamp is not a number"),
        ("1,2.0,abc,hi", "reply_to is not a positive integer"),
        ("1,2.0,,a,b", "unescaped delimiter"),
        ("1,2.0,,bad\\q", "unknown escape"),
        ("1,2.0,,end\\", "dangling escape"),
    ],
)
def test_decode_rejects_malformed_rows(row, reason):
    with pytest.raises(ParseError) as exc:
        decode_message(row, line_no=7)
    assert reason in exc.value.reason
    assert exc.value.line_no == 7
    assert exc.value.row == row
    assert "line 7" in str(exc.value)


def test_decode_error_without_line_number():
    with pytest.raises(ParseError, match="^row: "):
        decode_message("nope")


@pytest.fixture
def default_int_digit_limit():
    old = sys.get_int_max_str_digits()
    sys.set_int_max_str_digits(4300)
    yield
    sys.set_int_max_str_digits(old)


@pytest.mark.parametrize("row", ["9" * 5000 + ",2.0,,hi", "1,2.0," + "9" * 5000 + ",hi"])
def test_decode_rejects_overlong_ids(default_int_digit_limit, row):
    with pytest.raises(ParseError, match="too many digits") as exc:
        decode_message(row, line_no=3)
    assert exc.value.line_no == 3
