from __future__ import annotations

from datetime import datetime, timezone

from message_board.client import BoardState
from message_board.models import Message
from message_board.presentation import render


def test_render_loading():
    assert render(BoardState(loading=True)) == "Loading messages..."


def test_render_empty_board_with_error():
    out = render(BoardState(loading=False, error="Failed to fetch: 500 Internal Server Error"))
    assert "Failed to fetch: 500" in out
    assert "No messages yet" in out
    assert "Total messages: 0" in out


def test_render_messages_and_draft():
    ts = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    state = BoardState(
        loading=False,
        draft="typing...",
        messages=[Message(id="1", text="hello", timestamp=ts), Message(id="2", text="world", timestamp=ts)],
    )
    out = render(state)
    assert out.index("hello") < out.index("world")
    assert "ID: 1" in out
    assert "> typing..." in out
    assert "Total messages: 2" in out
    assert "No messages yet" not in out
