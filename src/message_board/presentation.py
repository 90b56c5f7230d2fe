"""Plain-text rendering of the board state for terminal use."""

from __future__ import annotations

from typing import List

from .client import BoardState

WIDTH = 60


def render(state: BoardState) -> str:
    if state.loading:
        return "Loading messages..."

    lines: List[str] = ["Message Board".center(WIDTH), "-" * WIDTH]
    if state.error:
        lines.append(f"! {state.error}  (type 'dismiss' to hide)")
        lines.append("-" * WIDTH)

    if not state.messages:
        lines.append("No messages yet. Be the first to post!")
    for msg in state.messages:
        lines.append(msg.text)
        lines.append(f"    ID: {msg.id} | {msg.timestamp.astimezone():%Y-%m-%d %H:%M:%S}")

    lines.append("-" * WIDTH)
    lines.append(f"> {state.draft}")
    lines.append(f"Total messages: {len(state.messages)}")
    return "\n".join(lines)
