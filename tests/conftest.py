"""Shared helpers for building RollingXO positions in tests."""

from __future__ import annotations

from typing import Tuple

from rollingxo.rules import EMPTY


def make_board(layout: str) -> Tuple[str, ...]:
    """Build a board from a 9-character layout such as ``"XX.|OO.|..."``."""
    cells = layout.replace("|", "")
    assert len(cells) == 9, layout
    return tuple(EMPTY if c == "." else c for c in cells)


def fixed_clock(now: float):
    return lambda: now
