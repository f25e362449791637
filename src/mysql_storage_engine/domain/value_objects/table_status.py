"""Outcome of the table bootstrap step."""

from __future__ import annotations

from enum import Enum


class TableStatus(Enum):
    """Whether bootstrap created the table or found it already present."""

    CREATED = "created"
    EXISTS = "exists"
