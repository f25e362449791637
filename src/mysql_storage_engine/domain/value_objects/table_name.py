"""Table name value object.

The table name is configuration, but it is interpolated into every
statement because MySQL cannot bind identifiers as parameters. It is
therefore validated once, up front, as a plain unquoted identifier.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_IDENTIFIER = re.compile(r"[A-Za-z0-9_$]{1,64}")


@dataclass(frozen=True, slots=True)
class TableName:
    """A validated MySQL table identifier.

    Attributes:
        value: The raw identifier, e.g. ``"ass"``

    Example:
        >>> TableName("ass").quoted
        '`ass`'
    """

    value: str

    def __post_init__(self) -> None:
        """Validate the identifier."""
        if not isinstance(self.value, str) or not _IDENTIFIER.fullmatch(self.value):
            raise ValueError(
                f"table name must be 1-64 characters of [A-Za-z0-9_$], got {self.value!r}"
            )
        if self.value.isdigit():
            raise ValueError(f"table name cannot be all digits, got {self.value!r}")

    @property
    def quoted(self) -> str:
        """Backtick-quoted form for use inside SQL statements."""
        return f"`{self.value}`"

    def __str__(self) -> str:
        return self.value
