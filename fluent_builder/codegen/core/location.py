"""Source positions carried through the generator so diagnostics can be pinned."""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class SourceLocation:
    """A position in the source the definition was parsed from.

    ``line`` is 1-based, ``column`` is 0-based, matching the ``ast`` module.
    """

    file: str = "<unknown>"
    line: int = 0
    column: int = 0

    @classmethod
    def unknown(cls) -> "SourceLocation":
        return cls()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SourceLocation":
        if not data:
            return cls.unknown()
        return cls(
            file=str(data.get("file", "<unknown>")),
            line=int(data.get("line", 0)),
            column=int(data.get("column", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"file": self.file, "line": self.line, "column": self.column}

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"
