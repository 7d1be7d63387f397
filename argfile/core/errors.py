from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(eq=False)
class ArgFileError(Exception):
    """Base error envelope. Callers format these; the expander only raises them."""

    code: str
    message: str
    file: Optional[str] = None
    line: Optional[int] = None

    def __str__(self) -> str:
        parts: list[str] = []
        if self.file:
            parts.append(self.file)
        if self.line is not None:
            parts.append(str(self.line))
        loc = ":".join(parts) if parts else "<args>"
        return f"{loc}: {self.code}: {self.message}"


class OptionFileReadError(ArgFileError, OSError):
    pass


class OptionFileTokenizeError(ArgFileError):
    pass


@dataclass(eq=False)
class OptionFileCycleError(ArgFileError):
    chain: list[str] = field(default_factory=list)


class TokenizationError(ValueError):
    pass
