from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ScriptError(Exception):
    """Failure reported to the user; `code` becomes the process exit status and `kind` the error category."""

    message: str
    code: int
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message
