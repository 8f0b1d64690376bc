"""The result a node hands back to the graph."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .content import Content


class OutputKind(Enum):
    """The variants an :class:`Output` can take."""

    OUT = "out"
    ERR = "err"
    ERR_WITH_EXIT_CODE = "err_with_exit_code"
    CONDITION_RESULT = "condition_result"


def _as_content(value: Any) -> Content | None:
    if value is None or isinstance(value, Content):
        return value
    return Content(value)


@dataclass(frozen=True)
class Output:
    """Output of a node: a value, nothing, an error, or a condition result."""

    kind: OutputKind
    content: Content | None = None
    message: str | None = None
    code: int | None = None
    flag: bool | None = None

    @classmethod
    def new(cls, value: Any) -> Output:
        """Output carrying *value*; an existing :class:`Content` is used as is."""
        return cls(OutputKind.OUT, content=_as_content(value))

    @classmethod
    def empty(cls) -> Output:
        """Output carrying nothing."""
        return cls(OutputKind.OUT)

    @classmethod
    def error(cls, message: str) -> Output:
        """Output carrying an error message."""
        return cls(OutputKind.ERR, message=message)

    @classmethod
    def error_with_exit_code(cls, code: int | None, content: Any) -> Output:
        """Output carrying an optional exit code and optional error content."""
        return cls(OutputKind.ERR_WITH_EXIT_CODE, content=_as_content(content), code=code)

    @classmethod
    def condition(cls, value: bool) -> Output:
        """Output produced by a conditional node."""
        return cls(OutputKind.CONDITION_RESULT, flag=bool(value))

    def is_err(self) -> bool:
        """True if this output holds error information."""
        return self.kind in (OutputKind.ERR, OutputKind.ERR_WITH_EXIT_CODE)

    def get_out(self) -> Content | None:
        """The carried content of a normal output, otherwise ``None``."""
        if self.kind is OutputKind.OUT:
            return self.content
        return None

    def get_err(self) -> str | None:
        """A description of the error, or ``None`` if this is not an error."""
        if self.kind is OutputKind.ERR:
            return self.message
        if self.kind is OutputKind.ERR_WITH_EXIT_CODE:
            code = "" if self.code is None else str(self.code)
            return f"code: {code}"
        return None

    def conditional_result(self) -> bool | None:
        """The condition value of a conditional output, otherwise ``None``."""
        if self.kind is OutputKind.CONDITION_RESULT:
            return self.flag
        return None