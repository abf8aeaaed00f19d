"""Error types for the LPFCP protocol."""

from __future__ import annotations


def class_identity(cls: type) -> str:
    """Return the portable identity of an exception class."""
    return f"{cls.__module__}.{cls.__qualname__}"


class LpfcpError(Exception):
    """Base class for every error raised by this package."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    @property
    def exception_class(self) -> str:
        """Identity of this error's class, as it travels on the wire."""
        return class_identity(type(self))

    def __str__(self) -> str:
        return self.message


class IncorrectFunctionNameError(LpfcpError):
    """The `functionName` key is missing or is not a string."""


class IncorrectFunctionArgsError(LpfcpError):
    """The `functionArgs` key is missing or is not a mapping."""


class NoMatchingFunctionFoundError(LpfcpError):
    """No exposed function accepts the requested name and arguments."""


class ExecutedFunctionThrowError(LpfcpError):
    """The dispatched function raised while executing.

    The original exception is kept as ``cause`` and chained as ``__cause__``.
    """

    def __init__(self, cause: BaseException | str | None = None) -> None:
        if isinstance(cause, BaseException):
            super().__init__(f"{type(cause).__name__}: {cause}")
            self.__cause__ = cause
        else:
            super().__init__(cause or "")

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__


class TransportError(LpfcpError):
    """The exchange itself failed: connection, timeout, status or malformed body.

    Never used for the protocol-level failures above.
    """


class ArgumentMismatch(LpfcpError):
    """Bound values do not fit a candidate's parameters.

    Internal to the resolver: the candidate is skipped.
    """


PROTOCOL_ERRORS: dict[str, type[LpfcpError]] = {
    class_identity(cls): cls
    for cls in (
        IncorrectFunctionNameError,
        IncorrectFunctionArgsError,
        NoMatchingFunctionFoundError,
        ExecutedFunctionThrowError,
    )
}
