"""Error types and exit-code mapping."""

from enum import Enum, IntEnum


class ProviderErrorCode(str, Enum):
    RATE_LIMITED = "RATE_LIMITED"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    NETWORK_ERROR = "NETWORK_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    UNKNOWN = "UNKNOWN"


class ProviderError(Exception):
    """A primary-upstream request failed and no cached copy could stand in."""

    def __init__(
        self,
        message: str,
        code: ProviderErrorCode,
        provider: str,
        trace_id: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.provider = provider
        self.trace_id = trace_id

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"ProviderError(code={self.code.value!r}, provider={self.provider!r}, "
            f"trace_id={self.trace_id!r}, message={self.message!r})"
        )


class SourceError(Exception):
    """A secondary source returned nothing usable for a league."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class ExitCode(IntEnum):
    OK = 0
    GENERAL_ERROR = 1
    INVALID_INPUT = 2
    CONFIG_ERROR = 3
    AUTH_ERROR = 4
    RATE_LIMITED = 5
    UPSTREAM_ERROR = 6


_EXIT_CODES = {
    ProviderErrorCode.RATE_LIMITED: ExitCode.RATE_LIMITED,
    ProviderErrorCode.UNAUTHORIZED: ExitCode.AUTH_ERROR,
    ProviderErrorCode.NETWORK_ERROR: ExitCode.UPSTREAM_ERROR,
}


def exit_code_for_error(error: BaseException) -> ExitCode:
    """Map a failure to the process exit code the CLI should use."""
    if isinstance(error, ProviderError):
        return _EXIT_CODES.get(error.code, ExitCode.GENERAL_ERROR)
    return ExitCode.GENERAL_ERROR


def exit_label(code: ExitCode) -> str:
    """Machine-readable label for an exit code ("rate_limited", ...)."""
    return code.name.lower()
