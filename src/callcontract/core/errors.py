"""callcontract error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Data load (missing file, malformed document)
- 4xxx: Data availability (optional index not loaded)
- 5xxx: Assertion violations
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from callcontract.assertions.report import IntegrityReport


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Data load (3xxx)
    DATA_FILE_NOT_FOUND = 3001
    DATA_FILE_UNREADABLE = 3002
    DATA_INVALID_JSON = 3003
    DATA_SCHEMA_MISMATCH = 3004

    # Data availability (4xxx)
    DATA_UNAVAILABLE = 4001

    # Assertions (5xxx)
    ASSERTION_VIOLATION = 5001
    INTEGRITY_VIOLATION = 5002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(eq=False)
class CallContractError(Exception):
    """Base error with structured context.

    Not frozen: the interpreter and context managers set ``__traceback__``
    and ``__notes__`` on exceptions in flight.
    """

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'DATA_INVALID_JSON')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CallContractError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class LoadError(CallContractError):
    """A graph or index document could not be read from disk."""

    @classmethod
    def not_found(cls, path: str, what: str = "document") -> "LoadError":
        return cls(
            code=ErrorCode.DATA_FILE_NOT_FOUND,
            message=f"{what} not found at: {path}",
            details={"path": path},
        )

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "LoadError":
        return cls(
            code=ErrorCode.DATA_FILE_UNREADABLE,
            message=f"Failed to read {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class ParseError(CallContractError):
    """A document is not well-formed JSON or does not match the expected shape."""

    @classmethod
    def invalid_json(cls, path: str, reason: str) -> "ParseError":
        return cls(
            code=ErrorCode.DATA_INVALID_JSON,
            message=f"Invalid JSON in {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def schema_mismatch(cls, source: str, location: str, reason: str) -> "ParseError":
        return cls(
            code=ErrorCode.DATA_SCHEMA_MISMATCH,
            message=f"{source}: {location}: {reason}",
            details={"source": source, "location": location, "reason": reason},
        )


class DataUnavailableError(CallContractError):
    """The optional symbol index was queried without being loaded."""

    @classmethod
    def symbol_index(cls) -> "DataUnavailableError":
        return cls(
            code=ErrorCode.DATA_UNAVAILABLE,
            message="Symbol index is not loaded; check has_symbol_index before querying it",
            details={"document": "symbol_index"},
        )


class AssertionViolation(CallContractError, AssertionError):
    """A fast-fail assertion found a mismatch.

    Subclasses AssertionError so test runners report it as a failure rather
    than an error.
    """

    @classmethod
    def violation(cls, message: str, **details: Any) -> "AssertionViolation":
        return cls(
            code=ErrorCode.ASSERTION_VIOLATION,
            message=message,
            details=details,
        )


class IntegrityViolationError(AssertionViolation):
    """Raised once, after all configured integrity checks ran, when any failed."""

    @classmethod
    def from_report(cls, report: "IntegrityReport") -> "IntegrityViolationError":
        return cls(
            code=ErrorCode.INTEGRITY_VIOLATION,
            message=f"Data integrity checks failed: {report.summary()}",
            details={"report": report.to_dict()},
        )


class InternalError(CallContractError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
