"""Core module exports."""

from callcontract.core.errors import (
    AssertionViolation,
    CallContractError,
    ConfigError,
    DataUnavailableError,
    ErrorCode,
    IntegrityViolationError,
    InternalError,
    LoadError,
    ParseError,
)
from callcontract.core.logging import (
    clear_contract_id,
    configure_logging,
    contract_context,
    get_contract_id,
    get_log_file_path,
    get_logger,
    set_contract_id,
)

__all__ = [
    # Errors
    "AssertionViolation",
    "CallContractError",
    "ConfigError",
    "DataUnavailableError",
    "ErrorCode",
    "IntegrityViolationError",
    "InternalError",
    "LoadError",
    "ParseError",
    # Logging
    "clear_contract_id",
    "configure_logging",
    "contract_context",
    "get_contract_id",
    "get_log_file_path",
    "get_logger",
    "set_contract_id",
]
