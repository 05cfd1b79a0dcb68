"""Config module exports."""

from callcontract.config.loader import CallContractSettings, load_config
from callcontract.config.models import (
    SCIP_SYMBOL_ROLES,
    CallContractConfig,
    DataConfig,
    LoggingConfig,
    LogOutputConfig,
    RoleSchema,
)

__all__ = [
    "load_config",
    "CallContractConfig",
    "CallContractSettings",
    "DataConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "RoleSchema",
    "SCIP_SYMBOL_ROLES",
]
