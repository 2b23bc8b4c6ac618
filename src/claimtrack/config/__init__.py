"""Application configuration helpers."""

from __future__ import annotations

from .claim_system import ClaimSystemConfig, RetryPolicy, get_claim_system_config
from .env import env_flag, env_float, env_int, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .revalidation import RevalidationConfig, get_revalidation_config
from .rules import RuleConfig, get_rule_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ClaimSystemConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "RetryPolicy",
    "RevalidationConfig",
    "RuleConfig",
    "StorageConfig",
    "configure_logging",
    "env_flag",
    "env_float",
    "env_int",
    "get_claim_system_config",
    "get_database_config",
    "get_revalidation_config",
    "get_rule_config",
    "get_storage_config",
    "require_env_vars",
]
