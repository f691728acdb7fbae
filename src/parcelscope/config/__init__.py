"""Application configuration helpers."""

from __future__ import annotations

from .batch import get_batch_limits
from .env import optional_env_var, optional_int_env_var
from .errors import ConfigurationError
from .fallback import FallbackLookupConfig, get_fallback_config
from .gis import JURISDICTION_CONFIGS, ProviderAdapterConfig, get_jurisdiction_configs
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .skiptrace import SkipTraceConfig, get_skiptrace_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "JURISDICTION_CONFIGS",
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "FallbackLookupConfig",
    "ProviderAdapterConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SkipTraceConfig",
    "StorageConfig",
    "get_batch_limits",
    "get_database_config",
    "get_fallback_config",
    "get_jurisdiction_configs",
    "get_skiptrace_config",
    "get_storage_config",
    "optional_env_var",
    "optional_int_env_var",
]
