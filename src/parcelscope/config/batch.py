"""Batch worker pool limits."""

from __future__ import annotations

from typing import Final

from parcelscope.domain.batch import BatchLimits

from .env import optional_int_env_var

CONCURRENCY_ENV: Final[str] = "PARCELSCOPE_BATCH_CONCURRENCY"
DEFAULT_BATCH_LIMITS: Final[BatchLimits] = BatchLimits()


def get_batch_limits() -> BatchLimits:
    """Return pool limits, letting ``PARCELSCOPE_BATCH_CONCURRENCY`` move the default."""

    concurrency = optional_int_env_var(CONCURRENCY_ENV)
    if concurrency is None:
        return DEFAULT_BATCH_LIMITS
    return BatchLimits(default_concurrency=DEFAULT_BATCH_LIMITS.clamp_concurrency(concurrency))
