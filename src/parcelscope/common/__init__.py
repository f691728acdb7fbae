"""Shared helpers for parcelscope."""

from __future__ import annotations

from .logging import configure_logging

__all__ = ["configure_logging"]
