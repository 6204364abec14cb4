"""Stable constants shared across the adapter layer."""

from __future__ import annotations

from typing import Final

# Schema versions for persisted contracts.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Hierarchy bucket for children without a known parent.
UNASSIGNED_BUCKET: Final[str] = "unassigned"

# Pricing defaults.
DEFAULT_CURRENCY: Final[str] = "€"
DEFAULT_BILLING_FREQUENCY: Final[str] = "monthly"

# Invoicing defaults.
DEFAULT_PAYMENT_TERM_DAYS: Final[int] = 30

# Progress and score bounds.
PROGRESS_MIN: Final[int] = 0
PROGRESS_MAX: Final[int] = 100
COMPETITOR_SCORE_MIN: Final[int] = 1
COMPETITOR_SCORE_MAX: Final[int] = 5
COMPETITOR_SCORE_DEFAULT: Final[int] = 3

# Timeline windows.
MILESTONE_LEAD_MONTHS: Final[int] = 1
TASK_LEAD_DAYS: Final[int] = 7

# Fallback timeframe for trends stored as bare strings.
DEFAULT_TREND_TIMEFRAME: Final[str] = "Medium term"

__all__ = [
    "COMPETITOR_SCORE_DEFAULT",
    "COMPETITOR_SCORE_MAX",
    "COMPETITOR_SCORE_MIN",
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_BILLING_FREQUENCY",
    "DEFAULT_CURRENCY",
    "DEFAULT_PAYMENT_TERM_DAYS",
    "DEFAULT_TREND_TIMEFRAME",
    "MILESTONE_LEAD_MONTHS",
    "PROGRESS_MAX",
    "PROGRESS_MIN",
    "TASK_LEAD_DAYS",
    "UNASSIGNED_BUCKET",
]
