"""
devinde-tracker — package root

File: src/devinde_tracker/__init__.py

Purpose
- Adapter and reconciliation layer of the DevIndé business-plan tracker.

Import boundary rules
- No side effects at import time (no config loading, no logging setup).
- Heavy submodules are imported by callers, not re-exported here.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
