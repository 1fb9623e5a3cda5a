"""Whitelist-driven reset of a server installation.

This module provides the whitelist rule model, the whitelist file
maintenance, and the two-pass reset engine.
"""

from tabgctl.reset.engine import (
    DeletionFailure,
    DeletionReport,
    EntryClass,
    ResetPlan,
    WhitelistResetEngine,
    classify,
)
from tabgctl.reset.rules import (
    CORE_DATA_DIRNAME,
    DEFAULT_RULES,
    PRESETS_DIRNAME,
    REQUIRED_RULES,
    WHITELIST_FILENAME,
    WhitelistFile,
    WhitelistRule,
    ensure_whitelist,
    load_rules,
    parse_rules,
)

__all__ = [
    "CORE_DATA_DIRNAME",
    "DEFAULT_RULES",
    "PRESETS_DIRNAME",
    "REQUIRED_RULES",
    "WHITELIST_FILENAME",
    "DeletionFailure",
    "DeletionReport",
    "EntryClass",
    "ResetPlan",
    "WhitelistFile",
    "WhitelistResetEngine",
    "WhitelistRule",
    "classify",
    "ensure_whitelist",
    "load_rules",
    "parse_rules",
]
