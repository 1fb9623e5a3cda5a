"""Sanitizers for the configuration files the StarterPack plugin reads."""

from tabgctl.sanitize.starter_pack_json import sanitize_config, sanitize_starter_pack_json
from tabgctl.sanitize.text import SanitizeResult, sanitize_file, sanitize_line, sanitize_text

__all__ = [
    "SanitizeResult",
    "sanitize_config",
    "sanitize_file",
    "sanitize_line",
    "sanitize_starter_pack_json",
    "sanitize_text",
]
