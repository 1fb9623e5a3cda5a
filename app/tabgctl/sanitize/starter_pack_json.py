"""Normalizer for the JSON flavour of the StarterPack config.

Older StarterPack builds store their settings in TheStarterPack.json,
where the setup tool may write item lists and loadouts as compact
strings instead of the arrays the plugin deserializes. This module
converts those strings and clamps the numeric settings.

String formats:
- ItemsGiven: "id:ammo,id:ammo,..."
- Loadouts: slots separated by "/", each slot "primary,secondary,melee,throwable"
  where every item is "id:ammo" and "0" or an empty string means none.
"""

import json
import logging
import os
import re
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from tabgctl.core.errors import SanitizeError

logger = logging.getLogger(__name__)

INT_FIELDS = (
    "MaxPlayers",
    "WarmupTimeSeconds",
    "CircleSpeed",
    "TeamSize",
    "LobbyTimer",
    "RingShrinkTime",
)
MISSING_DEFAULTS = {"MaxPlayers": 10}
LOADOUT_SLOTS = ("Primary", "Secondary", "Melee", "Throwable")

_INT_RE = re.compile(r"^\s*[+-]?\d+\s*$")


def _to_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INT_RE.match(value):
        return int(value)
    return None


def _is_empty(text: str) -> bool:
    return not text.strip() or text == "0"


def parse_item(text: str) -> dict[str, int]:
    """Parse "id:ammo" into an item object. Invalid or zero ids give {}."""
    item: dict[str, int] = {}
    if _is_empty(text):
        return item
    parts = text.split(":")
    item_id = _to_int(parts[0])
    if item_id is None or item_id == 0:
        return item
    item["Item"] = item_id
    if len(parts) > 1:
        ammo = _to_int(parts[1])
        if ammo is not None and ammo > 0:
            item["Ammo"] = ammo
    return item


def parse_item_list(text: str) -> list[dict[str, int]]:
    """Parse a comma-separated item list, dropping unparseable entries."""
    return [item for part in text.split(",") if part.strip() and (item := parse_item(part))]


def parse_loadouts(text: str) -> list[dict[str, dict[str, int]]]:
    """Parse slash-separated loadout slots."""
    loadouts: list[dict[str, dict[str, int]]] = []
    if _is_empty(text):
        return loadouts
    for slot_text in text.split("/"):
        slot: dict[str, dict[str, int]] = {}
        if not _is_empty(slot_text):
            for name, item_text in zip(LOADOUT_SLOTS, slot_text.split(","), strict=False):
                if not _is_empty(item_text):
                    slot[name] = parse_item(item_text)
        loadouts.append(slot)
    return loadouts


def _fix_list_field(cfg: dict[str, Any], key: str, changes: list[str]) -> None:
    value = cfg.get(key)
    if value is None:
        cfg[key] = []
        changes.append(f"{key}: missing, set to empty list")
    elif isinstance(value, str):
        cfg[key] = parse_item_list(value) if key == "ItemsGiven" else parse_loadouts(value)
        changes.append(f"{key}: converted from string")
    elif not isinstance(value, list):
        cfg[key] = []
        changes.append(f"{key}: invalid type, set to empty list")


def _sanitize_int_field(obj: dict[str, Any], key: str, changes: list[str]) -> None:
    if obj.get(key) is None:
        return
    number = _to_int(obj[key])
    if number is None:
        logger.warning("Removing invalid field %s=%r", key, obj[key])
        del obj[key]
        changes.append(f"{key}: invalid value removed")
    elif number != obj[key] or number < 0:
        obj[key] = max(0, number)
        changes.append(f"{key}: normalized")


def sanitize_config(cfg: dict[str, Any]) -> list[str]:
    """Normalize a parsed StarterPack config in place.

    Args:
        cfg: Parsed JSON object.

    Returns:
        Human-readable descriptions of every change.
    """
    changes: list[str] = []
    _fix_list_field(cfg, "ItemsGiven", changes)
    _fix_list_field(cfg, "Loadouts", changes)

    for key in INT_FIELDS:
        if key not in cfg:
            cfg[key] = MISSING_DEFAULTS.get(key, 0)
            changes.append(f"{key}: missing, set to {cfg[key]}")
            continue
        number = _to_int(cfg[key])
        if number is None:
            logger.warning("%s (%r) is not a valid number, setting to 0", key, cfg[key])
            cfg[key] = 0
            changes.append(f"{key}: invalid, set to 0")
        elif number < 0 or cfg[key] != number:
            cfg[key] = max(0, number)
            changes.append(f"{key}: normalized to {cfg[key]}")

    for entry in cfg["ItemsGiven"]:
        if isinstance(entry, dict):
            _sanitize_int_field(entry, "Item", changes)
            _sanitize_int_field(entry, "Ammo", changes)

    for slot in cfg["Loadouts"]:
        if not isinstance(slot, dict):
            continue
        for name in LOADOUT_SLOTS:
            item = slot.get(name)
            if isinstance(item, dict):
                _sanitize_int_field(item, "Item", changes)
                _sanitize_int_field(item, "Ammo", changes)
            elif item is not None and _to_int(item) is None:
                del slot[name]
                changes.append(f"Loadouts.{name}: invalid item removed")

    return changes


def sanitize_starter_pack_json(path: Path) -> list[str]:
    """Normalize TheStarterPack.json in place.

    Args:
        path: Path to the JSON config.

    Returns:
        Descriptions of the changes made. Empty if nothing changed.

    Raises:
        SanitizeError: If the file is missing, not a JSON object, or cannot be written.
    """
    try:
        cfg = json.loads(path.read_text(encoding="utf-8-sig"))
    except FileNotFoundError as e:
        raise SanitizeError(f"Config file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise SanitizeError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise SanitizeError(f"Failed to read {path}: {e}") from e

    if not isinstance(cfg, dict):
        raise SanitizeError(f"Expected a JSON object in {path}")

    changes = sanitize_config(cfg)
    if not changes:
        logger.info("%s already clean", path)
        return changes

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            json.dump(cfg, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(str(tmp_path), str(path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise SanitizeError(f"Failed to write {path}: {e}") from e

    logger.info("Sanitized %s (%d change(s))", path, len(changes))
    return changes
