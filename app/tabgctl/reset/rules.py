"""Whitelist rules describing the vanilla server file set.

The whitelist lives in the server root as VanillaFiles.txt, one rule per
line. A rule names either a single file (matched exactly) or a
directory (matched together with everything beneath it). All matching
ignores case and treats backslashes as path separators.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from tabgctl.core.errors import FileSystemError

logger = logging.getLogger(__name__)

WHITELIST_FILENAME = "VanillaFiles.txt"
PRESETS_DIRNAME = "Presets"
CORE_DATA_DIRNAME = "TABG_Data"

WHITELIST_HEADER = "# Auto-generated default vanilla whitelist by tabgctl"

DEFAULT_RULES: tuple[str, ...] = (
    "TABG.exe",
    "TABG_Data",
    "UnityPlayer.dll",
    "UnityCrashHandler64.exe",
    "steam_appid.txt",
    "doorstop_config.ini",
    "libdoorstop.so",
    "run_bepinex.cmd",
    "run_bepinex.sh",
    "MonoBleedingEdge",
    "TheStarterPack.json",
    "game_settings.txt",
    "winhttp.dll",
)

# Entries every whitelist must carry, whether synthesized or user-provided
REQUIRED_RULES: tuple[str, ...] = (
    CORE_DATA_DIRNAME,
    "MonoBleedingEdge",
    "doorstop_config.ini",
    "TheStarterPack.json",
    "game_settings.txt",
    "winhttp.dll",
)


def normalize_path(path: str) -> str:
    """Normalize a relative path for rule matching."""
    return path.replace("\\", "/").strip("/")


@dataclass(frozen=True, slots=True)
class WhitelistRule:
    """A single case-insensitive keep rule.

    Attributes:
        pattern: Normalized rule text without trailing separators.
        is_directory: Whether the rule keeps a whole directory subtree.
    """

    pattern: str
    is_directory: bool

    def __post_init__(self) -> None:
        """Validate the rule pattern."""
        if not self.pattern:
            msg = "Rule pattern cannot be empty"
            raise ValueError(msg)

    @classmethod
    def parse(cls, text: str) -> "WhitelistRule | None":
        """Parse one whitelist line.

        A rule is a directory rule if it ends in a path separator or
        contains no '.' at all.

        Returns:
            The parsed rule, or None for blank and comment lines.
        """
        line = text.strip()
        if not line or line.startswith("#"):
            return None
        raw = line.replace("\\", "/")
        pattern = normalize_path(raw)
        if not pattern:
            return None
        is_directory = raw.endswith("/") or "." not in pattern
        return cls(pattern=pattern, is_directory=is_directory)

    def matches(self, rel_path: str) -> bool:
        """Check whether a path relative to the server root is kept by this rule."""
        candidate = normalize_path(rel_path).casefold()
        pattern = self.pattern.casefold()
        if candidate == pattern:
            return True
        return self.is_directory and candidate.startswith(pattern + "/")


def parse_rules(lines: Iterable[str]) -> list[WhitelistRule]:
    """Parse whitelist lines into rules, dropping duplicates.

    Args:
        lines: Raw lines from a whitelist file.

    Returns:
        Rules in file order, first occurrence wins.
    """
    rules: list[WhitelistRule] = []
    seen: set[str] = set()
    for line in lines:
        rule = WhitelistRule.parse(line)
        if rule is None:
            continue
        key = rule.pattern.casefold()
        if key in seen:
            continue
        seen.add(key)
        rules.append(rule)
    return rules


@dataclass(frozen=True, slots=True)
class WhitelistFile:
    """Outcome of ensuring the whitelist file.

    Attributes:
        path: Location of the whitelist file.
        rules: Effective rules, including any added required entries.
        created: Whether the file was synthesized from defaults.
        added: Required entries that had to be appended.
        persisted: Whether the file on disk reflects the rules.
    """

    path: Path
    rules: tuple[WhitelistRule, ...]
    created: bool = False
    added: tuple[str, ...] = ()
    persisted: bool = True


def _dedupe_lines(lines: list[str]) -> list[str]:
    result: list[str] = []
    seen: set[str] = set()
    for line in lines:
        key = line.strip().casefold()
        if key and key in seen:
            continue
        seen.add(key)
        result.append(line)
    return result


def ensure_whitelist(server_dir: Path, persist: bool = True) -> WhitelistFile:
    """Load the whitelist, creating it or appending required entries as needed.

    A missing file is synthesized from DEFAULT_RULES. Required entries are
    appended only if absent (compared case-insensitively), so running this
    repeatedly leaves the file unchanged. The file is written only if it was
    created or modified; a failed write is logged and the in-memory rules
    are still returned.

    Args:
        server_dir: Server root directory.
        persist: If False, compute the effective rules without touching disk.

    Returns:
        WhitelistFile describing the effective rule set.

    Raises:
        FileSystemError: If an existing whitelist is not valid UTF-8 text.
    """
    path = server_dir / WHITELIST_FILENAME
    created = not path.exists()

    if created:
        logger.info("%s missing, generating default whitelist", WHITELIST_FILENAME)
        lines = [WHITELIST_HEADER, *DEFAULT_RULES]
    else:
        try:
            lines = path.read_text(encoding="utf-8-sig").splitlines()
        except UnicodeDecodeError as e:
            raise FileSystemError(f"{path} is not valid UTF-8 text: {e}") from e
        except OSError as e:
            logger.warning("Could not read %s, using defaults: %s", path, e)
            lines = [WHITELIST_HEADER, *DEFAULT_RULES]
            created = True

    present = {normalize_path(line.strip()).casefold() for line in lines}
    added: list[str] = []
    for entry in REQUIRED_RULES:
        if normalize_path(entry).casefold() not in present:
            lines.append(entry)
            added.append(entry)
            logger.info("Added missing whitelist entry '%s'", entry)

    persisted = not (created or added)
    if (created or added) and persist:
        try:
            path.write_text("\n".join(_dedupe_lines(lines)) + "\n", encoding="utf-8")
            action = "created" if created else "updated"
            logger.info("%s %s at %s", WHITELIST_FILENAME, action, path)
            persisted = True
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e)

    return WhitelistFile(
        path=path,
        rules=tuple(parse_rules(lines)),
        created=created,
        added=tuple(added),
        persisted=persisted,
    )


def load_rules(path: Path) -> list[WhitelistRule]:
    """Read and parse a whitelist file without modifying it.

    Raises:
        FileSystemError: If the file cannot be read or is not UTF-8 text.
    """
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise FileSystemError(f"Failed to read {path}: {e}") from e
    return parse_rules(text.splitlines())
