"""Line-based sanitizer for the StarterPack key=value config.

The StarterPack plugin writes TheStarterPack.txt on its first run and
its parser rejects several things the setup tool happily writes back:
inline comments, trailing commas, and empty values for a handful of
keys. Sanitizing rewrites only those details and leaves every other
value alone. Applying it twice gives the same text as applying it once.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from tabgctl.core.errors import SanitizeError

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "//"
ZERO_DEFAULT_KEYS = frozenset({"KillsToWin", "ValidSpawnPoints"})
COMMENT_OUT_WHEN_EMPTY_KEYS = frozenset({"RingSettings"})
LOADOUTS_KEY = "loadouts"


@dataclass(frozen=True, slots=True)
class SanitizeResult:
    """Summary of a sanitized file.

    Attributes:
        path: The file that was sanitized.
        changed_lines: Number of lines whose text changed.
        commented_keys: Keys whose lines were commented out.
    """

    path: Path
    changed_lines: int
    commented_keys: tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        """Whether the file content changed."""
        return self.changed_lines > 0


def _clean_value(value: str) -> str:
    comment = value.find(COMMENT_PREFIX)
    if comment >= 0:
        value = value[:comment]
    return value.strip().rstrip(", \t")


def sanitize_line(line: str) -> str:
    """Sanitize a single config line.

    Blank lines, comment lines and lines without a key before '=' pass
    through unchanged. For everything else the text up to and including
    the first '=' is kept verbatim and the value is cleaned:

    - inline '//' comments, surrounding whitespace and trailing commas go;
    - an empty KillsToWin or ValidSpawnPoints becomes 0;
    - an empty RingSettings comments out the whole line;
    - a non-empty Loadouts value always ends with '/'.

    Args:
        line: One line without its line terminator.

    Returns:
        The sanitized line.
    """
    if not line.strip() or line.lstrip().startswith(COMMENT_PREFIX):
        return line
    eq = line.find("=")
    if eq <= 0:
        return line

    before_eq = line[: eq + 1]
    key = line[:eq].strip()
    value = _clean_value(line[eq + 1 :])

    if not value:
        if key in ZERO_DEFAULT_KEYS:
            value = "0"
        elif key in COMMENT_OUT_WHEN_EMPTY_KEYS:
            return f"{COMMENT_PREFIX} {line}"

    if key.casefold() == LOADOUTS_KEY and value and not value.endswith("/"):
        value += "/"

    return before_eq + value


def sanitize_text(text: str) -> str:
    """Sanitize a whole config document.

    Lines are rejoined with '\\n' and the result ends with a newline
    unless it is empty.
    """
    lines = [sanitize_line(line) for line in text.splitlines()]
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def sanitize_file(path: Path) -> SanitizeResult:
    """Sanitize a config file in place.

    The file is only rewritten when its content changes.

    Args:
        path: Config file to sanitize.

    Returns:
        SanitizeResult describing the changes.

    Raises:
        SanitizeError: If the file is missing or cannot be read or written.
    """
    try:
        original = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as e:
        raise SanitizeError(f"Config file not found: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise SanitizeError(f"Failed to read {path}: {e}") from e

    old_lines = original.splitlines()
    new_lines = [sanitize_line(line) for line in old_lines]
    changed = sum(1 for old, new in zip(old_lines, new_lines, strict=True) if old != new)
    commented = tuple(
        old.split("=", 1)[0].strip()
        for old, new in zip(old_lines, new_lines, strict=True)
        if old != new and new.startswith(COMMENT_PREFIX)
    )

    sanitized = sanitize_text(original)
    if sanitized != original:
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as f:
                f.write(sanitized)
        except OSError as e:
            raise SanitizeError(f"Failed to write {path}: {e}") from e
        logger.info("Sanitized %s (%d line(s) changed)", path, changed)
    else:
        logger.info("%s already clean", path)

    for key in commented:
        logger.warning("Commented out empty '%s' in %s", key, path.name)

    return SanitizeResult(path=path, changed_lines=changed, commented_keys=commented)
