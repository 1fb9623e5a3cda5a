"""Whitelist-driven reset of a server installation.

The reset runs in two passes. The first pass walks the whole tree and
classifies every entry against the whitelist without touching anything.
The second pass deletes files, then directories, each ordered by
descending path length so that no directory is removed before its
contents. Individual failures are recorded and the batch continues.
"""

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath

from tabgctl.core.errors import CoreDataMissingError, FileSystemError
from tabgctl.reset.rules import (
    CORE_DATA_DIRNAME,
    PRESETS_DIRNAME,
    WHITELIST_FILENAME,
    WhitelistRule,
    normalize_path,
)

logger = logging.getLogger(__name__)


class EntryClass(str, Enum):
    """Classification of a path under the server root."""

    KEEP = "keep"
    DELETE = "delete"


def classify(rel_path: str, rules: Sequence[WhitelistRule]) -> EntryClass:
    """Classify a path relative to the server root.

    Pure function: the result depends only on the path text and the rules.
    The Presets tree and the whitelist file itself are always kept.

    Args:
        rel_path: Path relative to the server root, either separator style.
        rules: Whitelist rules to match against.

    Returns:
        EntryClass.KEEP or EntryClass.DELETE.
    """
    rel = normalize_path(rel_path)
    folded = rel.casefold()
    presets = PRESETS_DIRNAME.casefold()
    if folded == presets or folded.startswith(presets + "/"):
        return EntryClass.KEEP
    if PurePosixPath(folded).name == WHITELIST_FILENAME.casefold():
        return EntryClass.KEEP
    if any(rule.matches(rel) for rule in rules):
        return EntryClass.KEEP
    return EntryClass.DELETE


@dataclass(frozen=True, slots=True)
class ResetPlan:
    """Complete classification of a server tree, computed before deletion.

    All paths are relative to the root and use forward slashes.

    Attributes:
        root: Server root the plan was computed for.
        kept: Entries that survive the reset.
        files: Files (and symlinks) to delete, longest path first.
        directories: Directories to delete, longest path first.
    """

    root: Path
    kept: tuple[str, ...]
    files: tuple[str, ...]
    directories: tuple[str, ...]

    @property
    def deletions(self) -> tuple[str, ...]:
        """All entries to delete in execution order."""
        return self.files + self.directories


@dataclass(frozen=True, slots=True)
class DeletionFailure:
    """A single entry that could not be deleted."""

    path: str
    error: str


@dataclass(frozen=True, slots=True)
class DeletionReport:
    """Result of a reset run.

    Attributes:
        kept: Entries left in place.
        deleted: Entries removed (or that would be removed in dry-run).
        failed: Entries whose deletion raised an error.
        dry_run: Whether the filesystem was left untouched.
    """

    kept: tuple[str, ...] = ()
    deleted: tuple[str, ...] = ()
    failed: tuple[DeletionFailure, ...] = field(default=())
    dry_run: bool = False

    @property
    def success(self) -> bool:
        """Whether every planned deletion succeeded."""
        return not self.failed


def _ancestors(rel: str) -> list[str]:
    parts = rel.split("/")
    return ["/".join(parts[:i]) for i in range(1, len(parts))]


class WhitelistResetEngine:
    """Deletes everything under a server root that the whitelist does not keep.

    Attributes:
        _dry_run: If True, compute and report the reset without deleting.
        _core_data_dir: Directory that must survive every reset.
    """

    def __init__(self, dry_run: bool = False, core_data_dir: str = CORE_DATA_DIRNAME) -> None:
        self._dry_run = dry_run
        self._core_data_dir = core_data_dir

    def plan(self, root: Path, rules: Sequence[WhitelistRule]) -> ResetPlan:
        """Classify every entry under root.

        Symbolic links are never followed; a link to a directory is
        deleted as a link. A directory that contains a kept entry is
        itself kept so that removing it cannot take kept content along.

        Raises:
            FileSystemError: If root is not a readable directory.
        """
        if not root.is_dir():
            msg = f"Server directory does not exist: {root}"
            raise FileSystemError(msg)

        files: list[str] = []
        directories: list[str] = []

        def _on_error(error: OSError) -> None:
            logger.warning("Cannot read %s: %s", error.filename, error.strerror)

        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error, followlinks=False):
            base = Path(dirpath)
            for name in dirnames:
                rel = (base / name).relative_to(root).as_posix()
                if (base / name).is_symlink():
                    files.append(rel)
                else:
                    directories.append(rel)
            for name in filenames:
                files.append((base / name).relative_to(root).as_posix())

        kept: set[str] = set()
        delete_files: list[str] = []
        delete_dirs: list[str] = []
        for rel in files:
            if classify(rel, rules) is EntryClass.KEEP:
                kept.add(rel)
            else:
                delete_files.append(rel)
        for rel in directories:
            if classify(rel, rules) is EntryClass.KEEP:
                kept.add(rel)
            else:
                delete_dirs.append(rel)

        retained = {ancestor for rel in kept for ancestor in _ancestors(rel)}
        for rel in delete_dirs:
            if rel in retained:
                logger.debug("Keeping %s: contains whitelisted entries", rel)
        kept |= retained & set(delete_dirs)
        delete_dirs = [rel for rel in delete_dirs if rel not in retained]

        return ResetPlan(
            root=root,
            kept=tuple(sorted(kept)),
            files=tuple(sorted(delete_files, key=len, reverse=True)),
            directories=tuple(sorted(delete_dirs, key=len, reverse=True)),
        )

    def reset(self, root: Path, rules: Sequence[WhitelistRule]) -> DeletionReport:
        """Reset root to the whitelisted file set.

        Args:
            root: Server root directory.
            rules: Whitelist rules.

        Returns:
            DeletionReport listing kept, deleted and failed entries.

        Raises:
            FileSystemError: If root is not a directory.
            CoreDataMissingError: If the core data directory is gone afterwards.
        """
        plan = self.plan(root, rules)
        logger.info(
            "Reset plan for %s: %d kept, %d to delete",
            root,
            len(plan.kept),
            len(plan.deletions),
        )

        if self._dry_run:
            for rel in plan.deletions:
                logger.info("Dry-run: would delete %s", rel)
            return DeletionReport(kept=plan.kept, deleted=plan.deletions, dry_run=True)

        deleted: list[str] = []
        failed: list[DeletionFailure] = []

        for rel in plan.files:
            try:
                self._remove_file(root / rel)
            except OSError as e:
                logger.warning("Could not delete file %s: %s", rel, e)
                failed.append(DeletionFailure(path=rel, error=str(e)))
            else:
                logger.debug("Deleted file %s", rel)
                deleted.append(rel)

        for rel in plan.directories:
            try:
                self._remove_dir(root / rel)
            except OSError as e:
                logger.warning("Could not delete directory %s: %s", rel, e)
                failed.append(DeletionFailure(path=rel, error=str(e)))
            else:
                logger.debug("Deleted directory %s", rel)
                deleted.append(rel)

        self._check_core_data(root)
        logger.info("Reset complete: %d deleted, %d failed", len(deleted), len(failed))
        return DeletionReport(kept=plan.kept, deleted=tuple(deleted), failed=tuple(failed))

    def _check_core_data(self, root: Path) -> None:
        core = root / self._core_data_dir
        if not core.is_dir():
            msg = f"{self._core_data_dir} directory is missing after reset: {core}"
            logger.critical(msg)
            raise CoreDataMissingError(msg)
        logger.info("Sanity check passed: %s is present", self._core_data_dir)

    def _remove_file(self, path: Path) -> None:
        os.unlink(path)

    def _remove_dir(self, path: Path) -> None:
        # Non-recursive; fails if anything inside survived the file pass
        os.rmdir(path)
