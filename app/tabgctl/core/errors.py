"""Exception hierarchy for installation runs.

Every failure that should abort an install derives from InstallError.
Cancellation is deliberately a separate hierarchy: it is a clean abort
and maps to its own exit code.
"""


class InstallError(Exception):
    """Base exception for fatal installation errors."""


class InstallValidationError(InstallError):
    """Raised when an install request is malformed."""


class FetchError(InstallError):
    """Raised when release metadata or an asset cannot be retrieved."""


class ReleaseNotFoundError(FetchError):
    """Raised when the requested release does not exist."""


class AssetNotFoundError(FetchError):
    """Raised when a release exists but has no asset with the requested name."""


class ExtractionError(InstallError):
    """Raised when an archive is corrupt or cannot be unpacked."""


class FileSystemError(InstallError):
    """Raised when a required file cannot be written or found."""


class CoreDataMissingError(FileSystemError):
    """Raised when the game's core data directory is gone after a reset."""


class ProcessError(InstallError):
    """Raised when an external process cannot be started."""


class SanitizeError(InstallError):
    """Raised when a configuration file cannot be sanitized."""


class CancellationRequested(Exception):
    """Raised when the user cancels a running install."""
