"""
Decides whether a local file needs to be uploaded to a container.

The decision compares the local file with the blob of the same name (if any)
by size only. Two different files with the same byte length are treated as
identical and the upload is skipped unless it is forced.
"""
import enum
import logging
import os
from dataclasses import dataclass
from typing import Iterable, Optional

from .exceptions import LocalFileNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileDescriptor:
    """Name and size of either a local file or a remote blob."""
    name: str
    size: int

    def __post_init__(self):
        if self.size < 0:
            raise ValueError(f"File size must be non-negative, got {self.size} for '{self.name}'")


class UploadReason(enum.Enum):
    NOT_PRESENT_REMOTELY = 'not_present_remotely'
    SIZE_MISMATCH = 'size_mismatch'
    FORCED_OVERRIDE = 'forced_override'
    SKIPPED_IDENTICAL = 'skipped_identical'


@dataclass(frozen=True)
class UploadDecision:
    should_upload: bool
    reason: UploadReason


class UploadDecider:
    """
    Pure ship/skip decision for a single file.

    The decider never performs the upload itself; the caller runs the
    transfer when `should_upload` is true.
    """

    def __init__(self, logger_obj: Optional[logging.Logger] = None):
        self.logger = logger_obj or logger

    def decide(self, local: FileDescriptor, remote: Optional[FileDescriptor],
               force: bool = False) -> UploadDecision:
        """
        Args:
            local: The file on disk.
            remote: The blob with the same name, or None if there is none.
            force: Upload even when the blob looks identical.
        """
        if remote is None:
            decision = UploadDecision(True, UploadReason.NOT_PRESENT_REMOTELY)
        elif remote.size == local.size and not force:
            decision = UploadDecision(False, UploadReason.SKIPPED_IDENTICAL)
        elif remote.size != local.size:
            decision = UploadDecision(True, UploadReason.SIZE_MISMATCH)
        else:
            decision = UploadDecision(True, UploadReason.FORCED_OVERRIDE)

        remote_size = remote.size if remote is not None else None
        self.logger.info(
            f"Upload decision for {local.name}: "
            f"{'upload' if decision.should_upload else 'skip'} "
            f"({decision.reason.value}, local={local.size} bytes, remote={remote_size}, force={force})"
        )
        return decision


def stat_local_file(path: str) -> FileDescriptor:
    """
    Returns the name and size of a local file.

    Raises:
        LocalFileNotFound: `path` does not exist or is not a regular file.
    """
    if not os.path.isfile(path):
        logger.error(f"Local file not found: {path}")
        raise LocalFileNotFound(path)
    return FileDescriptor(name=os.path.basename(path), size=os.stat(path).st_size)


def find_remote_blob(listing: Iterable[FileDescriptor], blob_name: str) -> Optional[FileDescriptor]:
    """Picks the blob named exactly `blob_name` out of a container listing."""
    for blob in listing:
        if blob.name == blob_name:
            return blob
    return None
