"""Archive reading and reproducible-build comparison."""

from .compare import (
    AmbiguousRoot,
    ArchiveComparator,
    ComparisonError,
    ComparisonResult,
    ContentMismatch,
    CountMismatch,
    EntryOutcome,
    InvalidPropertyList,
    PathMismatch,
    TolerancePolicy,
    is_loadable_binary,
)
from .edits import EditScript, compute_edit_script
from .reader import ArchiveEntry, ArchiveOpenError, ArchiveReader

__all__ = [
    "AmbiguousRoot",
    "ArchiveComparator",
    "ArchiveEntry",
    "ArchiveOpenError",
    "ArchiveReader",
    "ComparisonError",
    "ComparisonResult",
    "ContentMismatch",
    "CountMismatch",
    "EditScript",
    "EntryOutcome",
    "InvalidPropertyList",
    "PathMismatch",
    "TolerancePolicy",
    "compute_edit_script",
    "is_loadable_binary",
]
