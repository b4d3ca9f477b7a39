"""Entry-by-entry equivalence checks between trusted and untrusted archives."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Set

from .edits import EditScript, compute_edit_script
from .reader import ArchiveEntry
from ..logging import get_logger
from ..plist import PropertyList, PropertyListError

_LOGGER = get_logger("archive.compare")

APP_SUFFIX = ".app"

# Code signature artefacts differ between signing identities; they are dropped
# from both sides before anything is counted.
SIGNATURE_SUFFIXES = (
    "/CodeSignature",
    "/CodeResources",
    "/CodeDirectory",
    "/CodeRequirements-1",
)

EXECUTABLE_MAGIC = (
    bytes.fromhex("feedface"),
    bytes.fromhex("feedfacf"),
    bytes.fromhex("cafebabe"),
    bytes.fromhex("cffaedfe0c000001"),
)

SignatureStripper = Callable[[bytes], bytes]


class ComparisonError(RuntimeError):
    """Base class for archive comparison failures."""


class CountMismatch(ComparisonError):
    def __init__(self, trusted_count: int, untrusted_count: int) -> None:
        super().__init__(
            "Trusted and untrusted artifact content counts do not match "
            f"({trusted_count} vs. {untrusted_count})"
        )
        self.trusted_count = trusted_count
        self.untrusted_count = untrusted_count


class AmbiguousRoot(ComparisonError):
    def __init__(self, roots: Set[str]) -> None:
        super().__init__(f"Invalid root path in archive: {sorted(roots)}")
        self.roots = roots


class PathMismatch(ComparisonError):
    def __init__(self, index: int, trusted_path: str, untrusted_path: str) -> None:
        super().__init__(
            "Trusted and untrusted artifact content paths do not match: "
            f"{trusted_path} vs. {untrusted_path}"
        )
        self.index = index
        self.trusted_path = trusted_path
        self.untrusted_path = untrusted_path


class InvalidPropertyList(ComparisonError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Unreadable property list at {path}: {reason}")
        self.path = path
        self.reason = reason


class ContentMismatch(ComparisonError):
    def __init__(self, path: str, script: EditScript, threshold: Optional[int], report_limit: int = 10) -> None:
        super().__init__(
            f"Trusted and untrusted artifact content mismatch at {path}: "
            f"{script.describe(report_limit)} and totalChanges {script.total_changes} "
            f"beyond permitted threshold: {threshold or 0}"
        )
        self.path = path
        self.total_changes = script.total_changes
        self.insertion_ranges = script.insertion_ranges(report_limit)
        self.removal_ranges = script.removal_ranges(report_limit)
        self.threshold = threshold


@dataclass(frozen=True)
class TolerancePolicy:
    """Rules for which byte-level differences are acceptable."""

    threshold: Optional[int] = None
    skip_suffixes: Sequence[str] = ("Contents/Resources/Assets.car", ".nib")
    skip_parent_suffixes: Sequence[str] = (".storyboardc",)
    report_limit: int = 10
    # Edit distance searched when no threshold bounds it; only used for reporting.
    report_max_changes: int = 2048

    def is_skipped(self, path: str) -> bool:
        if any(path.endswith(suffix) for suffix in self.skip_suffixes):
            return True
        parts = [part for part in path.split("/") if part]
        if len(parts) >= 2:
            parent = parts[-2]
            return any(parent.endswith(suffix) for suffix in self.skip_parent_suffixes)
        return False

    @property
    def max_changes(self) -> int:
        if self.threshold is not None:
            return max(self.threshold, 0)
        return self.report_max_changes


@dataclass(frozen=True)
class EntryOutcome:
    """Per-entry verdict: identical, skipped, stripped, tolerated, or failed."""

    path: str
    status: str
    total_changes: int = 0


@dataclass
class ComparisonResult:
    app_name: str
    core_size: Optional[int] = None
    info_plist: Optional[PropertyList] = None
    outcomes: List[EntryOutcome] = field(default_factory=list)
    failures: List[ContentMismatch] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.failures

    def raise_for_status(self) -> "ComparisonResult":
        if self.failures:
            raise self.failures[0]
        return self


class ArchiveComparator:
    """Decides whether two archives represent the same logical build."""

    def __init__(self, strip_signature: SignatureStripper | None = None) -> None:
        self._strip_signature = strip_signature

    def compare(
        self,
        trusted: Sequence[ArchiveEntry],
        untrusted: Sequence[ArchiveEntry],
        policy: TolerancePolicy | None = None,
    ) -> ComparisonResult:
        policy = policy or TolerancePolicy()
        trusted_entries = _filter_signatures(trusted)
        untrusted_entries = _filter_signatures(untrusted)

        if len(trusted_entries) != len(untrusted_entries):
            raise CountMismatch(len(trusted_entries), len(untrusted_entries))

        app_name = _app_name(trusted_entries)
        executables = {
            f"{app_name}.app/Contents/MacOS/{app_name}",
            f"Payload/{app_name}.app/{app_name}",
        }
        info_paths = {
            f"{app_name}.app/Contents/Info.plist",
            f"Payload/{app_name}.app/Info.plist",
        }

        result = ComparisonResult(app_name=app_name)
        for index, (trusted_entry, untrusted_entry) in enumerate(zip(trusted_entries, untrusted_entries)):
            if trusted_entry.path != untrusted_entry.path:
                raise PathMismatch(index, trusted_entry.path, untrusted_entry.path)

            path = trusted_entry.path
            is_main_binary = path in executables
            if is_main_binary:
                result.core_size = trusted_entry.uncompressed_size
            if path in info_paths:
                try:
                    result.info_plist = PropertyList.from_bytes(trusted_entry.read(), source=path)
                except PropertyListError as exc:
                    raise InvalidPropertyList(path, str(exc)) from exc

            outcome = self._compare_entry(trusted_entry, untrusted_entry, is_main_binary, policy, result)
            result.outcomes.append(outcome)

        return result

    def _compare_entry(
        self,
        trusted_entry: ArchiveEntry,
        untrusted_entry: ArchiveEntry,
        is_main_binary: bool,
        policy: TolerancePolicy,
        result: ComparisonResult,
    ) -> EntryOutcome:
        path = trusted_entry.path
        if trusted_entry.checksum == untrusted_entry.checksum:
            return EntryOutcome(path, "identical")

        _LOGGER.info("Checking mismatched entry: %s", path)
        if policy.is_skipped(path):
            _LOGGER.debug("Skipping non-deterministic entry: %s", path)
            return EntryOutcome(path, "skipped")

        trusted_bytes = trusted_entry.read()
        untrusted_bytes = untrusted_entry.read()
        is_app_binary = is_main_binary or is_loadable_binary(trusted_bytes)

        if is_app_binary and self._strip_signature is not None and trusted_bytes != untrusted_bytes:
            _LOGGER.info("Stripping code signatures: %s", path)
            trusted_bytes = self._strip_signature(trusted_bytes)
            untrusted_bytes = self._strip_signature(untrusted_bytes)
            if trusted_bytes == untrusted_bytes:
                return EntryOutcome(path, "stripped")

        if trusted_bytes == untrusted_bytes:
            return EntryOutcome(path, "identical")

        _LOGGER.info("Scanning payload differences: %s", path)
        script = compute_edit_script(untrusted_bytes, trusted_bytes, max_changes=policy.max_changes)
        total = script.total_changes
        if is_app_binary and policy.threshold is not None and total < policy.threshold:
            _LOGGER.info("Tolerating %d differences in %s", total, path)
            return EntryOutcome(path, "tolerated", total)

        failure = ContentMismatch(path, script, policy.threshold, policy.report_limit)
        _LOGGER.debug("%s", failure)
        result.failures.append(failure)
        return EntryOutcome(path, "failed", total)


def is_loadable_binary(data: bytes) -> bool:
    """Return True when ``data`` starts with a known executable magic number."""
    return any(data.startswith(magic) for magic in EXECUTABLE_MAGIC)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _filter_signatures(entries: Sequence[ArchiveEntry]) -> List[ArchiveEntry]:
    return [
        entry
        for entry in entries
        if not any(entry.path.rstrip("/").endswith(suffix) for suffix in SIGNATURE_SUFFIXES)
    ]


def _app_name(entries: Sequence[ArchiveEntry]) -> str:
    roots: Set[str] = set()
    for entry in entries:
        parts = [part for part in entry.path.split("/") if part]
        while parts and parts[0] == "Payload":
            parts.pop(0)
        if parts:
            roots.add(parts[0])

    if len(roots) != 1:
        raise AmbiguousRoot(roots)
    root = next(iter(roots))
    if not root.endswith(APP_SUFFIX) or root == APP_SUFFIX:
        raise AmbiguousRoot(roots)
    return root[: -len(APP_SUFFIX)]


__all__ = [
    "AmbiguousRoot",
    "ArchiveComparator",
    "ComparisonError",
    "ComparisonResult",
    "ContentMismatch",
    "CountMismatch",
    "EntryOutcome",
    "InvalidPropertyList",
    "PathMismatch",
    "SignatureStripper",
    "TolerancePolicy",
    "is_loadable_binary",
]
