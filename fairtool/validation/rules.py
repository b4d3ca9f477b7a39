"""Allow/deny pattern rules and organization/repository invariants."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Pattern, Sequence

from ..hub.nodes import CommitInfo, OrganizationInfo

ORIGIN_ORG = "appfair"


class RuleViolation(ValueError):
    """Raised when a value is rejected by a validation rule."""


class InvalidNameError(RuleViolation):
    def __init__(self, name: Optional[str]) -> None:
        super().__init__(f'The app name "{name or ""}" is not accepted')
        self.name = name


class InvalidEmailError(RuleViolation):
    def __init__(self, email: Optional[str]) -> None:
        super().__init__(f'The email address "{email or ""}" is not accepted')
        self.email = email


class CommitVerificationError(RuleViolation):
    def __init__(self, oid: str, reason: str) -> None:
        super().__init__(f"Commit {oid or '<unknown>'} is not authorized: {reason}")
        self.oid = oid
        self.reason = reason


class RepositoryInvalidError(RuntimeError):
    """Raised when an organization or repository violates one or more invariants."""

    def __init__(self, failures: "ValidationFailure", org: str, repo: str) -> None:
        super().__init__(f'The repository "{org}/{repo}" is invalid because: {failures.describe()}')
        self.failures = failures
        self.org = org
        self.repo = repo


class ValidationFailure(enum.IntFlag):
    """Reasons an organization or repository is not eligible."""

    NONE = 0
    IS_PRIVATE = 1 << 0
    IS_ARCHIVED = 1 << 1
    NO_ISSUES = 1 << 2
    NO_DISCUSSIONS = 1 << 3
    INVALID_LICENSE = 1 << 4
    IS_DISABLED = 1 << 5
    NOT_VERIFIED = 1 << 6
    INVALID_EMAIL = 1 << 7
    INVALID_NAME = 1 << 8
    OWNER_NOT_ORGANIZATION = 1 << 9
    MISMATCHED_EMAIL = 1 << 10

    def reasons(self) -> List[str]:
        return [message for flag, message in _FAILURE_MESSAGES if flag in self]

    def describe(self) -> str:
        return ",".join(self.reasons())


_FAILURE_MESSAGES = (
    (ValidationFailure.IS_PRIVATE, "Repository must be public"),
    (ValidationFailure.IS_ARCHIVED, "Repository must not be archived"),
    (ValidationFailure.NO_ISSUES, "Repository must have issues enabled"),
    (ValidationFailure.NO_DISCUSSIONS, "Repository must have discussions enabled"),
    (ValidationFailure.INVALID_LICENSE, "Repository must use an approved license"),
    (ValidationFailure.IS_DISABLED, "Repository must not be disabled"),
    (ValidationFailure.NOT_VERIFIED, "Organization must be verified"),
    (
        ValidationFailure.INVALID_EMAIL,
        "The e-mail for the organization must be public and match the approved list",
    ),
    (
        ValidationFailure.INVALID_NAME,
        "The name of the organization must consist of words separated by hyphens",
    ),
    (
        ValidationFailure.OWNER_NOT_ORGANIZATION,
        "The owner of the repository must be an organization and not an individual user",
    ),
    (
        ValidationFailure.MISMATCHED_EMAIL,
        "The e-mail for the commit must match the public e-mail of the organization",
    ),
)


@dataclass(frozen=True)
class AppNameValidation:
    """Structural rule for app names: hyphen-separated alphabetic words."""

    max_word_length: int = 12
    separator: str = "-"

    def validate(self, name: str) -> None:
        words = name.split(self.separator)
        for word in words:
            if not word or len(word) > self.max_word_length:
                raise InvalidNameError(name)
            if not (word.isascii() and word.isalpha()):
                raise InvalidNameError(name)


def _compile(patterns: Iterable[str]) -> List[Pattern[str]]:
    return [re.compile(pattern, re.IGNORECASE) for pattern in patterns]


@dataclass
class ValidationRules:
    """Allow/deny pattern lists compiled once and reused for every value.

    Patterns are case-insensitive and may match anywhere in the value. A
    non-empty allow list requires at least one match; any deny match rejects.
    """

    allow_name: Sequence[str] = ()
    deny_name: Sequence[str] = ()
    allow_from: Sequence[str] = ()
    deny_from: Sequence[str] = ()
    allow_license: Sequence[str] = ()
    origin_org: str = ORIGIN_ORG
    name_structure: AppNameValidation = field(default_factory=AppNameValidation)

    def __post_init__(self) -> None:
        self._allow_name = _compile(self.allow_name)
        self._deny_name = _compile(self.deny_name)
        self._allow_from = _compile(self.allow_from)
        self._deny_from = _compile(self.deny_from)

    def validate_name(self, name: Optional[str]) -> None:
        if name is None or not _permitted(name, self._allow_name, self._deny_name):
            raise InvalidNameError(name)

    def validate_email(self, email: Optional[str]) -> None:
        if email is None or not _permitted(email, self._allow_from, self._deny_from):
            raise InvalidEmailError(email)

    def is_name_permitted(self, name: Optional[str]) -> bool:
        try:
            self.validate_name(name)
        except RuleViolation:
            return False
        return True

    def is_email_permitted(self, email: Optional[str]) -> bool:
        try:
            self.validate_email(email)
        except RuleViolation:
            return False
        return True

    def validate_app_name(self, name: Optional[str]) -> None:
        """Apply both the structural name rule and the pattern lists."""
        if name is None:
            raise InvalidNameError(name)
        self.name_structure.validate(name)
        self.validate_name(name)

    def validate_organization(self, org: OrganizationInfo) -> ValidationFailure:
        """Evaluate every invariant and return the set of violated rules."""
        repo = org.repository
        is_origin = org.login == self.origin_org
        failures = ValidationFailure.NONE

        if not is_origin:
            try:
                self.validate_app_name(org.login)
            except RuleViolation:
                failures |= ValidationFailure.INVALID_NAME
            if not self.is_email_permitted(org.email):
                failures |= ValidationFailure.INVALID_EMAIL
            if not repo.has_issues_enabled:
                failures |= ValidationFailure.NO_ISSUES

        if not org.is_organization:
            failures |= ValidationFailure.OWNER_NOT_ORGANIZATION
        if repo.is_archived:
            failures |= ValidationFailure.IS_ARCHIVED
        if repo.is_disabled:
            failures |= ValidationFailure.IS_DISABLED
        if repo.is_private:
            failures |= ValidationFailure.IS_PRIVATE
        # Discussions have no enabled flag; disabled repositories report no categories.
        if repo.discussion_category_count <= 0:
            failures |= ValidationFailure.NO_DISCUSSIONS
        if self.allow_license and (repo.license_spdx_id or "none") not in self.allow_license:
            failures |= ValidationFailure.INVALID_LICENSE

        return failures

    def authorize_commit(self, commit: CommitInfo) -> str:
        """Return ``"Name <email>"`` for a commit with a valid signature."""
        signature = commit.signature
        if signature is None:
            raise CommitVerificationError(commit.oid, "no verification information")
        if signature.state != "VALID" or not signature.is_valid:
            raise CommitVerificationError(commit.oid, f"signature state is {signature.state or 'empty'}")
        if not commit.author_name:
            raise CommitVerificationError(commit.oid, "the author was empty")
        if not commit.author_email:
            raise InvalidEmailError(commit.author_email)
        self.validate_email(commit.author_email)
        return f"{commit.author_name} <{commit.author_email}>"


def _permitted(value: str, allow: Sequence[Pattern[str]], deny: Sequence[Pattern[str]]) -> bool:
    if allow and not any(pattern.search(value) for pattern in allow):
        return False
    if any(pattern.search(value) for pattern in deny):
        return False
    return True


__all__ = [
    "ORIGIN_ORG",
    "AppNameValidation",
    "CommitVerificationError",
    "InvalidEmailError",
    "InvalidNameError",
    "RepositoryInvalidError",
    "RuleViolation",
    "ValidationFailure",
    "ValidationRules",
]
