"""Validation rules for names, addresses and repositories."""

from .rules import (
    ORIGIN_ORG,
    AppNameValidation,
    CommitVerificationError,
    InvalidEmailError,
    InvalidNameError,
    RepositoryInvalidError,
    RuleViolation,
    ValidationFailure,
    ValidationRules,
)

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
