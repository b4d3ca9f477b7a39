"""Fairseal attestation records: building, entitlements and publishing."""

from .builder import FairsealBuilder, sha256_file
from .entitlements import (
    AppEntitlement,
    AppPermission,
    EntitlementError,
    check_entitlements,
    permissions_bitset,
)
from .publisher import FairsealPublisher
from .seal import Fairseal, FairsealAsset, FairsealError, FairsealFormatError
from .signature import SignatureStripper
from .tint import HexColor, resolve_tint

__all__ = [
    "AppEntitlement",
    "AppPermission",
    "EntitlementError",
    "Fairseal",
    "FairsealAsset",
    "FairsealBuilder",
    "FairsealError",
    "FairsealFormatError",
    "FairsealPublisher",
    "HexColor",
    "SignatureStripper",
    "check_entitlements",
    "permissions_bitset",
    "resolve_tint",
    "sha256_file",
]
