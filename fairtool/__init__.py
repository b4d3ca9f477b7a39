"""Fair-ground catalog curation and reproducible-build attestation."""

__version__ = "0.4.0"
