"""SessionVault - dual-token session issuance and revocation service."""

__version__ = "0.1.0"
