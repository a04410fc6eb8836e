"""Mintgate — capped collection issuance with Merkle allowlists."""

__version__ = "0.1.0"
