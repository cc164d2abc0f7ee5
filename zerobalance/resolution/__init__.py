"""Canonicalization package."""

from zerobalance.resolution.canonicalizer import canonicalize, resolve_transaction_type

__all__ = ["canonicalize", "resolve_transaction_type"]
