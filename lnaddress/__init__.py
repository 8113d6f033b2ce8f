"""
Lightning address gateway.

Resolves ``user@domain`` identifiers into the lnurlp and keysend discovery
documents published by the address's domain.
"""

__all__ = []
