"""
Account identity and acting-address resolution.

Identity (who signs) and authentication status (whether a signing key is
loaded) are separate types. An `Address` can only be built from a string that
is a well-formed account identifier, so a boolean such as the result of an
"is authenticated" check can never end up being used as an address.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from trade_ops.domain.errors import InvalidAddressError

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


class AuthStatus(str, Enum):
    """Whether the session can sign orders."""

    AUTHENTICATED = "AUTHENTICATED"
    READ_ONLY = "READ_ONLY"

    @property
    def can_sign(self) -> bool:
        return self == AuthStatus.AUTHENTICATED


@dataclass(frozen=True, slots=True)
class Address:
    """Well-formed account identifier (`0x` + 40 hex digits, lower-cased)."""

    value: str

    def __init__(self, value: Any):
        if isinstance(value, Address):
            value = value.value
        # bool is checked first: it must never be coerced into an identifier.
        if isinstance(value, bool) or not isinstance(value, str):
            raise InvalidAddressError(
                f"Address must be a string, got {type(value).__name__}",
                details={"value_type": type(value).__name__},
            )
        normalized = value.strip().lower()
        if not _ADDRESS_RE.match(normalized):
            raise InvalidAddressError(
                f"Malformed address: {value!r}",
                details={"value": value},
            )
        object.__setattr__(self, "value", normalized)

    @classmethod
    def parse_optional(cls, value: Any) -> Address | None:
        """Parse an optional address; None and blank strings mean absent."""
        if value is None:
            return None
        if isinstance(value, str) and not value.strip():
            return None
        return cls(value)

    @property
    def short(self) -> str:
        return f"{self.value[:6]}..{self.value[-4:]}"

    def __str__(self) -> str:
        return self.value


def resolve_acting_address(
    signer_address: Address | str | None,
    configured_vault_address: Address | str | None,
) -> Address:
    """
    Return the address whose positions are read and to which orders are attributed.

    The configured vault wins when present; otherwise the signer's own wallet.

    Raises:
        InvalidAddressError: vault present but malformed, signer malformed,
            or no signer and no vault.
    """
    vault = Address.parse_optional(configured_vault_address)
    if vault is not None:
        return vault

    signer = Address.parse_optional(signer_address)
    if signer is None:
        raise InvalidAddressError("No signer address and no vault address configured")
    return signer
