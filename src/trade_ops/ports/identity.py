"""
Identity Port: who signs, and whether signing is possible.

The two questions are answered by separate methods with separate return types.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from trade_ops.domain.identity import Address, AuthStatus


class IdentityPort(ABC):
    """Access to the signer credential loaded for this session."""

    @abstractmethod
    def signer_address(self) -> Address | None:
        """
        Account the session signs for (or observes, in a read-only session).

        Returns None when neither a key nor an account address is configured.
        """
        ...

    @abstractmethod
    def auth_status(self) -> AuthStatus:
        """Whether orders can be signed in this session."""
        ...
