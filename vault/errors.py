"""
Errors raised by the vault core.

Raising aborts the whole call; callers rely on nothing having been mutated.
Degenerate inputs (zero balances, zero shares, an empty LP) are not errors.
"""


class VaultError(Exception):
    """Base class for vault errors."""


class Unauthorized(VaultError):
    """The caller is not allowed to perform this call."""


class InvalidConfiguration(VaultError, ValueError):
    """A configuration value is out of its allowed range."""


class InvalidSwapCallback(VaultError):
    """The swap payment callback does not match the pending swap."""


class SettlementError(VaultError):
    """A swap finished without settling its payment obligation."""
