"""Exception hierarchy for wallet managers, signers and protocols.

Validation errors (InvalidArgumentError and subclasses) are raised before any
adapter hook runs, so a malformed request never produces partial state.
"""

from typing import Optional


class WalletError(Exception):
    """Base class for all walletkit errors."""
    pass


class NotImplementedWalletError(WalletError, NotImplementedError):
    """Raised when an abstract operation is invoked on the base layer."""

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Method '{method}' must be implemented by a chain or provider adapter")


class InvalidArgumentError(WalletError, ValueError):
    """Raised when the caller supplies malformed input."""
    pass


class InvalidDerivationPathError(InvalidArgumentError):
    """Raised when a derivation path cannot be parsed."""
    pass


class InvalidAmountSpecificationError(InvalidArgumentError):
    """Raised when a request does not pin exactly one valid amount."""
    pass


class ReadOnlyAccountError(InvalidArgumentError):
    """Raised when an execute operation is attempted with a read-only account."""
    pass


class SignerNotFoundError(WalletError, LookupError):
    """Raised when a signer name is not registered."""

    def __init__(self, signer_name: str):
        self.signer_name = signer_name
        super().__init__(f"No signer registered under name '{signer_name}'")


class SignerDisposedError(WalletError):
    """Raised when a disposed signer or account is used."""
    pass


class DisposedError(WalletError):
    """Raised when a disposed wallet manager is used."""
    pass


class MaxFeeExceededError(WalletError):
    """Raised when a quoted fee exceeds the configured maximum."""

    def __init__(self, operation: str, fee: int, max_fee: int):
        self.operation = operation
        self.fee = fee
        self.max_fee = max_fee
        super().__init__(
            f"Exceeded maximum fee cost for {operation} operation: {fee} > {max_fee}"
        )


class ProviderError(WalletError):
    """Opaque error surfaced by a chain or provider adapter."""

    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(f"[{provider}] {message}" if provider else message)
