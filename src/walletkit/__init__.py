"""walletkit - multi-chain wallet contract layer.

Signer/account lifecycle management and quote-then-execute protocols
(fiat on/off-ramp, token swaps, transfers) for chain adapters to implement.
"""

__version__ = "0.1.0"

from walletkit.amounts import ExactIn, ExactOut, resolve_amount
from walletkit.errors import (
    DisposedError,
    InvalidAmountSpecificationError,
    InvalidArgumentError,
    InvalidDerivationPathError,
    MaxFeeExceededError,
    NotImplementedWalletError,
    ProviderError,
    ReadOnlyAccountError,
    SignerDisposedError,
    SignerNotFoundError,
    WalletError,
)
from walletkit.signing import Bip32Signer, Signer
from walletkit.wallet import FeeRates, WalletAccount, WalletAccountReadOnly, WalletManager

__all__ = [
    "WalletManager",
    "WalletAccount",
    "WalletAccountReadOnly",
    "FeeRates",
    "Signer",
    "Bip32Signer",
    "ExactIn",
    "ExactOut",
    "resolve_amount",
    "WalletError",
    "NotImplementedWalletError",
    "InvalidArgumentError",
    "InvalidDerivationPathError",
    "InvalidAmountSpecificationError",
    "ReadOnlyAccountError",
    "SignerNotFoundError",
    "SignerDisposedError",
    "DisposedError",
    "MaxFeeExceededError",
    "ProviderError",
]
