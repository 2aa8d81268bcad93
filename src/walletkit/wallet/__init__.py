"""Wallet managers and accounts."""

from walletkit.wallet.account import (
    FeeQuote,
    Transaction,
    TransactionResult,
    TransferOptions,
    TransferResult,
    WalletAccount,
    WalletAccountReadOnly,
)
from walletkit.wallet.manager import FeeRates, WalletManager

__all__ = [
    "WalletManager",
    "FeeRates",
    "WalletAccount",
    "WalletAccountReadOnly",
    "Transaction",
    "TransactionResult",
    "TransferOptions",
    "TransferResult",
    "FeeQuote",
]
