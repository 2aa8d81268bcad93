"""Wallet account interfaces.

WalletAccountReadOnly exposes balance, quote and receipt queries for an
address. WalletAccount binds one signer and adds the side-effecting
operations. Chain adapters implement the underscore hooks; the public
methods validate input first so a malformed request never reaches a node.
"""

import logging
from typing import Any, Optional, Union

from walletkit.amounts import (
    BaseUnitAmount,
    OptionsModel,
    ResultModel,
    parse_options,
    require_base_units,
)
from walletkit.config import WalletConfig
from walletkit.errors import (
    InvalidArgumentError,
    MaxFeeExceededError,
    NotImplementedWalletError,
    SignerDisposedError,
)
from walletkit.signing.base import Signer

logger = logging.getLogger(__name__)


class Transaction(OptionsModel):
    """Native token transfer."""

    to: str
    value: BaseUnitAmount


class TransferOptions(OptionsModel):
    """Token transfer request."""

    token: str
    recipient: str
    amount: BaseUnitAmount


class FeeQuote(ResultModel):
    """Estimated cost of a transaction, in the chain's base unit."""

    fee: int


class TransactionResult(ResultModel):
    hash: str
    fee: int


class TransferResult(ResultModel):
    hash: str
    fee: int


class WalletAccountReadOnly:
    """Read-only account bound to an address."""

    def __init__(self, address: Optional[str] = None):
        self.__address = address

    @property
    def _address(self) -> Optional[str]:
        return self.__address

    async def get_address(self) -> str:
        if self.__address is None:
            raise InvalidArgumentError("Account has no address")
        return self.__address

    async def get_balance(self) -> int:
        """Native token balance in base units."""
        raise NotImplementedWalletError("get_balance()")

    async def get_token_balance(self, token_address: str) -> int:
        """Token balance in base units."""
        raise NotImplementedWalletError("get_token_balance(token_address)")

    async def quote_send_transaction(self, tx: Union[Transaction, dict]) -> FeeQuote:
        """Quote the cost of sending a native transaction."""
        tx = self._parse_transaction(tx)
        return await self._quote_send_transaction(tx)

    async def quote_transfer(self, options: Union[TransferOptions, dict]) -> FeeQuote:
        """Quote the cost of a token transfer."""
        options = self._parse_transfer(options)
        return await self._quote_transfer(options)

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Any]:
        """Return the receipt, or None if the transaction is not yet included."""
        raise NotImplementedWalletError("get_transaction_receipt(tx_hash)")

    async def _quote_send_transaction(self, tx: Transaction) -> FeeQuote:
        raise NotImplementedWalletError("quote_send_transaction(tx)")

    async def _quote_transfer(self, options: TransferOptions) -> FeeQuote:
        raise NotImplementedWalletError("quote_transfer(options)")

    @staticmethod
    def _parse_transaction(tx: Union[Transaction, dict]) -> Transaction:
        tx = parse_options(Transaction, tx)
        return tx.model_copy(update={"value": require_base_units("value", tx.value)})

    @staticmethod
    def _parse_transfer(options: Union[TransferOptions, dict]) -> TransferOptions:
        options = parse_options(TransferOptions, options)
        return options.model_copy(update={"amount": require_base_units("amount", options.amount)})


class WalletAccount(WalletAccountReadOnly):
    """Account owning (or sharing) one signer.

    Disposing the account disposes its signer.
    """

    def __init__(self, signer: Signer, config: Optional[WalletConfig] = None):
        if signer is None:
            raise InvalidArgumentError("A signer is required")
        super().__init__(address=None)
        self._signer = signer
        self._config = config or WalletConfig()

    @property
    def signer(self) -> Signer:
        self._check_active()
        return self._signer

    @property
    def is_active(self) -> bool:
        return self._signer.is_active

    @property
    def index(self) -> Optional[int]:
        return self._signer.index

    @property
    def path(self) -> Optional[str]:
        return self._signer.path

    async def get_address(self) -> str:
        self._check_active()
        return await self._signer.get_address()

    async def send_transaction(self, tx: Union[Transaction, dict]) -> TransactionResult:
        """Send native tokens."""
        self._check_active()
        tx = self._parse_transaction(tx)
        return await self._send_transaction(tx)

    async def transfer(self, options: Union[TransferOptions, dict]) -> TransferResult:
        """Transfer tokens, refusing when the quoted fee exceeds transfer_max_fee."""
        self._check_active()
        options = self._parse_transfer(options)

        max_fee = self._config.transfer_max_fee
        if max_fee is not None:
            quote = await self._quote_transfer(options)
            if quote.fee > max_fee:
                logger.warning(
                    f"Transfer of {options.amount} {options.token} refused: fee {quote.fee} > {max_fee}"
                )
                raise MaxFeeExceededError("transfer", quote.fee, max_fee)

        return await self._transfer(options)

    async def to_read_only(self) -> WalletAccountReadOnly:
        """Read-only view of this account's address."""
        raise NotImplementedWalletError("to_read_only()")

    def dispose(self) -> None:
        """Dispose the underlying signer."""
        if self._signer.is_active:
            self._signer.dispose()

    async def _send_transaction(self, tx: Transaction) -> TransactionResult:
        raise NotImplementedWalletError("send_transaction(tx)")

    async def _transfer(self, options: TransferOptions) -> TransferResult:
        raise NotImplementedWalletError("transfer(options)")

    def _check_active(self) -> None:
        if not self._signer.is_active:
            raise SignerDisposedError(f"Account at {self._signer.path} has been disposed")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(path={self._signer.path})"
