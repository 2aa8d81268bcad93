"""Dry-run chain adapter for simulated wallets (no node, no broadcast).

Balances and receipts live in an in-memory ledger. Fees are a fixed gas
amount times the configured normal fee rate. Transaction hashes are
deterministic per ledger.
"""

import hashlib
import logging
import threading
from typing import Any, Optional, Union

from walletkit.config import WalletConfig, get_settings
from walletkit.errors import InvalidArgumentError, ProviderError
from walletkit.signing.base import Signer
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

logger = logging.getLogger(__name__)

PROVIDER_NAME = "dry_run"

NATIVE = "native"

# Simulated gas usage
NATIVE_TRANSFER_GAS = 21_000
TOKEN_TRANSFER_GAS = 65_000


class DryRunLedger:
    """In-memory balances and receipts shared by dry-run accounts."""

    def __init__(self):
        self._balances: dict[tuple[str, str], int] = {}
        self._receipts: dict[str, dict] = {}
        self._nonce = 0
        self._lock = threading.Lock()

    def balance(self, address: str, token: str = NATIVE) -> int:
        return self._balances.get((address, token), 0)

    def credit(self, address: str, amount: int, token: str = NATIVE) -> None:
        if amount < 0:
            raise InvalidArgumentError(f"Cannot credit a negative amount: {amount}")
        with self._lock:
            key = (address, token)
            self._balances[key] = self._balances.get(key, 0) + amount

    def debit(self, address: str, amount: int, token: str = NATIVE) -> None:
        with self._lock:
            self._debit_locked(address, amount, token)

    def transfer(
        self,
        sender: str,
        recipient: str,
        amount: int,
        fee: int,
        token: str = NATIVE,
    ) -> str:
        """Move amount (plus fee in native units) and record a receipt.

        Returns:
            Transaction hash

        Raises:
            ProviderError: If the sender cannot cover amount and fee
        """
        with self._lock:
            native_needed = fee + (amount if token == NATIVE else 0)
            if self._balances.get((sender, NATIVE), 0) < native_needed:
                raise ProviderError(
                    f"Insufficient native balance: need {native_needed}", provider=PROVIDER_NAME
                )
            if token != NATIVE and self._balances.get((sender, token), 0) < amount:
                raise ProviderError(
                    f"Insufficient {token} balance: need {amount}", provider=PROVIDER_NAME
                )

            self._debit_locked(sender, native_needed, NATIVE)
            if token != NATIVE:
                self._debit_locked(sender, amount, token)
            key = (recipient, token)
            self._balances[key] = self._balances.get(key, 0) + amount

            return self._record_locked(sender, recipient, amount, fee, token)

    def swap(
        self,
        sender: str,
        recipient: str,
        token_in: str,
        amount_in: int,
        token_out: str,
        amount_out: int,
        fee: int,
    ) -> str:
        """Exchange token_in for token_out in one step and record a receipt.

        Balances are checked and moved under a single lock hold, so a failed
        swap leaves every balance untouched.

        Raises:
            ProviderError: If the sender cannot cover amount_in and fee
        """
        with self._lock:
            native_needed = fee + (amount_in if token_in == NATIVE else 0)
            if token_in != NATIVE and self._balances.get((sender, token_in), 0) < amount_in:
                raise ProviderError(
                    f"Insufficient {token_in} balance: need {amount_in}", provider=PROVIDER_NAME
                )
            if self._balances.get((sender, NATIVE), 0) < native_needed:
                raise ProviderError(
                    f"Insufficient native balance for gas: need {native_needed}", provider=PROVIDER_NAME
                )

            self._debit_locked(sender, native_needed, NATIVE)
            if token_in != NATIVE:
                self._debit_locked(sender, amount_in, token_in)
            key = (recipient, token_out)
            self._balances[key] = self._balances.get(key, 0) + amount_out

            return self._record_locked(sender, recipient, amount_in, fee, token_in)

    def record(self, sender: str, recipient: str, amount: int, fee: int, token: str = NATIVE) -> str:
        """Record a receipt without moving balances."""
        with self._lock:
            return self._record_locked(sender, recipient, amount, fee, token)

    def receipt(self, tx_hash: str) -> Optional[dict]:
        return self._receipts.get(tx_hash)

    def _debit_locked(self, address: str, amount: int, token: str) -> None:
        key = (address, token)
        current = self._balances.get(key, 0)
        if current < amount:
            raise ProviderError(
                f"Insufficient {token} balance: have {current}, need {amount}", provider=PROVIDER_NAME
            )
        self._balances[key] = current - amount

    def _record_locked(self, sender: str, recipient: str, amount: int, fee: int, token: str) -> str:
        self._nonce += 1
        tx_data = f"{sender}:{recipient}:{token}:{amount}:{fee}:{self._nonce}"
        tx_hash = f"0x{hashlib.sha256(tx_data.encode()).hexdigest()}"
        self._receipts[tx_hash] = {
            "hash": tx_hash,
            "from": sender,
            "to": recipient,
            "token": token,
            "value": amount,
            "fee": fee,
            "nonce": self._nonce,
            "status": 1,
            "simulated": True,
        }
        return tx_hash


class _DryRunQueries:
    """Read operations shared by the read-only and signing dry-run accounts."""

    _ledger: DryRunLedger
    _fee_rates: FeeRates

    async def get_balance(self) -> int:
        return self._ledger.balance(await self.get_address())

    async def get_token_balance(self, token_address: str) -> int:
        return self._ledger.balance(await self.get_address(), token_address)

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Any]:
        return self._ledger.receipt(tx_hash)

    async def _quote_send_transaction(self, tx: Transaction) -> FeeQuote:
        return FeeQuote(fee=NATIVE_TRANSFER_GAS * self._fee_rates.normal)

    async def _quote_transfer(self, options: TransferOptions) -> FeeQuote:
        return FeeQuote(fee=TOKEN_TRANSFER_GAS * self._fee_rates.normal)


class DryRunWalletAccountReadOnly(_DryRunQueries, WalletAccountReadOnly):
    """Read-only dry-run account."""

    def __init__(self, address: str, ledger: DryRunLedger, fee_rates: FeeRates):
        super().__init__(address)
        self._ledger = ledger
        self._fee_rates = fee_rates


class DryRunWalletAccount(_DryRunQueries, WalletAccount):
    """Signing dry-run account."""

    def __init__(
        self,
        signer: Signer,
        ledger: DryRunLedger,
        fee_rates: FeeRates,
        config: Optional[WalletConfig] = None,
    ):
        super().__init__(signer, config)
        self._ledger = ledger
        self._fee_rates = fee_rates

    @property
    def ledger(self) -> DryRunLedger:
        return self._ledger

    async def credit(self, amount: int, token: str = NATIVE) -> None:
        """Fund this account (test helper)."""
        self._ledger.credit(await self.get_address(), amount, token)

    async def debit(self, amount: int, token: str = NATIVE) -> None:
        self._ledger.debit(await self.get_address(), amount, token)

    async def to_read_only(self) -> DryRunWalletAccountReadOnly:
        return DryRunWalletAccountReadOnly(await self.get_address(), self._ledger, self._fee_rates)

    async def _send_transaction(self, tx: Transaction) -> TransactionResult:
        quote = await self._quote_send_transaction(tx)
        sender = await self.get_address()
        tx_hash = self._ledger.transfer(sender, tx.to, tx.value, quote.fee)
        logger.info(f"[DRY RUN] Sent {tx.value} native from {sender} to {tx.to}: {tx_hash}")
        return TransactionResult(hash=tx_hash, fee=quote.fee)

    async def _transfer(self, options: TransferOptions) -> TransferResult:
        quote = await self._quote_transfer(options)
        sender = await self.get_address()
        tx_hash = self._ledger.transfer(
            sender, options.recipient, options.amount, quote.fee, token=options.token
        )
        logger.info(
            f"[DRY RUN] Transferred {options.amount} {options.token} from {sender} "
            f"to {options.recipient}: {tx_hash}"
        )
        return TransferResult(hash=tx_hash, fee=quote.fee)


class DryRunWalletManager(WalletManager):
    """Wallet manager for simulated chains.

    Accounts follow the BIP-44 account-level convention <index>'/0/0.
    """

    def __init__(
        self,
        signer: Signer,
        config: Union[WalletConfig, dict, None] = None,
        ledger: Optional[DryRunLedger] = None,
        fee_rates: Optional[FeeRates] = None,
    ):
        super().__init__(signer, config)
        self._ledger = ledger or DryRunLedger()

        if fee_rates is None:
            settings = get_settings()
            fee_rates = FeeRates(
                normal=settings.dry_run_fee_rate_normal,
                fast=settings.dry_run_fee_rate_fast,
            )
        self._fee_rates = fee_rates

    @property
    def ledger(self) -> DryRunLedger:
        return self._ledger

    def get_account_path(self, index: int) -> str:
        return f"{index}'/0/0"

    async def get_fee_rates(self) -> FeeRates:
        self._check_not_disposed()
        return self._fee_rates

    def _create_account(self, signer: Signer) -> DryRunWalletAccount:
        return DryRunWalletAccount(signer, self._ledger, self._fee_rates, self._config)
