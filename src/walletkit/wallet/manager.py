"""Wallet manager base class.

Orchestrates the signer registry and account derivation for one chain:

    manager = DryRunWalletManager(Bip32Signer.from_seed_phrase(phrase))
    account = await manager.get_account(0)          # path 0'/0/0
    other = await manager.get_account_by_path("0'/0/7")
    manager.dispose()                                # keys wiped, manager terminal

Chain adapters supply get_account_path(), _create_account() and
get_fee_rates(); calling those on this class raises NotImplementedWalletError.
"""

import logging
import threading
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from walletkit.config import WalletConfig, get_settings
from walletkit.errors import (
    DisposedError,
    InvalidArgumentError,
    NotImplementedWalletError,
    SignerNotFoundError,
)
from walletkit.seed import generate_seed_phrase, is_valid_seed_phrase
from walletkit.signing.base import Signer
from walletkit.signing.local import normalize_relative_path
from walletkit.signing.registry import DEFAULT_SIGNER_NAME, Registry, SignerRegistry
from walletkit.wallet.account import WalletAccount

logger = logging.getLogger(__name__)


class FeeRates(BaseModel):
    """Fee rates in the chain's base unit."""

    model_config = ConfigDict(frozen=True)

    normal: int = Field(..., ge=0, description="Fee rate for normal priority")
    fast: int = Field(..., ge=0, description="Fee rate for fast priority")


class WalletManager:
    """Base wallet manager.

    Owns every signer registered with it and every account it created;
    dispose() releases all of them and makes the manager unusable.
    """

    def __init__(self, signer: Signer, config: Union[WalletConfig, dict, None] = None):
        """Create a wallet manager.

        Args:
            signer: Default signer, registered as 'default'
            config: Wallet configuration for chain adapters

        Raises:
            InvalidArgumentError: If signer is None or config is malformed
        """
        self._signers: SignerRegistry[Signer] = SignerRegistry(signer)
        self._accounts: Registry[WalletAccount] = Registry(kind="account")
        self._config = self._load_config(config)
        self._lifecycle_lock = threading.Lock()
        self._disposed = False

    @staticmethod
    def get_random_seed_phrase() -> str:
        """Return a random BIP-39 seed phrase (12 words unless configured otherwise)."""
        return generate_seed_phrase(get_settings().seed_phrase_words)

    @staticmethod
    def is_valid_seed_phrase(seed_phrase: Any) -> bool:
        """Check if a seed phrase is valid. Never raises."""
        return is_valid_seed_phrase(seed_phrase)

    @property
    def config(self) -> WalletConfig:
        return self._config

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def create_signer(self, signer_name: str, signer: Signer) -> None:
        """Register a named signer. An existing name is overwritten.

        Raises:
            DisposedError: If the manager was disposed
            InvalidArgumentError: If the name is empty or signer is None
        """
        with self._lifecycle_lock:
            self._check_not_disposed()
            self._signers.set(signer_name, signer)
        logger.info(f"Signer '{signer_name}' registered")

    def get_signer(self, signer_name: str = DEFAULT_SIGNER_NAME) -> Optional[Signer]:
        """Return the named signer, or None if it is not registered."""
        self._check_not_disposed()
        return self._signers.get(signer_name)

    async def get_account(self, index: int = 0, signer_name: str = DEFAULT_SIGNER_NAME) -> WalletAccount:
        """Return the account at a BIP-44 account index.

        Args:
            index: Account index (default: 0)
            signer_name: Name of the signer to derive from

        Raises:
            DisposedError: If the manager was disposed
            InvalidArgumentError: If index is not a non-negative int
            SignerNotFoundError: If signer_name is not registered
            NotImplementedWalletError: If the chain does not define a path convention
        """
        self._check_not_disposed()
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise InvalidArgumentError(f"Account index must be a non-negative integer, got {index!r}")

        self._resolve_signer(signer_name)
        return await self.get_account_by_path(self.get_account_path(index), signer_name)

    async def get_account_by_path(self, path: str, signer_name: str = DEFAULT_SIGNER_NAME) -> WalletAccount:
        """Return the account at a relative derivation path (e.g. "0'/0/1").

        The same (signer, path) pair returns the same account until disposal.

        Raises:
            DisposedError: If the manager was disposed
            SignerNotFoundError: If signer_name is not registered
            InvalidDerivationPathError: If the signer rejects the path
        """
        self._check_not_disposed()
        signer = self._resolve_signer(signer_name)

        key = f"{signer_name}:{normalize_relative_path(path)}"
        account = self._accounts.get(key)
        if account is not None and account.is_active:
            return account

        child = signer.derive(path, self._config.model_dump(exclude_none=True))
        try:
            account = self._create_account(child)
        except Exception:
            child.dispose()
            raise

        with self._lifecycle_lock:
            if self._disposed:
                account.dispose()
                raise DisposedError("Wallet manager was disposed while deriving an account")
            # Another caller may have registered the same key while we derived
            existing = self._accounts.get(key)
            if existing is not None and existing.is_active:
                account.dispose()
                return existing
            self._accounts.set(key, account)

        logger.debug(f"Created account {key}")
        return account

    def get_account_path(self, index: int) -> str:
        """Relative derivation path for an account index."""
        raise NotImplementedWalletError("get_account_path(index)")

    async def get_fee_rates(self) -> FeeRates:
        """Return the current normal and fast fee rates in base units."""
        self._check_not_disposed()
        raise NotImplementedWalletError("get_fee_rates()")

    def dispose(self) -> None:
        """Dispose every signer and account, erasing key material from memory.

        Calling dispose() again is a no-op.
        """
        with self._lifecycle_lock:
            if self._disposed:
                return
            self._disposed = True
            try:
                signers = self._signers.dispose_all()
            finally:
                accounts = self._accounts.dispose_all()

        logger.info(f"Wallet manager disposed ({signers} signer(s), {accounts} account(s))")

    def _create_account(self, signer: Signer) -> WalletAccount:
        """Build the chain's account type around a derived signer."""
        raise NotImplementedWalletError("_create_account(signer)")

    def _resolve_signer(self, signer_name: str) -> Signer:
        signer = self._signers.get(signer_name)
        if signer is None:
            raise SignerNotFoundError(signer_name)
        return signer

    def _check_not_disposed(self) -> None:
        if self._disposed:
            raise DisposedError(f"{self.__class__.__name__} has been disposed")

    @staticmethod
    def _load_config(config: Union[WalletConfig, dict, None]) -> WalletConfig:
        if config is None:
            return WalletConfig()
        if isinstance(config, WalletConfig):
            return config
        if not isinstance(config, dict):
            raise InvalidArgumentError(f"Expected WalletConfig or dict, got {type(config).__name__}")
        try:
            return WalletConfig.model_validate(config)
        except ValidationError as e:
            raise InvalidArgumentError(f"Invalid wallet config: {e}") from e
