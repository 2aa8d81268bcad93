"""Shared plumbing for account-bound protocols."""

import logging
from typing import Optional, Union

from walletkit.errors import InvalidArgumentError, ReadOnlyAccountError, SignerDisposedError
from walletkit.wallet.account import WalletAccount, WalletAccountReadOnly

logger = logging.getLogger(__name__)

AnyAccount = Union[WalletAccountReadOnly, WalletAccount]


class AccountProtocol:
    """Base for protocols bound to a (possibly read-only) wallet account.

    Quote operations work with any account; execute operations need a
    WalletAccount holding a signer.
    """

    def __init__(self, account: Optional[AnyAccount] = None):
        self._account = account

    @property
    def account(self) -> Optional[AnyAccount]:
        return self._account

    @property
    def name(self) -> str:
        """Protocol name identifier."""
        return self.__class__.__name__

    def _require_signing_account(self, operation: str) -> WalletAccount:
        if not isinstance(self._account, WalletAccount):
            raise ReadOnlyAccountError(
                f"{operation} requires a wallet account with a signer"
            )
        self._check_account_active(operation)
        return self._account

    def _check_account_active(self, operation: str) -> None:
        if isinstance(self._account, WalletAccount) and not self._account.is_active:
            raise SignerDisposedError(f"{operation} called on a disposed account")

    async def _default_address(self, explicit: Optional[str], field: str) -> str:
        """explicit if given, else the bound account's address."""
        if explicit:
            return explicit
        if self._account is None:
            raise InvalidArgumentError(f"'{field}' is required when no account is bound")
        return await self._account.get_address()
