"""Base interface for signers.

A signer owns key material for one node of an HD tree. It can derive child
signers and expose the node's public address, but never hands out the secret
through this interface.

Lifecycle:
1. Created from a seed (or by deriving from a parent)
2. derive() / get_address() any number of times
3. dispose() releases the key material; the signer is terminal afterwards
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from walletkit.errors import SignerDisposedError

logger = logging.getLogger(__name__)


class Signer(ABC):
    """Abstract base class for signers.

    Implementations must call _check_active() at the top of every operation
    and flip _active in dispose().
    """

    def __init__(self, path: Optional[str] = None, index: Optional[int] = None):
        self._path = path
        self._index = index
        self._address: Optional[str] = None
        self._active = True

    @property
    def is_active(self) -> bool:
        """False once dispose() has run."""
        return self._active

    @property
    def path(self) -> Optional[str]:
        return self._path

    @property
    def index(self) -> Optional[int]:
        return self._index

    @property
    def address(self) -> Optional[str]:
        """Cached address, None until get_address() resolved it."""
        self._check_active()
        return self._address

    @abstractmethod
    def derive(self, relative_path: str, config: Optional[dict[str, Any]] = None) -> "Signer":
        """Derive a child signer.

        Args:
            relative_path: Relative derivation path (e.g. "0'/0/0")
            config: Optional chain-specific configuration

        Returns:
            New signer; the parent is not modified

        Raises:
            InvalidDerivationPathError: If the path is malformed
            SignerDisposedError: If this signer was disposed
        """
        pass

    @abstractmethod
    async def get_address(self) -> str:
        """Return the public address for this signer.

        Raises:
            SignerDisposedError: If this signer was disposed
        """
        pass

    @abstractmethod
    def dispose(self) -> None:
        """Release secret material. Safe to call more than once."""
        pass

    def _check_active(self) -> None:
        if not self._active:
            raise SignerDisposedError(f"{self.__class__.__name__} at {self._path} has been disposed")

    def __repr__(self) -> str:
        state = "active" if self._active else "disposed"
        return f"{self.__class__.__name__}(path={self._path}, {state})"
