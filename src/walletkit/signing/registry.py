"""Named registries for signers and accounts.

Mutation (insert, overwrite, dispose) is serialized by one lock per registry.
Reads go straight to the dict; iteration works on a snapshot.
"""

import logging
import threading
from typing import Generic, Optional, Protocol, TypeVar

from walletkit.errors import InvalidArgumentError

logger = logging.getLogger(__name__)

DEFAULT_SIGNER_NAME = "default"


class Disposable(Protocol):
    """Anything holding secret material that can be released."""

    @property
    def is_active(self) -> bool: ...

    def dispose(self) -> None: ...


T = TypeVar("T", bound=Disposable)


class Registry(Generic[T]):
    """Name -> disposable entity map with an explicit dispose_all()."""

    def __init__(self, kind: str = "entity"):
        self._kind = kind
        self._entries: dict[str, T] = {}
        self._lock = threading.Lock()

    def set(self, name: str, entry: T) -> None:
        """Register entry under name. Last write wins."""
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError(f"{self._kind} name must be a non-empty string")
        if entry is None:
            raise InvalidArgumentError(f"{self._kind} '{name}' must not be None")

        with self._lock:
            replaced = name in self._entries
            self._entries[name] = entry

        if replaced:
            logger.debug(f"Replaced {self._kind} '{name}'")
        else:
            logger.debug(f"Registered {self._kind} '{name}'")

    def get(self, name: str) -> Optional[T]:
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def snapshot(self) -> dict[str, T]:
        """Copy of the current entries."""
        with self._lock:
            return dict(self._entries)

    def dispose_all(self) -> int:
        """Dispose every active entry once, then clear the registry.

        A failing dispose() does not stop the remaining entries from being
        disposed; the first error is re-raised once all were attempted.

        Returns:
            Number of entries that were disposed

        Raises:
            Exception: The first error raised by an entry's dispose()
        """
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()

        disposed = 0
        first_error: Optional[BaseException] = None
        seen: set[int] = set()
        for entry in entries:
            # The same object may be registered under several names
            if id(entry) in seen:
                continue
            seen.add(id(entry))
            if not entry.is_active:
                continue
            try:
                entry.dispose()
                disposed += 1
            except Exception as e:
                logger.error(f"Failed to dispose {self._kind}: {type(e).__name__}: {e}")
                if first_error is None:
                    first_error = e

        logger.debug(f"Disposed {disposed} {self._kind}(s)")
        if first_error is not None:
            raise first_error
        return disposed


class SignerRegistry(Registry[T]):
    """Signer registry seeded with a mandatory 'default' entry."""

    def __init__(self, default_signer: T):
        if default_signer is None:
            raise InvalidArgumentError("A default signer is required")
        super().__init__(kind="signer")
        self.set(DEFAULT_SIGNER_NAME, default_signer)
