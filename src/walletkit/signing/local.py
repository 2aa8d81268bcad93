"""Local BIP-32 signer.

Keeps secp256k1 key material in memory. Suitable for:
- Development/testing
- Hot wallets with small amounts

Derivation path: m/44'/coin_type'/<relative path>
Address format: 0x... (EVM chains) or T... (TRON)

WARNING: Private keys live in process memory until dispose() is called.
"""

import logging
import re
from typing import Any, Optional

from bip_utils import (
    Bip32KeyError,
    Bip32PathError,
    Bip32Secp256k1,
    Bip39SeedGenerator,
    EthAddrEncoder,
    TrxAddrEncoder,
)

from walletkit.chains import ChainParams, get_chain_params
from walletkit.errors import InvalidArgumentError, InvalidDerivationPathError
from walletkit.seed import is_valid_seed_phrase
from walletkit.signing.base import Signer

logger = logging.getLogger(__name__)

# One path element: index with optional hardened marker (', h or p)
_PATH_ELEMENT = re.compile(r"^(\d+)(['hp]?)$")
_HARDENED_OFFSET = 0x80000000


def normalize_relative_path(relative_path: str) -> str:
    """Validate a relative derivation path and normalize hardened markers to '.

    Args:
        relative_path: Path such as "0'/0/1" or "0h/0/1"

    Returns:
        Normalized path string

    Raises:
        InvalidDerivationPathError: If the path is empty, absolute or malformed
    """
    if not isinstance(relative_path, str) or not relative_path.strip():
        raise InvalidDerivationPathError("Derivation path must be a non-empty string")

    path = relative_path.strip().rstrip("/")
    if path.startswith("m"):
        raise InvalidDerivationPathError(
            f"Expected a relative derivation path, got absolute path '{relative_path}'"
        )

    elements = []
    for element in path.split("/"):
        match = _PATH_ELEMENT.match(element)
        if not match:
            raise InvalidDerivationPathError(
                f"Invalid element '{element}' in derivation path '{relative_path}'"
            )
        if int(match.group(1)) >= _HARDENED_OFFSET:
            raise InvalidDerivationPathError(
                f"Index {match.group(1)} out of range in derivation path '{relative_path}'"
            )
        elements.append(match.group(1) + ("'" if match.group(2) else ""))

    return "/".join(elements)


def _last_index(path: str) -> int:
    """Unhardened value of the last path element."""
    return int(path.rsplit("/", 1)[-1].rstrip("'"))


class Bip32Signer(Signer):
    """secp256k1 BIP-32 signer backed by bip_utils.

    Example:
        root = Bip32Signer.from_seed_phrase("cook voyage ...", chain="ETH")
        child = root.derive("0'/0/0")
        address = await child.get_address()  # 0x... checksum address
    """

    def __init__(
        self,
        bip32_ctx: Any,
        chain: ChainParams,
        path: str,
        index: Optional[int] = None,
        config: Optional[dict[str, Any]] = None,
    ):
        super().__init__(path=path, index=index)
        self._bip32_ctx = bip32_ctx
        self._chain = chain
        self._config = dict(config or {})
        self._private_key = bytearray(bip32_ctx.PrivateKey().Raw().ToBytes())

    @classmethod
    def from_seed_phrase(
        cls,
        seed_phrase: str,
        chain: str = "ETH",
        passphrase: str = "",
        config: Optional[dict[str, Any]] = None,
    ) -> "Bip32Signer":
        """Create the root signer for a chain from a BIP-39 seed phrase.

        Args:
            seed_phrase: BIP-39 mnemonic
            chain: Chain symbol (ETH, BSC, TRX, ...)
            passphrase: Optional BIP-39 passphrase
            config: Optional chain-specific configuration

        Raises:
            InvalidArgumentError: If the phrase is invalid or the chain unsupported
        """
        if not is_valid_seed_phrase(seed_phrase):
            raise InvalidArgumentError("Invalid BIP-39 seed phrase")

        params = get_chain_params(chain)
        seed = Bip39SeedGenerator(seed_phrase).Generate(passphrase)
        master = Bip32Secp256k1.FromSeed(seed)
        base_ctx = master.DerivePath(params.base_path[2:])

        logger.debug(f"Created root signer for {params.symbol} at {params.base_path}")
        return cls(base_ctx, params, path=params.base_path, config=config)

    @property
    def chain(self) -> str:
        return self._chain.symbol

    @property
    def private_key(self) -> bytes:
        """Raw private key for chain adapters. Never log this."""
        self._check_active()
        return bytes(self._private_key)

    @property
    def public_key(self) -> bytes:
        """Uncompressed public key bytes."""
        self._check_active()
        return self._bip32_ctx.PublicKey().RawUncompressed().ToBytes()

    def derive(self, relative_path: str, config: Optional[dict[str, Any]] = None) -> "Bip32Signer":
        """Derive a child signer at relative_path below this signer."""
        self._check_active()
        path = normalize_relative_path(relative_path)

        try:
            child_ctx = self._bip32_ctx.DerivePath(path)
        except (Bip32PathError, Bip32KeyError) as e:
            raise InvalidDerivationPathError(f"Cannot derive '{relative_path}': {e}") from e

        child_config = {**self._config, **(config or {})}
        return Bip32Signer(
            child_ctx,
            self._chain,
            path=f"{self._path}/{path}",
            index=_last_index(path),
            config=child_config,
        )

    async def get_address(self) -> str:
        """Encode the public key as a chain address (cached)."""
        self._check_active()

        if self._address is None:
            pubkey = self._bip32_ctx.PublicKey().RawUncompressed().ToBytes()
            if self._chain.address_format == "trx":
                self._address = TrxAddrEncoder.EncodeKey(pubkey)
            else:
                self._address = EthAddrEncoder.EncodeKey(pubkey)
            logger.debug(f"Resolved {self._chain.symbol} address for {self._path}")

        return self._address

    def dispose(self) -> None:
        """Zero the private key buffer and drop the BIP-32 context."""
        if not self._active:
            return

        for i in range(len(self._private_key)):
            self._private_key[i] = 0
        self._private_key = bytearray()
        self._bip32_ctx = None
        self._address = None
        self._active = False
        logger.debug(f"Disposed signer at {self._path}")
