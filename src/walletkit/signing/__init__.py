"""Signers and signer registries.

- Signer: abstract derive/get_address/dispose contract
- Bip32Signer: in-memory secp256k1 BIP-32 signer (EVM and TRON addresses)
- SignerRegistry: name -> signer map with mandatory 'default' entry
"""

from walletkit.signing.base import Signer
from walletkit.signing.local import Bip32Signer, normalize_relative_path
from walletkit.signing.registry import DEFAULT_SIGNER_NAME, Registry, SignerRegistry

__all__ = [
    "Signer",
    "Bip32Signer",
    "normalize_relative_path",
    "Registry",
    "SignerRegistry",
    "DEFAULT_SIGNER_NAME",
]
