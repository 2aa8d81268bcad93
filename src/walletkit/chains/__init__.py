"""Chain parameters for HD derivation and address encoding.

Derivation base: m/44'/coin_type'
EVM chains share coin type 60 and 0x... checksum addresses.
TRON uses SLIP-44 coin type 195 and base58check T... addresses.
"""

from dataclasses import dataclass

from walletkit.errors import InvalidArgumentError


@dataclass(frozen=True)
class ChainParams:
    """Derivation and address parameters for a chain."""

    symbol: str
    coin_type: int
    address_format: str  # "eth" or "trx"
    purpose: int = 44
    decimals: int = 18

    @property
    def base_path(self) -> str:
        """Absolute path the root signer sits at."""
        return f"m/{self.purpose}'/{self.coin_type}'"


CHAIN_PARAMS: dict[str, ChainParams] = {
    "ETH": ChainParams(symbol="ETH", coin_type=60, address_format="eth"),
    "BSC": ChainParams(symbol="BSC", coin_type=60, address_format="eth"),
    "BNB": ChainParams(symbol="BNB", coin_type=60, address_format="eth"),  # Alias for BSC
    "POLYGON": ChainParams(symbol="POLYGON", coin_type=60, address_format="eth"),
    "ARBITRUM": ChainParams(symbol="ARBITRUM", coin_type=60, address_format="eth"),
    "TRX": ChainParams(symbol="TRX", coin_type=195, address_format="trx", decimals=6),
}


def get_chain_params(chain: str) -> ChainParams:
    """Look up chain parameters.

    Raises:
        InvalidArgumentError: If the chain is not supported
    """
    params = CHAIN_PARAMS.get(chain.upper()) if isinstance(chain, str) else None
    if params is None:
        raise InvalidArgumentError(
            f"Unsupported chain '{chain}'. Expected one of {sorted(CHAIN_PARAMS)}"
        )
    return params


def get_supported_chains() -> list[str]:
    """Get list of supported chain symbols."""
    return list(CHAIN_PARAMS.keys())
