"""Quote/execute protocols.

- FiatProtocol: fiat on/off-ramp (quote_buy/buy, quote_sell/sell)
- SwapProtocol: token swaps (quote_swap/swap)
- DryRunFiatProtocol / DryRunSwapProtocol: simulated providers
"""

from walletkit.protocols.base import AccountProtocol
from walletkit.protocols.dry_run import DryRunFiatProtocol, DryRunSwapProtocol
from walletkit.protocols.fiat import (
    BuyOptions,
    BuyResult,
    FiatProtocol,
    FiatQuote,
    FiatTransactionDetail,
    FiatTransactionStatus,
    SellOptions,
    SellResult,
    SupportedCountry,
    SupportedCryptoAsset,
    SupportedFiatCurrency,
)
from walletkit.protocols.swap import SwapOptions, SwapProtocol, SwapQuote, SwapResult

__all__ = [
    "AccountProtocol",
    "FiatProtocol",
    "BuyOptions",
    "BuyResult",
    "SellOptions",
    "SellResult",
    "FiatQuote",
    "FiatTransactionDetail",
    "FiatTransactionStatus",
    "SupportedCryptoAsset",
    "SupportedFiatCurrency",
    "SupportedCountry",
    "SwapProtocol",
    "SwapOptions",
    "SwapQuote",
    "SwapResult",
    "DryRunFiatProtocol",
    "DryRunSwapProtocol",
]
