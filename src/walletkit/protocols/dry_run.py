"""Dry-run fiat and swap protocols for simulated trading.

Prices are fixed demonstration values and must not be used for real trading.
All math runs in Decimal: computed outputs round down, computed inputs round
up, so the simulated provider never gives away value to rounding.
"""

import hashlib
import logging
import uuid
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal, localcontext
from typing import Optional, Union
from urllib.parse import urlencode

from walletkit.amounts import AmountSpec
from walletkit.chains.dry_run import PROVIDER_NAME, DryRunWalletAccount
from walletkit.config import SwapProtocolConfig, get_settings
from walletkit.errors import InvalidArgumentError, ProviderError
from walletkit.protocols.base import AnyAccount
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

logger = logging.getLogger(__name__)

_BPS = Decimal(10_000)

# (network, decimals, name, USD price)
SIMULATED_CRYPTO_ASSETS: dict[str, tuple[str, int, str, Decimal]] = {
    "btc": ("bitcoin", 8, "Bitcoin", Decimal("100000.00")),
    "eth": ("ethereum", 18, "Ether", Decimal("3900.00")),
    "usdt": ("ethereum", 6, "Tether USD", Decimal("1.00")),
    "usdc": ("ethereum", 6, "USD Coin", Decimal("1.00")),
    "trx": ("tron", 6, "TRON", Decimal("0.27")),
    "sol": ("solana", 9, "Solana", Decimal("225.00")),
}

# (decimals, name, units per USD)
SIMULATED_FIAT_CURRENCIES: dict[str, tuple[int, str, Decimal]] = {
    "USD": (2, "United States Dollar", Decimal("1.00")),
    "EUR": (2, "Euro", Decimal("0.92")),
    "GBP": (2, "British Pound", Decimal("0.79")),
    "JPY": (0, "Japanese Yen", Decimal("150")),
}

# (buy allowed, sell allowed, name)
SIMULATED_COUNTRIES: dict[str, tuple[bool, bool, str]] = {
    "US": (True, True, "United States"),
    "GB": (True, True, "United Kingdom"),
    "DE": (True, True, "Germany"),
    "JP": (True, False, "Japan"),
}

# (decimals, USD price)
SIMULATED_TOKENS: dict[str, tuple[int, Decimal]] = {
    "WETH": (18, Decimal("3900.00")),
    "WBTC": (8, Decimal("100000.00")),
    "USDT": (6, Decimal("1.00")),
    "USDC": (6, Decimal("1.00")),
    "DAI": (18, Decimal("1.00")),
    "LINK": (18, Decimal("28.00")),
    "UNI": (18, Decimal("17.50")),
}

SWAP_GAS = 150_000


def _positive_price(usd_price: Decimal) -> Decimal:
    price = Decimal(usd_price)
    if not price.is_finite() or price <= 0:
        raise InvalidArgumentError(f"Price must be a positive finite number, got {usd_price}")
    return price


def _floor(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def _ceil(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_CEILING))


class DryRunFiatProtocol(FiatProtocol):
    """Simulated on/off-ramp provider.

    Fee: fee_bps of the gross fiat amount, in the fiat currency's smallest unit.
    Orders created by buy()/sell() start in_progress; complete_order() moves
    them to a final status the way a provider webhook would.
    """

    def __init__(
        self,
        account: Optional[AnyAccount] = None,
        fee_bps: Optional[int] = None,
        widget_url: Optional[str] = None,
    ):
        super().__init__(account)
        settings = get_settings()
        self.fee_bps = settings.dry_run_fiat_fee_bps if fee_bps is None else fee_bps
        if not 0 <= self.fee_bps < 10_000:
            raise InvalidArgumentError(f"fee_bps must be in [0, 10000), got {self.fee_bps}")
        self.widget_url = (widget_url or settings.dry_run_widget_url).rstrip("/")
        self._assets = dict(SIMULATED_CRYPTO_ASSETS)
        self._currencies = dict(SIMULATED_FIAT_CURRENCIES)
        self._orders: dict[str, dict] = {}

    @property
    def name(self) -> str:
        return PROVIDER_NAME

    def set_price(self, crypto_asset: str, usd_price: Decimal) -> None:
        """Set simulated USD price for an asset."""
        price = _positive_price(usd_price)
        network, decimals, name, _ = self._asset(crypto_asset)
        self._assets[crypto_asset.lower()] = (network, decimals, name, price)

    def get_rate(self, crypto_asset: str, fiat_currency: str) -> Decimal:
        """Fiat per one whole crypto unit.

        Shown at the currency's precision (3900.00) when that is exact,
        otherwise unrounded (0.2484). Pricing always uses the unrounded rate.
        """
        fiat_decimals, _, _ = self._currency(fiat_currency)
        rate = self._exact_rate(crypto_asset, fiat_currency)
        quantized = rate.quantize(Decimal(1).scaleb(-fiat_decimals))
        return quantized if quantized == rate else rate.normalize()

    def _exact_rate(self, crypto_asset: str, fiat_currency: str) -> Decimal:
        _, _, _, usd_price = self._asset(crypto_asset)
        _, _, per_usd = self._currency(fiat_currency)
        with localcontext() as ctx:
            ctx.prec = 60
            return usd_price * per_usd

    async def _quote_buy(self, options: BuyOptions, amount: AmountSpec) -> FiatQuote:
        return self._price(options.crypto_asset, options.fiat_currency, amount, selling=False)

    async def _quote_sell(self, options: SellOptions, amount: AmountSpec) -> FiatQuote:
        return self._price(options.crypto_asset, options.fiat_currency, amount, selling=True)

    async def _buy(self, options: BuyOptions, amount: AmountSpec) -> BuyResult:
        quote = self._price(options.crypto_asset, options.fiat_currency, amount, selling=False)
        order_id = self._open_order("buy", options.crypto_asset, options.fiat_currency, quote)
        query = urlencode({
            "orderId": order_id,
            "cryptoAsset": options.crypto_asset,
            "fiatCurrency": options.fiat_currency,
            "cryptoAmount": quote.crypto_amount,
            "fiatAmount": quote.fiat_amount,
            "recipient": options.recipient,
        })
        return BuyResult(buy_url=f"{self.widget_url}/buy?{query}")

    async def _sell(self, options: SellOptions, amount: AmountSpec) -> SellResult:
        quote = self._price(options.crypto_asset, options.fiat_currency, amount, selling=True)
        order_id = self._open_order("sell", options.crypto_asset, options.fiat_currency, quote)
        query = urlencode({
            "orderId": order_id,
            "cryptoAsset": options.crypto_asset,
            "fiatCurrency": options.fiat_currency,
            "cryptoAmount": quote.crypto_amount,
            "fiatAmount": quote.fiat_amount,
            "refundAddress": options.refund_address,
        })
        return SellResult(sell_url=f"{self.widget_url}/sell?{query}")

    async def _get_transaction_detail(self, tx_id: str) -> FiatTransactionDetail:
        order = self._orders.get(tx_id)
        if order is None:
            raise ProviderError(f"Unknown transaction '{tx_id}'", provider=self.name)

        return FiatTransactionDetail(
            status=order["status"],
            crypto_asset=order["crypto_asset"],
            fiat_currency=order["fiat_currency"],
            metadata=dict(order),
        )

    def complete_order(self, tx_id: str, status: FiatTransactionStatus = FiatTransactionStatus.COMPLETED) -> None:
        """Simulate the provider finishing an order."""
        if tx_id not in self._orders:
            raise ProviderError(f"Unknown transaction '{tx_id}'", provider=self.name)
        self._orders[tx_id]["status"] = FiatTransactionStatus(status)

    def list_orders(self) -> list[str]:
        return list(self._orders)

    async def get_supported_crypto_assets(self) -> list[SupportedCryptoAsset]:
        return [
            SupportedCryptoAsset(
                code=code,
                network_code=network,
                decimals=decimals,
                name=name,
                metadata={"usd_price": str(price)},
            )
            for code, (network, decimals, name, price) in self._assets.items()
        ]

    async def get_supported_fiat_currencies(self) -> list[SupportedFiatCurrency]:
        return [
            SupportedFiatCurrency(code=code, decimals=decimals, name=name)
            for code, (decimals, name, _) in self._currencies.items()
        ]

    async def get_supported_countries(self) -> list[SupportedCountry]:
        return [
            SupportedCountry(code=code, is_buy_allowed=buy, is_sell_allowed=sell, name=name)
            for code, (buy, sell, name) in SIMULATED_COUNTRIES.items()
        ]

    def _price(self, crypto_asset: str, fiat_currency: str, amount: AmountSpec, selling: bool) -> FiatQuote:
        """Compute both sides of a trade plus fee.

        Buy:  fiat paid = net fiat + fee, crypto = net fiat / rate
        Sell: fiat paid out = gross fiat - fee, gross fiat = crypto * rate
        """
        _, crypto_decimals, _, _ = self._asset(crypto_asset)
        fiat_decimals, _, _ = self._currency(fiat_currency)
        rate = self._exact_rate(crypto_asset, fiat_currency)
        bps = Decimal(self.fee_bps)

        with localcontext() as ctx:
            ctx.prec = 60
            crypto_unit = Decimal(10) ** crypto_decimals
            fiat_unit = Decimal(10) ** fiat_decimals
            # fiat smallest units per crypto base unit
            unit_rate = rate * fiat_unit / crypto_unit

            if not selling and amount.is_exact_in:
                fiat_amount = amount.amount
                fee = _ceil(Decimal(fiat_amount) * bps / _BPS)
                crypto_amount = _floor(Decimal(fiat_amount - fee) / unit_rate)
            elif not selling:
                crypto_amount = amount.amount
                net = _ceil(Decimal(crypto_amount) * unit_rate)
                fiat_amount = _ceil(Decimal(net) * _BPS / (_BPS - bps))
                fee = fiat_amount - net
            elif amount.is_exact_in:
                crypto_amount = amount.amount
                gross = _floor(Decimal(crypto_amount) * unit_rate)
                fee = _ceil(Decimal(gross) * bps / _BPS)
                fiat_amount = max(gross - fee, 0)
            else:
                fiat_amount = amount.amount
                gross = _ceil(Decimal(fiat_amount) * _BPS / (_BPS - bps))
                fee = gross - fiat_amount
                crypto_amount = _ceil(Decimal(gross) / unit_rate)

        return FiatQuote(
            crypto_amount=crypto_amount,
            fiat_amount=fiat_amount,
            fee=fee,
            rate=format(self.get_rate(crypto_asset, fiat_currency), "f"),
            metadata={"provider": self.name, "fee_bps": self.fee_bps, "simulated": True},
        )

    def _open_order(self, side: str, crypto_asset: str, fiat_currency: str, quote: FiatQuote) -> str:
        order_id = uuid.uuid4().hex
        self._orders[order_id] = {
            "id": order_id,
            "side": side,
            "status": FiatTransactionStatus.IN_PROGRESS,
            "crypto_asset": crypto_asset,
            "fiat_currency": fiat_currency,
            "crypto_amount": quote.crypto_amount,
            "fiat_amount": quote.fiat_amount,
            "fee": quote.fee,
            "rate": quote.rate,
        }
        logger.info(f"[DRY RUN] Opened {side} order {order_id}: {crypto_asset}/{fiat_currency}")
        return order_id

    def _asset(self, code: str) -> tuple[str, int, str, Decimal]:
        asset = self._assets.get(code.lower())
        if asset is None:
            raise ProviderError(f"Unsupported crypto asset '{code}'", provider=self.name)
        return asset

    def _currency(self, code: str) -> tuple[int, str, Decimal]:
        currency = self._currencies.get(code.upper())
        if currency is None:
            raise ProviderError(f"Unsupported fiat currency '{code}'", provider=self.name)
        return currency


class DryRunSwapProtocol(SwapProtocol):
    """Simulated constant-price swap venue.

    Pool fee is taken from the output value. price_drift moves the computed
    side against the trader at execution time, modelling rate movement
    between quote and swap.
    """

    def __init__(
        self,
        account: Optional[AnyAccount] = None,
        config: Union[SwapProtocolConfig, dict, None] = None,
        pool_fee: Decimal = Decimal("0.003"),
        fee_rate: Optional[int] = None,
        price_drift: Decimal = Decimal("0"),
    ):
        super().__init__(account, config)
        self.pool_fee = Decimal(pool_fee)
        self.fee_rate = get_settings().dry_run_fee_rate_normal if fee_rate is None else fee_rate
        self.price_drift = Decimal(price_drift)
        self._tokens = dict(SIMULATED_TOKENS)

    @property
    def name(self) -> str:
        return PROVIDER_NAME

    @property
    def supported_tokens(self) -> list[str]:
        return list(self._tokens.keys())

    def set_price(self, token: str, usd_price: Decimal, decimals: Optional[int] = None) -> None:
        """Set simulated USD price for a token (adds the token if unknown)."""
        current = self._tokens.get(token.upper())
        if decimals is None:
            if current is None:
                raise InvalidArgumentError(f"decimals required for new token '{token}'")
            decimals = current[0]
        self._tokens[token.upper()] = (decimals, _positive_price(usd_price))

    async def _quote_swap(self, options: SwapOptions, amount: AmountSpec) -> SwapQuote:
        token_in_amount, token_out_amount = self._amounts(options, amount, Decimal("0"))
        return SwapQuote(
            fee=SWAP_GAS * self.fee_rate,
            token_in_amount=token_in_amount,
            token_out_amount=token_out_amount,
        )

    async def _swap(self, options: SwapOptions, amount: AmountSpec) -> SwapResult:
        token_in_amount, token_out_amount = self._amounts(options, amount, self.price_drift)
        fee = SWAP_GAS * self.fee_rate
        sender = await self._account.get_address()

        if isinstance(self._account, DryRunWalletAccount):
            tx_hash = self._account.ledger.swap(
                sender,
                options.to,
                options.token_in,
                token_in_amount,
                options.token_out,
                token_out_amount,
                fee,
            )
        else:
            tx_data = f"{sender}:{options.token_in}:{options.token_out}:{token_in_amount}:{uuid.uuid4().hex}"
            tx_hash = f"0x{hashlib.sha256(tx_data.encode()).hexdigest()}"

        logger.info(
            f"[DRY RUN] Swapped {token_in_amount} {options.token_in} -> "
            f"{token_out_amount} {options.token_out}: {tx_hash}"
        )
        return SwapResult(
            hash=tx_hash,
            fee=fee,
            token_in_amount=token_in_amount,
            token_out_amount=token_out_amount,
        )

    def _amounts(self, options: SwapOptions, amount: AmountSpec, drift: Decimal) -> tuple[int, int]:
        in_decimals, in_price = self._token(options.token_in)
        out_decimals, out_price = self._token(options.token_out)

        with localcontext() as ctx:
            ctx.prec = 60
            # output base units per input base unit, after pool fee
            unit_rate = (
                in_price / out_price
                * (Decimal(1) - self.pool_fee)
                * Decimal(10) ** out_decimals / Decimal(10) ** in_decimals
            )

            if amount.is_exact_in:
                token_out = _floor(Decimal(amount.amount) * unit_rate * (Decimal(1) - drift))
                return amount.amount, token_out

            token_in = _ceil(Decimal(amount.amount) / unit_rate * (Decimal(1) + drift))
            return token_in, amount.amount

    def _token(self, token: str) -> tuple[int, Decimal]:
        entry = self._tokens.get(token.upper())
        if entry is None:
            raise ProviderError(f"Unsupported token '{token}'", provider=self.name)
        return entry
