"""Fiat on/off-ramp protocol.

Quote/execute flow:
1. quote_buy / quote_sell price a trade without side effects
2. buy / sell return a provider URL; the provider completes the trade
   out-of-band and get_transaction_detail() reports its status

Amounts: crypto in its base unit (wei, satoshi), fiat in its smallest unit
(cents). Buy pins either fiat_amount (exact input) or crypto_amount (exact
output); sell pins crypto_amount (exact input) or fiat_amount (exact output).
"""

import logging
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Union

from pydantic import Field, StrictStr, field_validator

from walletkit.amounts import (
    AmountSpec,
    BaseUnitAmount,
    OptionsModel,
    ResultModel,
    parse_options,
    resolve_amount,
)
from walletkit.errors import InvalidArgumentError, NotImplementedWalletError
from walletkit.protocols.base import AccountProtocol

logger = logging.getLogger(__name__)


class FiatTransactionStatus(str, Enum):
    """Standardized status of an on/off-ramp transaction."""
    IN_PROGRESS = "in_progress"
    FAILED = "failed"
    COMPLETED = "completed"


class BuyOptions(OptionsModel):
    """Options for buying crypto with fiat. Set exactly one amount."""

    crypto_asset: str = Field(..., min_length=1, description="Provider-specific asset code (e.g. eth)")
    fiat_currency: str = Field(..., min_length=1, description="ISO 4217 code (e.g. USD)")
    crypto_amount: Optional[BaseUnitAmount] = Field(None, description="Crypto to receive, base units")
    fiat_amount: Optional[BaseUnitAmount] = Field(None, description="Fiat to spend, smallest unit")
    recipient: Optional[str] = Field(None, description="Receiving address (default: account address)")


class SellOptions(OptionsModel):
    """Options for selling crypto for fiat. Set exactly one amount."""

    crypto_asset: str = Field(..., min_length=1, description="Provider-specific asset code")
    fiat_currency: str = Field(..., min_length=1, description="ISO 4217 code")
    crypto_amount: Optional[BaseUnitAmount] = Field(None, description="Crypto to sell, base units")
    fiat_amount: Optional[BaseUnitAmount] = Field(None, description="Fiat to receive, smallest unit")
    refund_address: Optional[str] = Field(None, description="Refund address (default: account address)")


class FiatQuote(ResultModel):
    """Non-binding price for an on/off-ramp trade."""

    crypto_amount: int = Field(..., ge=0, description="Crypto amount, base units")
    fiat_amount: int = Field(..., ge=0, description="Fiat amount, smallest unit")
    fee: int = Field(..., ge=0, description="Fee in the fiat currency's smallest unit")
    rate: StrictStr = Field(..., description="Fiat per one whole crypto unit, as a decimal string")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Provider raw data")

    @field_validator("rate")
    @classmethod
    def _rate_is_decimal(cls, value: str) -> str:
        try:
            parsed = Decimal(value)
        except InvalidOperation:
            raise ValueError(f"rate must be a decimal string, got {value!r}")
        if not parsed.is_finite() or parsed < 0:
            raise ValueError(f"rate must be a finite non-negative decimal, got {value!r}")
        return value


class BuyResult(ResultModel):
    buy_url: str


class SellResult(ResultModel):
    sell_url: str


class FiatTransactionDetail(ResultModel):
    """Provider-agnostic view of an on/off-ramp transaction."""

    status: FiatTransactionStatus
    crypto_asset: str
    fiat_currency: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class SupportedCryptoAsset(ResultModel):
    code: str
    network_code: Optional[str] = None
    decimals: int = Field(..., ge=0)
    name: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class SupportedFiatCurrency(ResultModel):
    code: str
    decimals: int = Field(..., ge=0)
    name: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class SupportedCountry(ResultModel):
    code: str
    is_buy_allowed: bool
    is_sell_allowed: bool
    name: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


def resolve_buy_amount(options: BuyOptions) -> AmountSpec:
    """Fiat spent is the input side of a buy, crypto received the output."""
    return resolve_amount(
        exact_in=("fiat_amount", options.fiat_amount),
        exact_out=("crypto_amount", options.crypto_amount),
    )


def resolve_sell_amount(options: SellOptions) -> AmountSpec:
    """Crypto sold is the input side of a sell, fiat received the output."""
    return resolve_amount(
        exact_in=("crypto_amount", options.crypto_amount),
        exact_out=("fiat_amount", options.fiat_amount),
    )


class FiatProtocol(AccountProtocol):
    """Base class for fiat on/off-ramp providers.

    Adapters implement the underscore hooks and the catalog queries. The
    public methods validate options and resolve the pinned amount first.
    """

    async def quote_buy(self, options: Union[BuyOptions, dict]) -> FiatQuote:
        """Quote a crypto purchase."""
        options = parse_options(BuyOptions, options)
        amount = resolve_buy_amount(options)
        logger.debug(f"{self.name}: quote buy {options.crypto_asset}/{options.fiat_currency} {amount}")
        return await self._quote_buy(options, amount)

    async def buy(self, options: Union[BuyOptions, dict]) -> BuyResult:
        """Return a URL where the user completes the purchase."""
        self._check_account_active("buy")
        options = parse_options(BuyOptions, options)
        amount = resolve_buy_amount(options)
        recipient = await self._default_address(options.recipient, "recipient")
        options = options.model_copy(update={"recipient": recipient})
        logger.info(f"{self.name}: buy {options.crypto_asset} with {options.fiat_currency} ({amount.field}={amount.amount})")
        return await self._buy(options, amount)

    async def quote_sell(self, options: Union[SellOptions, dict]) -> FiatQuote:
        """Quote a crypto sale."""
        options = parse_options(SellOptions, options)
        amount = resolve_sell_amount(options)
        logger.debug(f"{self.name}: quote sell {options.crypto_asset}/{options.fiat_currency} {amount}")
        return await self._quote_sell(options, amount)

    async def sell(self, options: Union[SellOptions, dict]) -> SellResult:
        """Return a URL where the user completes the sale."""
        self._check_account_active("sell")
        options = parse_options(SellOptions, options)
        amount = resolve_sell_amount(options)
        refund_address = await self._default_address(options.refund_address, "refund_address")
        options = options.model_copy(update={"refund_address": refund_address})
        logger.info(f"{self.name}: sell {options.crypto_asset} for {options.fiat_currency} ({amount.field}={amount.amount})")
        return await self._sell(options, amount)

    async def get_transaction_detail(self, tx_id: str) -> FiatTransactionDetail:
        """Look up a provider transaction."""
        if not isinstance(tx_id, str) or not tx_id:
            raise InvalidArgumentError("tx_id must be a non-empty string")
        return await self._get_transaction_detail(tx_id)

    async def get_supported_crypto_assets(self) -> list[SupportedCryptoAsset]:
        raise NotImplementedWalletError("get_supported_crypto_assets()")

    async def get_supported_fiat_currencies(self) -> list[SupportedFiatCurrency]:
        raise NotImplementedWalletError("get_supported_fiat_currencies()")

    async def get_supported_countries(self) -> list[SupportedCountry]:
        raise NotImplementedWalletError("get_supported_countries()")

    async def _quote_buy(self, options: BuyOptions, amount: AmountSpec) -> FiatQuote:
        raise NotImplementedWalletError("quote_buy(options)")

    async def _buy(self, options: BuyOptions, amount: AmountSpec) -> BuyResult:
        raise NotImplementedWalletError("buy(options)")

    async def _quote_sell(self, options: SellOptions, amount: AmountSpec) -> FiatQuote:
        raise NotImplementedWalletError("quote_sell(options)")

    async def _sell(self, options: SellOptions, amount: AmountSpec) -> SellResult:
        raise NotImplementedWalletError("sell(options)")

    async def _get_transaction_detail(self, tx_id: str) -> FiatTransactionDetail:
        raise NotImplementedWalletError("get_transaction_detail(tx_id)")
