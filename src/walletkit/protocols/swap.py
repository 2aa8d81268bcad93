"""Token swap protocol.

token_in_amount pins the input side (sell exactly this much),
token_out_amount pins the output side (buy exactly this much).
All amounts are integers in base units.
"""

import logging
from typing import Optional, Union

from pydantic import Field, ValidationError

from walletkit.amounts import (
    AmountSpec,
    BaseUnitAmount,
    OptionsModel,
    ResultModel,
    parse_options,
    resolve_amount,
)
from walletkit.config import SwapProtocolConfig
from walletkit.errors import InvalidArgumentError, MaxFeeExceededError, NotImplementedWalletError
from walletkit.protocols.base import AccountProtocol, AnyAccount

logger = logging.getLogger(__name__)


class SwapOptions(OptionsModel):
    """Swap request. Set exactly one of token_in_amount / token_out_amount."""

    token_in: str = Field(..., min_length=1, description="Token to sell")
    token_out: str = Field(..., min_length=1, description="Token to buy")
    token_in_amount: Optional[BaseUnitAmount] = Field(None, description="Input to sell, base units")
    token_out_amount: Optional[BaseUnitAmount] = Field(None, description="Output to buy, base units")
    to: Optional[str] = Field(None, description="Receiver of the output (default: the account)")


class SwapQuote(ResultModel):
    """Estimated swap amounts and network fee."""

    fee: int = Field(..., ge=0)
    token_in_amount: int = Field(..., ge=0)
    token_out_amount: int = Field(..., ge=0)


class SwapResult(ResultModel):
    """Realized swap. Amounts may differ from the quote."""

    hash: str
    fee: int = Field(..., ge=0)
    token_in_amount: int = Field(..., ge=0)
    token_out_amount: int = Field(..., ge=0)


def resolve_swap_amount(options: SwapOptions) -> AmountSpec:
    return resolve_amount(
        exact_in=("token_in_amount", options.token_in_amount),
        exact_out=("token_out_amount", options.token_out_amount),
    )


class SwapProtocol(AccountProtocol):
    """Base class for swap providers (DEX routers, aggregators)."""

    def __init__(
        self,
        account: Optional[AnyAccount] = None,
        config: Union[SwapProtocolConfig, dict, None] = None,
    ):
        super().__init__(account)
        if isinstance(config, dict):
            try:
                config = SwapProtocolConfig.model_validate(config)
            except ValidationError as e:
                raise InvalidArgumentError(f"Invalid swap protocol config: {e}") from e
        self._config = config or SwapProtocolConfig()

    @property
    def config(self) -> SwapProtocolConfig:
        return self._config

    async def quote_swap(self, options: Union[SwapOptions, dict]) -> SwapQuote:
        """Quote a swap without executing it."""
        options = self._parse(options)
        amount = resolve_swap_amount(options)
        return await self._quote_swap(options, amount)

    async def swap(self, options: Union[SwapOptions, dict]) -> SwapResult:
        """Execute a swap with the bound account's signer.

        Raises:
            ReadOnlyAccountError: If the protocol is bound to a read-only account
            SignerDisposedError: If the bound account was disposed
            InvalidAmountSpecificationError: If the amounts are malformed
            MaxFeeExceededError: If the quoted fee exceeds swap_max_fee
        """
        account = self._require_signing_account("swap")
        options = self._parse(options)
        amount = resolve_swap_amount(options)

        max_fee = self._config.swap_max_fee
        if max_fee is not None:
            quote = await self._quote_swap(options, amount)
            if quote.fee > max_fee:
                logger.warning(
                    f"{self.name}: swap {options.token_in}->{options.token_out} refused: "
                    f"fee {quote.fee} > {max_fee}"
                )
                raise MaxFeeExceededError("swap", quote.fee, max_fee)

        if options.to is None:
            options = options.model_copy(update={"to": await account.get_address()})

        logger.info(f"{self.name}: swap {options.token_in}->{options.token_out} ({amount.field}={amount.amount})")
        return await self._swap(options, amount)

    async def _quote_swap(self, options: SwapOptions, amount: AmountSpec) -> SwapQuote:
        raise NotImplementedWalletError("quote_swap(options)")

    async def _swap(self, options: SwapOptions, amount: AmountSpec) -> SwapResult:
        raise NotImplementedWalletError("swap(options)")

    @staticmethod
    def _parse(options: Union[SwapOptions, dict]) -> SwapOptions:
        options = parse_options(SwapOptions, options)
        if options.token_in == options.token_out:
            raise InvalidArgumentError("token_in and token_out must differ")
        return options
