"""Tests for the swap protocol."""

from decimal import Decimal

import pytest

from walletkit.chains.dry_run import NATIVE
from walletkit.errors import (
    InvalidAmountSpecificationError,
    InvalidArgumentError,
    MaxFeeExceededError,
    NotImplementedWalletError,
    ProviderError,
    ReadOnlyAccountError,
    SignerDisposedError,
)
from walletkit.protocols.dry_run import SWAP_GAS, DryRunSwapProtocol
from walletkit.protocols.swap import SwapOptions, SwapProtocol
from walletkit.wallet.account import WalletAccount, WalletAccountReadOnly

WETH = 10**18
USDT_PER_WETH = 3_888_300_000  # 3900 USDT minus 0.3% pool fee, 6 decimals


async def fund_account(wallet):
    """Account 0 with gas for ten swaps and 2 WETH."""
    account = await wallet.get_account(0)
    await account.credit(10 * SWAP_GAS)
    await account.credit(2 * WETH, token="WETH")
    return account


class TestSwapProtocolBase:
    """Validation in the base class."""

    @pytest.mark.asyncio
    async def test_quote_hook_not_implemented(self):
        with pytest.raises(NotImplementedWalletError):
            await SwapProtocol().quote_swap({"tokenIn": "WETH", "tokenOut": "USDT", "tokenInAmount": 1})

    @pytest.mark.asyncio
    async def test_swap_hook_not_implemented(self, make_signer):
        protocol = SwapProtocol(WalletAccount(make_signer()))

        with pytest.raises(NotImplementedWalletError):
            await protocol.swap({"tokenIn": "WETH", "tokenOut": "USDT", "tokenInAmount": 1})

    @pytest.mark.asyncio
    async def test_swap_requires_signing_account(self):
        protocol = SwapProtocol(WalletAccountReadOnly("0xabc"))

        with pytest.raises(ReadOnlyAccountError):
            await protocol.swap({"tokenIn": "WETH", "tokenOut": "USDT", "tokenInAmount": 1})

    @pytest.mark.asyncio
    async def test_swap_requires_account(self):
        with pytest.raises(ReadOnlyAccountError):
            await SwapProtocol().swap({"tokenIn": "WETH", "tokenOut": "USDT", "tokenInAmount": 1})

    @pytest.mark.asyncio
    async def test_both_amounts_rejected(self):
        with pytest.raises(InvalidAmountSpecificationError):
            await SwapProtocol().quote_swap({
                "tokenIn": "WETH",
                "tokenOut": "USDT",
                "tokenInAmount": 1,
                "tokenOutAmount": 1,
            })

    @pytest.mark.asyncio
    async def test_no_amount_rejected(self):
        with pytest.raises(InvalidAmountSpecificationError):
            await SwapProtocol().quote_swap(SwapOptions(token_in="WETH", token_out="USDT"))

    @pytest.mark.asyncio
    async def test_same_token_rejected(self):
        with pytest.raises(InvalidArgumentError):
            await SwapProtocol().quote_swap({"tokenIn": "WETH", "tokenOut": "WETH", "tokenInAmount": 1})

    def test_config_from_dict(self):
        assert SwapProtocol(config={"swap_max_fee": 10}).config.swap_max_fee == 10

    def test_invalid_config(self):
        with pytest.raises(InvalidArgumentError):
            SwapProtocol(config={"swap_max_fee": -1})


class TestDryRunSwapQuotes:
    """Quote math of the dry-run swap venue."""

    @pytest.mark.asyncio
    async def test_exact_in(self):
        protocol = DryRunSwapProtocol(fee_rate=1)

        quote = await protocol.quote_swap({"tokenIn": "WETH", "tokenOut": "USDT", "tokenInAmount": WETH})

        assert quote.token_in_amount == WETH
        assert quote.token_out_amount == USDT_PER_WETH
        assert quote.fee == SWAP_GAS

    @pytest.mark.asyncio
    async def test_exact_out(self):
        protocol = DryRunSwapProtocol(fee_rate=1)

        quote = await protocol.quote_swap({"tokenIn": "WETH", "tokenOut": "USDT", "tokenOutAmount": USDT_PER_WETH})

        assert quote.token_in_amount == WETH
        assert quote.token_out_amount == USDT_PER_WETH

    @pytest.mark.asyncio
    async def test_exact_out_rounds_input_up(self):
        protocol = DryRunSwapProtocol(fee_rate=1)

        quote = await protocol.quote_swap({"tokenIn": "USDT", "tokenOut": "WETH", "tokenOutAmount": 1})

        assert quote.token_in_amount == 1

    @pytest.mark.asyncio
    async def test_fee_uses_rate(self):
        protocol = DryRunSwapProtocol(fee_rate=7)

        quote = await protocol.quote_swap({"tokenIn": "WETH", "tokenOut": "USDT", "tokenInAmount": 1})

        assert quote.fee == SWAP_GAS * 7

    @pytest.mark.asyncio
    async def test_token_names_case_insensitive(self):
        protocol = DryRunSwapProtocol(fee_rate=1)

        quote = await protocol.quote_swap({"tokenIn": "weth", "tokenOut": "usdt", "tokenInAmount": WETH})

        assert quote.token_out_amount == USDT_PER_WETH

    @pytest.mark.asyncio
    async def test_unsupported_token(self):
        with pytest.raises(ProviderError):
            await DryRunSwapProtocol(fee_rate=1).quote_swap({"tokenIn": "WETH", "tokenOut": "DOGE", "tokenInAmount": 1})

    @pytest.mark.asyncio
    async def test_set_price_new_token(self):
        protocol = DryRunSwapProtocol(fee_rate=1, pool_fee=Decimal("0"))
        protocol.set_price("DOGE", Decimal("0.5"), decimals=8)

        quote = await protocol.quote_swap({"tokenIn": "USDT", "tokenOut": "DOGE", "tokenInAmount": 1_000_000})

        assert "DOGE" in protocol.supported_tokens
        assert quote.token_out_amount == 2 * 10**8

    @pytest.mark.parametrize("price", [Decimal("0"), Decimal("-3")])
    def test_set_price_rejects_non_positive(self, price):
        with pytest.raises(InvalidArgumentError):
            DryRunSwapProtocol(fee_rate=1).set_price("WETH", price)

    def test_set_price_new_token_needs_decimals(self):
        with pytest.raises(InvalidArgumentError):
            DryRunSwapProtocol(fee_rate=1).set_price("DOGE", Decimal("0.5"))


class TestDryRunSwapExecution:
    """Executing swaps against the dry-run ledger."""

    @pytest.mark.asyncio
    async def test_swap_exact_in(self, wallet):
        funded_account = await fund_account(wallet)
        protocol = DryRunSwapProtocol(funded_account, fee_rate=1)

        result = await protocol.swap({"tokenIn": "WETH", "tokenOut": "USDT", "tokenInAmount": WETH})

        assert result.hash.startswith("0x")
        assert result.token_in_amount == WETH
        assert result.token_out_amount == USDT_PER_WETH
        assert result.fee == SWAP_GAS
        assert await funded_account.get_token_balance("WETH") == WETH
        assert await funded_account.get_token_balance("USDT") == USDT_PER_WETH
        assert await funded_account.get_balance() == 9 * SWAP_GAS

        receipt = await funded_account.get_transaction_receipt(result.hash)
        assert receipt["token"] == "WETH"

    @pytest.mark.asyncio
    async def test_swap_exact_out(self, wallet):
        funded_account = await fund_account(wallet)
        protocol = DryRunSwapProtocol(funded_account, fee_rate=1)

        result = await protocol.swap(SwapOptions(token_in="WETH", token_out="USDT", token_out_amount=USDT_PER_WETH))

        assert result.token_in_amount == WETH
        assert await funded_account.get_token_balance("USDT") == USDT_PER_WETH

    @pytest.mark.asyncio
    async def test_swap_to_other_address(self, wallet):
        funded_account = await fund_account(wallet)
        protocol = DryRunSwapProtocol(funded_account, fee_rate=1)

        await protocol.swap({"tokenIn": "WETH", "tokenOut": "USDT", "tokenInAmount": WETH, "to": "0xfeed"})

        assert funded_account.ledger.balance("0xfeed", "USDT") == USDT_PER_WETH
        assert await funded_account.get_token_balance("USDT") == 0

    @pytest.mark.asyncio
    async def test_realized_amount_may_differ_from_quote(self, wallet):
        funded_account = await fund_account(wallet)
        protocol = DryRunSwapProtocol(funded_account, fee_rate=1, price_drift=Decimal("0.01"))
        options = {"tokenIn": "WETH", "tokenOut": "USDT", "tokenInAmount": WETH}

        quote = await protocol.quote_swap(options)
        result = await protocol.swap(options)

        assert quote.token_out_amount == USDT_PER_WETH
        assert result.token_out_amount == 3_849_417_000

    @pytest.mark.asyncio
    async def test_insufficient_token_balance(self, wallet):
        funded_account = await fund_account(wallet)
        protocol = DryRunSwapProtocol(funded_account, fee_rate=1)

        with pytest.raises(ProviderError):
            await protocol.swap({"tokenIn": "WETH", "tokenOut": "USDT", "tokenInAmount": 3 * WETH})

        assert await funded_account.get_token_balance("WETH") == 2 * WETH
        assert await funded_account.get_balance() == 10 * SWAP_GAS

    @pytest.mark.asyncio
    async def test_insufficient_gas(self, wallet):
        funded_account = await fund_account(wallet)
        await funded_account.debit(10 * SWAP_GAS, token=NATIVE)
        protocol = DryRunSwapProtocol(funded_account, fee_rate=1)

        with pytest.raises(ProviderError):
            await protocol.swap({"tokenIn": "WETH", "tokenOut": "USDT", "tokenInAmount": WETH})

        assert await funded_account.get_token_balance("WETH") == 2 * WETH

    @pytest.mark.asyncio
    async def test_disposed_account_cannot_swap(self, wallet):
        funded_account = await fund_account(wallet)
        protocol = DryRunSwapProtocol(funded_account, fee_rate=1)
        ledger = funded_account.ledger
        address = await funded_account.get_address()
        wallet.dispose()

        with pytest.raises(SignerDisposedError):
            await protocol.swap({"tokenIn": "WETH", "tokenOut": "USDT", "tokenInAmount": WETH})

        assert ledger.balance(address, "WETH") == 2 * WETH
        assert ledger.balance(address, "USDT") == 0

    @pytest.mark.asyncio
    async def test_max_fee_exceeded(self, wallet):
        funded_account = await fund_account(wallet)
        protocol = DryRunSwapProtocol(funded_account, {"swap_max_fee": SWAP_GAS - 1}, fee_rate=1)

        with pytest.raises(MaxFeeExceededError) as exc_info:
            await protocol.swap({"tokenIn": "WETH", "tokenOut": "USDT", "tokenInAmount": WETH})

        assert exc_info.value.operation == "swap"
        assert await funded_account.get_token_balance("WETH") == 2 * WETH

    @pytest.mark.asyncio
    async def test_max_fee_not_applied_to_quotes(self, wallet):
        funded_account = await fund_account(wallet)
        protocol = DryRunSwapProtocol(funded_account, {"swap_max_fee": 0}, fee_rate=1)

        quote = await protocol.quote_swap({"tokenIn": "WETH", "tokenOut": "USDT", "tokenInAmount": WETH})

        assert quote.fee == SWAP_GAS

    @pytest.mark.asyncio
    async def test_swap_with_plain_account(self, make_signer):
        protocol = DryRunSwapProtocol(WalletAccount(make_signer()), fee_rate=1)

        result = await protocol.swap({"tokenIn": "WETH", "tokenOut": "USDT", "tokenInAmount": WETH})

        assert result.hash.startswith("0x")
        assert result.token_out_amount == USDT_PER_WETH
