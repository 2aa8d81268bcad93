"""Tests for signers, seed phrases and registries."""

import pytest

from walletkit.chains import get_chain_params, get_supported_chains
from walletkit.errors import (
    InvalidArgumentError,
    InvalidDerivationPathError,
    SignerDisposedError,
)
from walletkit.seed import generate_seed_phrase, is_valid_seed_phrase
from walletkit.signing.local import Bip32Signer, normalize_relative_path
from walletkit.signing.registry import DEFAULT_SIGNER_NAME, Registry, SignerRegistry


class TestSeedPhrase:
    """Tests for BIP-39 helpers."""

    def test_generate_default_length(self):
        phrase = generate_seed_phrase()

        assert len(phrase.split()) == 12
        assert is_valid_seed_phrase(phrase)

    def test_generate_24_words(self):
        phrase = generate_seed_phrase(24)
        assert len(phrase.split()) == 24

    def test_generate_is_random(self):
        assert generate_seed_phrase() != generate_seed_phrase()

    def test_unsupported_length(self):
        with pytest.raises(InvalidArgumentError):
            generate_seed_phrase(13)

    @pytest.mark.parametrize("value", ["", "   ", None, 42, "invalid seed phrase"])
    def test_invalid_phrases(self, value):
        assert is_valid_seed_phrase(value) is False

    def test_known_phrase_valid(self, seed_phrase):
        assert is_valid_seed_phrase(seed_phrase) is True


class TestNormalizePath:
    """Tests for relative derivation path parsing."""

    @pytest.mark.parametrize("raw,expected", [
        ("0'/0/0", "0'/0/0"),
        ("0h/0/5", "0'/0/5"),
        ("3p/1", "3'/1"),
        ("7", "7"),
        ("0'/0/1/", "0'/0/1"),
    ])
    def test_valid_paths(self, raw, expected):
        assert normalize_relative_path(raw) == expected

    @pytest.mark.parametrize("raw", [
        "",
        "   ",
        "m/44'/60'/0'",
        "0'//0",
        "a/0",
        "-1",
        "2147483648",
        None,
    ])
    def test_invalid_paths(self, raw):
        with pytest.raises(InvalidDerivationPathError):
            normalize_relative_path(raw)


class TestBip32Signer:
    """Tests for the local BIP-32 signer."""

    def test_invalid_seed_rejected(self):
        with pytest.raises(InvalidArgumentError):
            Bip32Signer.from_seed_phrase("invalid seed phrase")

    def test_unknown_chain_rejected(self, seed_phrase):
        with pytest.raises(InvalidArgumentError):
            Bip32Signer.from_seed_phrase(seed_phrase, chain="DOGE")

    def test_root_path(self, root_signer):
        assert root_signer.path == "m/44'/60'"
        assert root_signer.chain == "ETH"
        assert root_signer.is_active

    def test_derive_path_and_index(self, root_signer):
        child = root_signer.derive("0'/0/3")

        assert child.path == "m/44'/60'/0'/0/3"
        assert child.index == 3
        assert root_signer.path == "m/44'/60'"

    def test_derive_normalizes_hardened_marker(self, root_signer):
        assert root_signer.derive("1h/0/0").path == "m/44'/60'/1'/0/0"

    def test_derive_invalid_path(self, root_signer):
        with pytest.raises(InvalidDerivationPathError):
            root_signer.derive("m/0")

    @pytest.mark.asyncio
    async def test_eth_address_format(self, root_signer):
        address = await root_signer.derive("0'/0/0").get_address()

        assert address.startswith("0x")
        assert len(address) == 42

    @pytest.mark.asyncio
    async def test_trx_address_format(self, seed_phrase):
        signer = Bip32Signer.from_seed_phrase(seed_phrase, chain="TRX")
        address = await signer.derive("0'/0/0").get_address()

        assert signer.path == "m/44'/195'"
        assert address.startswith("T")
        assert len(address) == 34

    @pytest.mark.asyncio
    async def test_derivation_is_deterministic(self, root_signer, seed_phrase):
        other_root = Bip32Signer.from_seed_phrase(seed_phrase)

        first = await root_signer.derive("0'/0/0").get_address()
        second = await other_root.derive("0'/0/0").get_address()
        sibling = await root_signer.derive("0'/0/1").get_address()

        assert first == second
        assert first != sibling

    @pytest.mark.asyncio
    async def test_address_cached(self, root_signer):
        child = root_signer.derive("0'/0/0")
        assert child.address is None

        address = await child.get_address()
        assert child.address == address

    @pytest.mark.asyncio
    async def test_passphrase_changes_keys(self, seed_phrase):
        plain = Bip32Signer.from_seed_phrase(seed_phrase)
        protected = Bip32Signer.from_seed_phrase(seed_phrase, passphrase="secret")

        assert await plain.get_address() != await protected.get_address()

    def test_private_key_length(self, root_signer):
        assert len(root_signer.private_key) == 32

    @pytest.mark.asyncio
    async def test_dispose(self, root_signer):
        child = root_signer.derive("0'/0/0")
        await child.get_address()

        child.dispose()

        assert child.is_active is False
        with pytest.raises(SignerDisposedError):
            await child.get_address()
        with pytest.raises(SignerDisposedError):
            child.derive("0")
        with pytest.raises(SignerDisposedError):
            child.private_key
        with pytest.raises(SignerDisposedError):
            child.address

    def test_dispose_zeroes_key_buffer(self, root_signer):
        child = root_signer.derive("0'/0/0")
        buffer = child._private_key

        child.dispose()

        assert all(b == 0 for b in buffer)

    def test_dispose_idempotent(self, root_signer):
        child = root_signer.derive("0'/0/0")
        child.dispose()
        child.dispose()

        assert child.is_active is False

    def test_dispose_child_keeps_parent(self, root_signer):
        root_signer.derive("0'/0/0").dispose()
        assert root_signer.is_active


class TestChains:
    """Tests for chain parameter lookup."""

    def test_case_insensitive(self):
        assert get_chain_params("trx").coin_type == 195

    def test_supported_chains(self):
        chains = get_supported_chains()
        assert "ETH" in chains
        assert "TRX" in chains

    def test_unknown_chain(self):
        with pytest.raises(InvalidArgumentError):
            get_chain_params("XYZ")


class TestRegistry:
    """Tests for named registries."""

    def test_last_write_wins(self, make_signer):
        registry = Registry(kind="signer")
        first, second = make_signer(), make_signer()

        registry.set("a", first)
        registry.set("a", second)

        assert registry.get("a") is second
        assert len(registry) == 1

    def test_missing_returns_none(self):
        assert Registry().get("missing") is None

    @pytest.mark.parametrize("name", ["", None])
    def test_invalid_name(self, name, make_signer):
        with pytest.raises(InvalidArgumentError):
            Registry().set(name, make_signer())

    def test_none_entry_rejected(self):
        with pytest.raises(InvalidArgumentError):
            Registry().set("a", None)

    def test_snapshot_is_a_copy(self, make_signer):
        registry = Registry()
        registry.set("a", make_signer())

        snapshot = registry.snapshot()
        snapshot.clear()

        assert "a" in registry

    def test_dispose_all_disposes_each_entry_once(self, make_signer):
        registry = Registry()
        shared = make_signer()
        already_disposed = make_signer()
        already_disposed.dispose()

        registry.set("a", shared)
        registry.set("b", shared)
        registry.set("c", already_disposed)

        disposed = registry.dispose_all()

        assert disposed == 1
        assert shared.dispose_calls == 1
        assert already_disposed.dispose_calls == 1
        assert len(registry) == 0

    def test_dispose_all_continues_after_failure(self, make_signer):
        class BrokenSigner(make_signer):
            def dispose(self):
                super().dispose()
                raise RuntimeError("wipe failed")

        registry = Registry(kind="signer")
        before, broken, after = make_signer(), BrokenSigner(), make_signer()
        registry.set("a", before)
        registry.set("b", broken)
        registry.set("c", after)

        with pytest.raises(RuntimeError, match="wipe failed"):
            registry.dispose_all()

        assert before.is_active is False
        assert after.is_active is False
        assert len(registry) == 0

    def test_signer_registry_requires_default(self):
        with pytest.raises(InvalidArgumentError):
            SignerRegistry(None)

    def test_signer_registry_default(self, make_signer):
        signer = make_signer()
        registry = SignerRegistry(signer)

        assert registry.get(DEFAULT_SIGNER_NAME) is signer
