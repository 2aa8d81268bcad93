"""Pytest configuration and fixtures."""

import os
from typing import Any, Optional

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"
os.environ["DRY_RUN"] = "true"
os.environ.pop("WALLET_SEED_PHRASE", None)

from walletkit.chains.dry_run import DryRunLedger, DryRunWalletManager
from walletkit.config import get_settings
from walletkit.signing.base import Signer
from walletkit.signing.local import Bip32Signer
from walletkit.wallet.manager import FeeRates

SEED_PHRASE = "cook voyage document eight skate token alien guide drink uncle term abuse"


class FakeSigner(Signer):
    """Signer without key material; counts dispose() calls."""

    def __init__(self, path: str = "m", index: Optional[int] = None):
        super().__init__(path=path, index=index)
        self.dispose_calls = 0
        self.derived: list["FakeSigner"] = []

    def derive(self, relative_path: str, config: Optional[dict[str, Any]] = None) -> "FakeSigner":
        self._check_active()
        child = FakeSigner(path=f"{self._path}/{relative_path}")
        self.derived.append(child)
        return child

    async def get_address(self) -> str:
        self._check_active()
        if self._address is None:
            self._address = f"fake:{self._path}"
        return self._address

    def dispose(self) -> None:
        self.dispose_calls += 1
        self._active = False


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Re-read settings from the environment for every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def root_signer() -> Bip32Signer:
    """Root ETH signer for the test seed phrase."""
    signer = Bip32Signer.from_seed_phrase(SEED_PHRASE, chain="ETH")
    yield signer
    signer.dispose()


@pytest.fixture
def fee_rates() -> FeeRates:
    return FeeRates(normal=1, fast=2)


@pytest.fixture
def ledger() -> DryRunLedger:
    return DryRunLedger()


@pytest.fixture
def wallet(root_signer, ledger, fee_rates) -> DryRunWalletManager:
    """Dry-run wallet manager with the test seed phrase as default signer."""
    manager = DryRunWalletManager(root_signer, ledger=ledger, fee_rates=fee_rates)
    yield manager
    manager.dispose()


@pytest.fixture
def seed_phrase() -> str:
    return SEED_PHRASE


@pytest.fixture
def make_signer():
    """Factory for key-less signers."""
    return FakeSigner
