"""
Pytest fixtures for token_issuer tests. A fake async RPC client stands in for the
network; it verifies signatures and keeps a tiny ledger of initialized mints.
"""

from __future__ import annotations

import base58
import pytest
from solders.keypair import Keypair

from tests.helpers import FakeLedger, FakeRpcClient
from token_issuer.config import IssuanceParams, resolve


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def client_factory(ledger):
    """Returns make(**behaviour) -> factory; created clients are collected on factory.clients."""

    def make(**behaviour):
        clients: list[FakeRpcClient] = []

        def factory(endpoint: str) -> FakeRpcClient:
            client = FakeRpcClient(endpoint, ledger, **behaviour)
            clients.append(client)
            return client

        factory.clients = clients  # type: ignore[attr-defined]
        return factory

    return make


@pytest.fixture
def wallet() -> Keypair:
    return Keypair()


@pytest.fixture
def env(wallet) -> dict[str, str]:
    return {"SECRET_KEY": base58.b58encode(bytes(wallet)).decode("ascii")}


@pytest.fixture
def params() -> IssuanceParams:
    return IssuanceParams(
        network_endpoint="https://api.devnet.solana.com",
        token_name="Utherverse",
        token_symbol="UTHR",
        metadata_uri="https://example.com/metadata.json",
        total_supply_base_units=1_000_000_000,
        decimals=9,
    )


@pytest.fixture
def request_(env, params):
    """Resolved IssuanceRequest (named with a trailing underscore to avoid pytest's `request`)."""
    return resolve(env, params)
