"""Pytest configuration and fixtures."""

import os
from typing import Callable

import httpx
import pytest
import pytest_asyncio

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["MOCK_MODE"] = "true"
os.environ["DEBUG"] = "true"

from liquidswap.charms.client import CharmsProverClient
from liquidswap.charms.models import ClientMode, SpellProveRequest
from liquidswap.charms.retry import RetryPolicy
from liquidswap.config import get_settings

PROVE_URL = "https://prover.test/spells/prove"

MINIMAL_SPELL = "version: 8\nstate: []\nclauses: []\n"

SWAP_SPELL_TEMPLATE = """\
version: 8
apps:
  $00: n/${app_id}/${app_vk}
ins:
  - utxo_id: ${funding_utxo}
    charms:
      $00: ${offer_amount}
outs:
  - address: ${maker_address}
    charms:
      $00: ${offer_amount}
"""


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test read settings from the current environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def prove_request() -> SpellProveRequest:
    """A valid proving payload."""
    return SpellProveRequest(
        spell=MINIMAL_SPELL,
        binaries={"app": b"\x00\x01\xff"},
        prev_txs=["0200000000abcdef"],
        funding_utxo="abc123:0",
        funding_utxo_value=10000,
        change_address="tb1qw508d6qejxtdg4y5r3zarvary0c5xw7kxpjzsx",
        fee_rate=2.5,
    )


@pytest_asyncio.fixture
async def live_client_factory(sleep_recorder):
    """Build LIVE clients whose HTTP traffic goes to a handler function."""
    http_clients: list[httpx.AsyncClient] = []

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> CharmsProverClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = CharmsProverClient(
            api_url=PROVE_URL,
            mode=ClientMode.LIVE,
            retry_policy=RetryPolicy(),
            http_client=http_client,
            sleep=sleep_recorder,
        )
        http_clients.append(http_client)
        return client

    yield factory

    for http_client in http_clients:
        await http_client.aclose()


@pytest.fixture
def minimal_spell() -> str:
    return MINIMAL_SPELL


@pytest.fixture
def swap_spell_template() -> str:
    return SWAP_SPELL_TEMPLATE


@pytest.fixture
def swap_variables() -> dict[str, str]:
    return {
        "app_id": "3d7f2a",
        "app_vk": "9c1e44",
        "funding_utxo": "abc123:0",
        "offer_amount": "1000",
        "maker_address": "tb1qw508d6qejxtdg4y5r3zarvary0c5xw7kxpjzsx",
    }
