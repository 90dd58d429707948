"""
Test fixtures and configuration.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from addrindex.api import ElectrumAddressApi
from addrindex.cache import MemoryCache
from addrindex.electrum.queries import ScriptHashQueries
from addrindex.models import AddressValidation, Transaction, TransactionStatus
from addrindex.progress import LoadingIndicators

# Genesis block coinbase address, the Electrum protocol documentation example
GENESIS_ADDRESS = "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa"
GENESIS_SCRIPT = "76a91462e907b15cbf27d5425399ebf6f0fb50ebb88f1888ac"
GENESIS_SCRIPTHASH = "8b01df4e368ea28f8dc0423bcf7a4923e3a12d307c875e47a0cfbf90b5c39161"


def make_txid(n: int) -> str:
    return f"{n:064x}"


def confirmed_status(height: int) -> TransactionStatus:
    return TransactionStatus(
        confirmed=True,
        block_height=height,
        block_hash=f"{height:064x}",
        block_time=1_600_000_000 + height,
    )


@pytest.fixture
def node() -> MagicMock:
    """Node collaborator that knows the genesis address and echoes any txid."""
    mock = MagicMock()
    mock.validate_address = AsyncMock(
        return_value=AddressValidation(
            isvalid=True, address=GENESIS_ADDRESS, scriptPubKey=GENESIS_SCRIPT
        )
    )

    async def get_transaction(
        txid: str, verbose: bool = False, include_status: bool = True
    ) -> Transaction:
        return Transaction(txid=txid, status=TransactionStatus())

    mock.get_transaction = AsyncMock(side_effect=get_transaction)
    return mock


@pytest.fixture
def source() -> MagicMock:
    """Electrum channel stand-in with empty replies."""
    mock = MagicMock()
    mock.balance = AsyncMock(return_value={"confirmed": 0, "unconfirmed": 0})
    mock.history = AsyncMock(return_value=[])
    mock.list_unspent = AsyncMock(return_value=[])
    return mock


@pytest.fixture
def cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def loading_indicators() -> LoadingIndicators:
    return LoadingIndicators()


@pytest.fixture
def api(
    node: MagicMock,
    source: MagicMock,
    cache: MemoryCache,
    loading_indicators: LoadingIndicators,
) -> ElectrumAddressApi:
    return ElectrumAddressApi(
        node=node,
        queries=ScriptHashQueries(source, cache),
        progress=loading_indicators,
    )
