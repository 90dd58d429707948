"""
Esplora-compatible address queries answered from an Electrum server.

Electrum indexes by scripthash and only reports net balances, so the results
here are a reconciliation of what the protocol exposes:

- funded/spent output counts are always 0 (net balances carry no counts)
- funded/spent sums are derived from the sign of the net balance
- history is paginated with a last-seen-txid cursor, newest first
"""

from __future__ import annotations

import asyncio
import sys
from typing import Protocol

from loguru import logger

from addrindex.electrum.queries import ScriptHashQueries
from addrindex.models import (
    AddressStats,
    AddressValidation,
    ScriptHashBalance,
    ScriptHashHistoryEntry,
    Transaction,
    TxStats,
    Utxo,
)
from addrindex.scripthash import encode_scripthash

DEFAULT_PAGE_SIZE = 10

# Mempool entries sort ahead of every block height
UNCONFIRMED_SORT_HEIGHT = sys.maxsize


class AddressIndexError(Exception):
    """Upstream failure while answering an address query."""


class AddressNode(Protocol):
    async def validate_address(self, address: str) -> AddressValidation: ...

    async def get_transaction(
        self, txid: str, verbose: bool = False, include_status: bool = True
    ) -> Transaction: ...


class ProgressReporter(Protocol):
    def set_progress(self, key: str, percent: float) -> None: ...


def sort_history(history: list[ScriptHashHistoryEntry]) -> list[ScriptHashHistoryEntry]:
    """Newest first, mempool entries before confirmed ones. Ties keep node order."""
    return sorted(
        history,
        key=lambda entry: entry.height if entry.is_confirmed else UNCONFIRMED_SORT_HEIGHT,
        reverse=True,
    )


def find_page_start(history: list[ScriptHashHistoryEntry], last_seen_txid: str | None) -> int:
    """
    Index of the first entry after the cursor.

    An unknown cursor (e.g. the transaction was replaced or reorged out)
    restarts pagination from the newest entry.
    """
    if not last_seen_txid:
        return 0
    for index, entry in enumerate(history):
        if entry.tx_hash == last_seen_txid:
            return index + 1
    logger.debug(f"Cursor {last_seen_txid} not in history, restarting from first page")
    return 0


def reconcile_stats(
    address: str, balance: ScriptHashBalance, history: list[ScriptHashHistoryEntry]
) -> AddressStats:
    # Electrum only reports a fee for mempool entries
    unconfirmed = sum(1 for entry in history if entry.fee is not None)

    return AddressStats(
        address=address,
        chain_stats=TxStats(
            funded_txo_sum=balance.confirmed if balance.confirmed >= 0 else 0,
            # Negative net balance passed through as is
            spent_txo_sum=balance.confirmed if balance.confirmed < 0 else 0,
            tx_count=len(history) - unconfirmed,
        ),
        mempool_stats=TxStats(
            funded_txo_sum=balance.unconfirmed if balance.unconfirmed > 0 else 0,
            spent_txo_sum=-balance.unconfirmed if balance.unconfirmed < 0 else 0,
            tx_count=unconfirmed,
        ),
        electrum=True,
    )


def _upstream_error(e: Exception) -> AddressIndexError:
    return AddressIndexError(str(e) or type(e).__name__)


class ElectrumAddressApi:
    def __init__(
        self,
        node: AddressNode,
        queries: ScriptHashQueries,
        progress: ProgressReporter,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self.node = node
        self.queries = queries
        self.progress = progress
        # Esplora pages hold at most DEFAULT_PAGE_SIZE transactions
        self.page_size = max(1, min(page_size, DEFAULT_PAGE_SIZE))

    async def _resolve_script(self, address: str) -> AddressValidation | None:
        try:
            info = await self.node.validate_address(address)
        except Exception as e:
            logger.warning(f"Address validation failed for {address}: {e}")
            raise _upstream_error(e) from e

        if not info or not info.isvalid or info.script_pubkey is None:
            return None
        return info

    async def get_address(self, address: str) -> AddressStats:
        info = await self._resolve_script(address)
        if info is None:
            return AddressStats(address=address)

        scripthash = encode_scripthash(info.script_pubkey or "")
        try:
            balance, history = await asyncio.gather(
                self.queries.get_balance(scripthash),
                self.queries.get_history(scripthash),
            )
        except Exception as e:
            logger.warning(f"Failed to load stats for {address}: {e}")
            raise _upstream_error(e) from e

        return reconcile_stats(info.address or address, balance, history)

    async def get_address_transactions(
        self, address: str, last_seen_txid: str | None = None
    ) -> list[Transaction]:
        """
        One page of transactions touching the address, newest first.

        Progress under "address-<address>" goes from 0 to 100 while the page
        is fetched, and is forced to 100 on failure.
        """
        info = await self._resolve_script(address)
        if info is None:
            return []

        scripthash = encode_scripthash(info.script_pubkey or "")
        progress_key = f"address-{address}"
        self.progress.set_progress(progress_key, 0)

        try:
            history = sort_history(await self.queries.get_history(scripthash))
            start = find_page_start(history, last_seen_txid)
            page = history[start : start + self.page_size]
            if not page:
                self.progress.set_progress(progress_key, 100)

            transactions: list[Transaction] = []
            for done, entry in enumerate(page, start=1):
                tx = await self.node.get_transaction(
                    entry.tx_hash, verbose=False, include_status=True
                )
                transactions.append(tx)
                self.progress.set_progress(progress_key, done / len(page) * 100)

            logger.debug(
                f"Loaded {len(transactions)} of {len(history)} transactions for {address} "
                f"starting at {start}"
            )
            return transactions

        except Exception as e:
            self.progress.set_progress(progress_key, 100)
            logger.warning(f"Failed to load transactions for {address}: {e}")
            raise _upstream_error(e) from e

    async def get_address_utxos(self, address: str) -> list[Utxo]:
        info = await self._resolve_script(address)
        if info is None:
            return []

        scripthash = encode_scripthash(info.script_pubkey or "")
        try:
            utxos: list[Utxo] = []
            for entry in await self.queries.get_utxos(scripthash):
                # listunspent carries no confirmation status
                tx = await self.node.get_transaction(
                    entry.tx_hash, verbose=False, include_status=True
                )
                utxos.append(
                    Utxo(txid=entry.tx_hash, vout=entry.tx_pos, status=tx.status, value=entry.value)
                )
            return utxos

        except Exception as e:
            logger.warning(f"Failed to load UTXOs for {address}: {e}")
            raise _upstream_error(e) from e
