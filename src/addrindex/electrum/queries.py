"""
Cached scripthash queries over an Electrum channel.
"""

from __future__ import annotations

from typing import Any, Protocol

from loguru import logger
from pydantic import ValidationError

from addrindex.cache import MemoryCache
from addrindex.electrum.channel import ElectrumChannelError
from addrindex.models import ScriptHashBalance, ScriptHashHistoryEntry, ScriptHashUTXO

DEFAULT_CACHE_TTL = 2.0  # seconds

OP_BALANCE = "Scripthash_getBalance"
OP_HISTORY = "Scripthash_getHistory"
OP_LISTUNSPENT = "Scripthash_listunspent"


class ScriptHashSource(Protocol):
    async def balance(self, scripthash: str) -> Any: ...

    async def history(self, scripthash: str) -> Any: ...

    async def list_unspent(self, scripthash: str) -> Any: ...


class ScriptHashQueries:
    """
    Read-through cache in front of the Electrum scripthash methods.

    Cached replies are frozen models; lists are stored as tuples and copied
    out on every hit.

    Failures are not retried here; reconnecting is the channel's job.
    """

    def __init__(
        self,
        source: ScriptHashSource,
        cache: MemoryCache,
        cache_ttl: float = DEFAULT_CACHE_TTL,
    ) -> None:
        self.source = source
        self.cache = cache
        self.cache_ttl = cache_ttl

    async def get_balance(self, scripthash: str) -> ScriptHashBalance:
        cached = self.cache.get(OP_BALANCE, scripthash)
        if cached is not None:
            return cached

        reply = await self.source.balance(scripthash)
        balance = _parse(ScriptHashBalance, reply, "get_balance")
        self.cache.set(OP_BALANCE, scripthash, balance, self.cache_ttl)
        return balance

    async def get_history(self, scripthash: str) -> list[ScriptHashHistoryEntry]:
        cached = self.cache.get(OP_HISTORY, scripthash)
        if cached is not None:
            logger.debug(f"History cache hit for {scripthash}")
            return list(cached)

        reply = await self.source.history(scripthash)
        history = _parse_list(ScriptHashHistoryEntry, reply, "get_history")
        self.cache.set(OP_HISTORY, scripthash, tuple(history), self.cache_ttl)
        return history

    async def get_utxos(self, scripthash: str) -> list[ScriptHashUTXO]:
        cached = self.cache.get(OP_LISTUNSPENT, scripthash)
        if cached is not None:
            logger.debug(f"UTXO cache hit for {scripthash}")
            return list(cached)

        reply = await self.source.list_unspent(scripthash)
        utxos = _parse_list(ScriptHashUTXO, reply, "listunspent")
        self.cache.set(OP_LISTUNSPENT, scripthash, tuple(utxos), self.cache_ttl)
        return utxos


def _parse(model: Any, reply: Any, method: str) -> Any:
    try:
        return model.model_validate(reply)
    except ValidationError as e:
        raise ElectrumChannelError(f"Malformed {method} reply: {e}") from e


def _parse_list(model: Any, reply: Any, method: str) -> list[Any]:
    if not isinstance(reply, list):
        raise ElectrumChannelError(f"Malformed {method} reply: expected list, got {reply!r}")
    return [_parse(model, item, method) for item in reply]
