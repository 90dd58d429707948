"""
addrindex - Esplora-style address index backed by an Electrum server

Translates address queries into Electrum scripthash queries and reconciles
the replies into the Esplora address, transaction and UTXO shapes.
"""

__version__ = "0.1.0"

from addrindex.api import AddressIndexError, ElectrumAddressApi
from addrindex.bitcoind import BitcoindClient, BitcoindRpcError
from addrindex.cache import MemoryCache
from addrindex.electrum import ElectrumChannel, ElectrumChannelError, ScriptHashQueries
from addrindex.models import (
    AddressStats,
    ScriptHashBalance,
    ScriptHashHistoryEntry,
    ScriptHashUTXO,
    Transaction,
    TransactionStatus,
    TxStats,
    Utxo,
)
from addrindex.progress import LoadingIndicators
from addrindex.scripthash import ScriptHashEncodingError, encode_scripthash

__all__ = [
    "AddressIndexError",
    "AddressStats",
    "BitcoindClient",
    "BitcoindRpcError",
    "ElectrumAddressApi",
    "ElectrumChannel",
    "ElectrumChannelError",
    "LoadingIndicators",
    "MemoryCache",
    "ScriptHashBalance",
    "ScriptHashEncodingError",
    "ScriptHashHistoryEntry",
    "ScriptHashQueries",
    "ScriptHashUTXO",
    "Transaction",
    "TransactionStatus",
    "TxStats",
    "Utxo",
    "encode_scripthash",
]
