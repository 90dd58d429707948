"""
Data models for Electrum replies and Esplora-shaped API results.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ScriptHashBalance(BaseModel):
    """Net balance reported by blockchain.scripthash.get_balance (sats)."""

    confirmed: int = 0
    unconfirmed: int = 0

    model_config = {"frozen": True}


class ScriptHashHistoryEntry(BaseModel):
    tx_hash: str = Field(..., min_length=64, max_length=64)
    # 0: mempool with confirmed inputs, -1: mempool with unconfirmed inputs
    height: int = 0
    # Only present for mempool entries
    fee: int | None = None

    @property
    def is_confirmed(self) -> bool:
        return self.height > 0

    model_config = {"frozen": True}


class ScriptHashUTXO(BaseModel):
    tx_hash: str = Field(..., min_length=64, max_length=64)
    tx_pos: int = Field(..., ge=0)
    value: int = Field(..., ge=0)
    height: int = 0

    model_config = {"frozen": True}


class AddressValidation(BaseModel):
    """Subset of the node's validateaddress reply."""

    isvalid: bool = False
    address: str | None = None
    script_pubkey: str | None = Field(default=None, alias="scriptPubKey")

    model_config = {"populate_by_name": True}


class TxStats(BaseModel):
    funded_txo_count: int = 0
    funded_txo_sum: int = 0
    spent_txo_count: int = 0
    spent_txo_sum: int = 0
    tx_count: int = 0


class AddressStats(BaseModel):
    address: str
    chain_stats: TxStats = Field(default_factory=TxStats)
    mempool_stats: TxStats = Field(default_factory=TxStats)
    # Marks results reconciled from Electrum data
    electrum: bool | None = None


class TransactionStatus(BaseModel):
    confirmed: bool = False
    block_height: int | None = None
    block_hash: str | None = None
    block_time: int | None = None


class Transaction(BaseModel):
    txid: str
    version: int = 1
    locktime: int = 0
    vin: list[dict[str, Any]] = Field(default_factory=list)
    vout: list[dict[str, Any]] = Field(default_factory=list)
    size: int = 0
    weight: int = 0
    fee: int | None = None
    status: TransactionStatus = Field(default_factory=TransactionStatus)
    hex: str | None = None


class Utxo(BaseModel):
    txid: str
    vout: int
    status: TransactionStatus
    value: int
