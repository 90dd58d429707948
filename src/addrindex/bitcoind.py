"""
Bitcoin Core RPC collaborator.

Only the two calls the address index needs: address validation (to obtain
the scriptPubKey) and transaction lookup in Esplora shape.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from addrindex.models import AddressValidation, Transaction, TransactionStatus

DEFAULT_RPC_TIMEOUT = 30.0

SATS_PER_BTC = 100_000_000


class BitcoindRpcError(ValueError):
    """Error object returned by Bitcoin Core."""


def btc_to_sats(amount: float | int) -> int:
    return int(round(amount * SATS_PER_BTC))


def convert_vin(vin: dict[str, Any]) -> dict[str, Any]:
    if "coinbase" in vin:
        return {
            "is_coinbase": True,
            "scriptsig": vin["coinbase"],
            "witness": vin.get("txinwitness", []),
            "sequence": vin.get("sequence"),
        }

    script_sig = vin.get("scriptSig", {})
    return {
        "txid": vin["txid"],
        "vout": vin["vout"],
        "is_coinbase": False,
        "scriptsig": script_sig.get("hex", ""),
        "scriptsig_asm": script_sig.get("asm", ""),
        "witness": vin.get("txinwitness", []),
        "sequence": vin.get("sequence"),
    }


def convert_vout(vout: dict[str, Any]) -> dict[str, Any]:
    script_pub_key = vout.get("scriptPubKey", {})
    converted = {
        "scriptpubkey": script_pub_key.get("hex", ""),
        "scriptpubkey_asm": script_pub_key.get("asm", ""),
        "scriptpubkey_type": script_pub_key.get("type", ""),
        "value": btc_to_sats(vout.get("value", 0)),
    }
    address = script_pub_key.get("address")
    if address:
        converted["scriptpubkey_address"] = address
    return converted


class BitcoindClient:
    """
    Minimal async JSON-RPC client for Bitcoin Core.

    getrawtransaction on confirmed transactions needs a node running with
    txindex=1.
    """

    def __init__(
        self,
        rpc_url: str = "http://127.0.0.1:8332",
        rpc_user: str = "rpcuser",
        rpc_password: str = "rpcpassword",
        timeout: float = DEFAULT_RPC_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.rpc_url = rpc_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout, auth=(rpc_user, rpc_password))
        self._request_id = 0

    async def _rpc_call(self, method: str, params: list | None = None) -> Any:
        """
        Make an RPC call to Bitcoin Core.

        Raises:
            BitcoindRpcError: On RPC errors
            httpx.HTTPError: On connection/timeout errors
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }

        try:
            response = await self.client.post(self.rpc_url, json=payload)
            # Bitcoin Core answers RPC errors with HTTP 500 and a JSON body
            if response.status_code != 500:
                response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"RPC call failed: {method} - {e}")
            raise

        if data.get("error"):
            error_info = data["error"]
            error_code = error_info.get("code", "unknown")
            error_msg = error_info.get("message", str(error_info))
            raise BitcoindRpcError(f"RPC error {error_code}: {error_msg}")

        return data.get("result")

    async def validate_address(self, address: str) -> AddressValidation:
        result = await self._rpc_call("validateaddress", [address])
        return AddressValidation.model_validate(result or {})

    async def get_transaction(
        self, txid: str, verbose: bool = False, include_status: bool = True
    ) -> Transaction:
        """
        Fetch a transaction and convert it to Esplora shape.

        Args:
            txid: Transaction id
            verbose: Include the raw transaction hex
            include_status: Resolve block height for confirmed transactions
        """
        tx_data = await self._rpc_call("getrawtransaction", [txid, True])

        status = TransactionStatus()
        if tx_data.get("blockhash") and tx_data.get("confirmations", 0) > 0:
            status = TransactionStatus(
                confirmed=True,
                block_hash=tx_data["blockhash"],
                block_time=tx_data.get("blocktime"),
            )
            if include_status:
                header = await self._rpc_call("getblockheader", [tx_data["blockhash"]])
                status.block_height = header.get("height")
                status.block_time = header.get("time", status.block_time)

        return Transaction(
            txid=tx_data["txid"],
            version=tx_data.get("version", 1),
            locktime=tx_data.get("locktime", 0),
            vin=[convert_vin(vin) for vin in tx_data.get("vin", [])],
            vout=[convert_vout(vout) for vout in tx_data.get("vout", [])],
            size=tx_data.get("size", 0),
            weight=tx_data.get("weight", 0),
            status=status,
            hex=tx_data.get("hex") if verbose else None,
        )

    async def close(self) -> None:
        await self.client.aclose()
