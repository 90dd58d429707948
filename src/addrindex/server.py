"""
HTTP server exposing the Esplora address routes.
"""

from __future__ import annotations

import contextlib
from typing import Any

from aiohttp import web
from loguru import logger

from addrindex.api import AddressIndexError, ElectrumAddressApi
from addrindex.config import Settings
from addrindex.electrum.channel import ElectrumChannel
from addrindex.progress import LoadingIndicators


class AddressIndexServer:
    def __init__(
        self,
        settings: Settings,
        api: ElectrumAddressApi,
        loading_indicators: LoadingIndicators,
        channel: ElectrumChannel | None = None,
    ) -> None:
        self.settings = settings
        self.api = api
        self.loading_indicators = loading_indicators
        self.channel = channel
        self.app = web.Application()
        self.runner: web.AppRunner | None = None
        self.site: web.TCPSite | None = None
        self._setup_routes()

    def _setup_routes(self) -> None:
        self.app.router.add_get("/api/address/{address}", self._handle_address)
        self.app.router.add_get("/api/address/{address}/txs", self._handle_address_txs)
        self.app.router.add_get(
            "/api/address/{address}/txs/chain/{last_seen_txid}", self._handle_address_txs
        )
        self.app.router.add_get("/api/address/{address}/utxo", self._handle_address_utxo)
        self.app.router.add_get("/api/loading-indicators", self._handle_loading_indicators)
        self.app.router.add_get("/health", self._handle_health)

    @staticmethod
    def _error_response(e: AddressIndexError) -> web.Response:
        return web.json_response({"error": str(e)}, status=500)

    async def _handle_address(self, request: web.Request) -> web.Response:
        address = request.match_info["address"]
        try:
            stats = await self.api.get_address(address)
        except AddressIndexError as e:
            return self._error_response(e)
        return web.json_response(stats.model_dump(exclude_none=True))

    async def _handle_address_txs(self, request: web.Request) -> web.Response:
        address = request.match_info["address"]
        last_seen_txid = request.match_info.get("last_seen_txid")
        try:
            transactions = await self.api.get_address_transactions(address, last_seen_txid)
        except AddressIndexError as e:
            return self._error_response(e)
        return web.json_response([tx.model_dump(exclude_none=True) for tx in transactions])

    async def _handle_address_utxo(self, request: web.Request) -> web.Response:
        address = request.match_info["address"]
        try:
            utxos = await self.api.get_address_utxos(address)
        except AddressIndexError as e:
            return self._error_response(e)
        return web.json_response([utxo.model_dump(exclude_none=True) for utxo in utxos])

    async def _handle_loading_indicators(self, _request: web.Request) -> web.Response:
        return web.json_response(self.loading_indicators.get_all())

    async def _handle_health(self, _request: web.Request) -> web.Response:
        connected = self.channel.connected if self.channel else False
        body: dict[str, Any] = {
            "status": "healthy" if connected else "degraded",
            "network": self.settings.network,
            "electrum_connected": connected,
        }
        return web.json_response(body)

    async def start(self) -> None:
        logger.info(
            f"Starting address index server on {self.settings.http_host}:{self.settings.http_port}"
        )

        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        self.site = web.TCPSite(self.runner, self.settings.http_host, self.settings.http_port)
        await self.site.start()

        logger.info(
            f"Address index running at http://{self.settings.http_host}:{self.settings.http_port}/api"
        )

    async def stop(self) -> None:
        logger.info("Stopping address index server...")

        if self.site:
            with contextlib.suppress(RuntimeError):
                await self.site.stop()
            self.site = None

        if self.runner:
            with contextlib.suppress(RuntimeError):
                await self.runner.cleanup()
            self.runner = None

        logger.info("Address index server stopped")
