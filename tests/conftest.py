import json
from typing import Any, Dict, List, Set, Tuple
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from app.adapters.backend_client import BackendClient
from app.core.settings import Settings

PUBLIC_PATHS = {"/api/competition", "/api/positions/all", "/api/supported-models", "/api/health", "/api/system-config"}


class FakeTradingBackend:
    """
    In-memory stand-in for the upstream trading backend, served through
    httpx.MockTransport. Records every (method, path) it receives.
    """

    def __init__(self):
        self.models: List[Dict[str, Any]] = []
        self.exchanges: List[Dict[str, Any]] = [{"id": "binance", "type": "cex", "enabled": True}]
        self.traders: Dict[str, Dict[str, Any]] = {}
        self.positions: Dict[str, List[Dict[str, Any]]] = {}
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self.competition: List[Dict[str, Any]] = []
        self.prompt_templates: Dict[str, str] = {"default": "You are a disciplined crypto trader."}
        self.system_config: Dict[str, Any] = {"admin_mode": False, "beta_mode": True}
        # path -> raw response body, for payloads json= cannot encode (NaN)
        self.raw: Dict[str, bytes] = {}
        self.failing: Set[str] = set()
        self.calls: List[Tuple[str, str]] = []
        self.bodies: List[Tuple[str, str, Any]] = []

    def count(self, method: str, path: str) -> int:
        return sum(1 for c in self.calls if c == (method, path))

    def add_trader(self, trader_id: str, **fields) -> Dict[str, Any]:
        trader = {
            "trader_id": trader_id,
            "trader_name": fields.pop("name", trader_id),
            "ai_model_id": "deepseek",
            "exchange_id": "binance",
            "initial_balance": 1000.0,
            "is_running": False,
            "trading_symbols": "BTCUSDT,ETHUSDT",
        }
        trader.update(fields)
        self.traders[trader_id] = trader
        return trader

    def _json(self, status: int, data: Any) -> httpx.Response:
        return httpx.Response(status, json=data)

    def handler(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        self.calls.append((method, path))
        body = json.loads(request.content) if request.content else None
        self.bodies.append((method, path, body))

        if path in self.failing:
            return httpx.Response(503, text="upstream exploded")

        public = path in PUBLIC_PATHS or path.startswith("/api/prompt-templates")
        if not public and not request.headers.get("Authorization", "").startswith("Bearer "):
            return self._json(401, {"error": "unauthorized"})

        if path in self.raw:
            return httpx.Response(200, content=self.raw[path], headers={"Content-Type": "application/json"})

        trader_id = request.url.params.get("trader_id")
        parts = path.strip("/").split("/")

        if path == "/api/prompt-templates":
            return self._json(200, {"templates": [{"name": n} for n in self.prompt_templates]})

        if parts[:2] == ["api", "prompt-templates"] and len(parts) == 3:
            if parts[2] not in self.prompt_templates:
                return self._json(404, {"error": "template not found"})
            return self._json(200, {"name": parts[2], "content": self.prompt_templates[parts[2]]})

        if path == "/api/system-config":
            return self._json(200, self.system_config)

        if parts[:2] == ["api", "trader"] and parts[-1:] == ["prompt"] and method == "PUT":
            trader = self.traders.get(parts[2])
            if trader is None:
                return self._json(404, {"error": "trader not found"})
            trader.update(body)
            return self._json(200, {"message": "prompt updated"})

        if path == "/api/models":
            if method == "GET":
                return self._json(200, self.models)
            for model_id, cfg in body["models"].items():
                self._upsert(self.models, model_id, {"provider": model_id, **cfg})
            return self._json(200, {"message": "ok"})

        if path == "/api/exchanges":
            if method == "GET":
                return self._json(200, self.exchanges)
            for exchange_id, cfg in body["exchanges"].items():
                self._upsert(self.exchanges, exchange_id, {"type": "dex", **cfg})
            return self._json(200, {"message": "ok"})

        if path == "/api/traders" and method == "POST":
            new_id = f"trader_{len(self.traders) + 1}"
            trader = self.add_trader(new_id, name=body["name"], **{k: v for k, v in body.items() if k != "name"})
            return self._json(201, trader)

        if path == "/api/my-traders":
            return self._json(200, list(self.traders.values()))

        if len(parts) >= 3 and parts[:2] == ["api", "traders"]:
            trader = self.traders.get(parts[2])
            if trader is None:
                return self._json(404, {"error": "trader not found"})
            action = parts[3] if len(parts) > 3 else None
            if action == "config":
                return self._json(200, trader)
            if action == "stop":
                trader["is_running"] = False
                return self._json(200, {"message": "trader stopped"})
            if action == "start":
                trader["is_running"] = True
                return self._json(200, {"message": "trader started"})
            if method == "PUT":
                trader.update(body)
                return self._json(200, trader)
            if method == "DELETE":
                del self.traders[parts[2]]
                return self._json(200, {"message": "deleted"})

        if path == "/api/positions":
            return self._json(200, self.positions.get(trader_id, []))

        if path == "/api/account":
            if trader_id in self.accounts:
                return self._json(200, self.accounts[trader_id])
            return self._json(500, {"error": "account unavailable"})

        if path == "/api/equity-history":
            return self._json(200, [{"timestamp": "2026-10-19T00:00:00Z", "total_equity": 1000.0}])

        if path in ("/api/performance", "/api/statistics"):
            return self._json(200, {"win_rate": 55.0, "total_trades": 12})

        if path == "/api/competition":
            return self._json(200, {"traders": self.competition})

        return self._json(404, {"error": f"no route {method} {path}"})

    @staticmethod
    def _upsert(items: List[Dict[str, Any]], item_id: str, cfg: Dict[str, Any]):
        for item in items:
            if item["id"] == item_id:
                item.update(cfg)
                return
        items.append({"id": item_id, **cfg})


@pytest.fixture
def fake_backend():
    return FakeTradingBackend()


@pytest.fixture
def backend(fake_backend):
    """A real BackendClient wired to the fake backend."""
    return BackendClient(base_url="http://backend.test", timeout=5.0, transport=httpx.MockTransport(fake_backend.handler))


@pytest.fixture
def test_settings():
    return Settings(
        DEEPSEEK_API_KEY="sk-test-deepseek",
        WALLET_VENUES=["hyperliquid"],
        DASHBOARD_READ_TIMEOUT_SECONDS=0.5,
    )


@pytest.fixture
def mock_backend():
    """
    Replaces the BackendClient with a Mock.
    Async methods must return Awaitables.
    """
    mock = MagicMock(spec=BackendClient)
    mock.list_models = AsyncMock(return_value=[])
    mock.upsert_models = AsyncMock(return_value={})
    mock.list_exchanges = AsyncMock(return_value=[])
    mock.upsert_exchanges = AsyncMock(return_value={})
    mock.create_trader = AsyncMock(return_value={"trader_id": "t-1"})
    mock.delete_trader = AsyncMock(return_value={})
    return mock


