import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.errors import BackendError, Unauthorized, UpstreamUnavailable
from app.core.settings import settings

logger = logging.getLogger("BackendClient")

JSON = Any


class BackendClient:
    """
    Adapter to the upstream trading backend.
    Uses 'httpx' for non-blocking Async HTTP calls over one pooled connection set.

    Every call carries `Content-Type: application/json`; the caller's token (if any)
    is forwarded as `Authorization: Bearer <token>`. No retries happen here.
    """

    _instance = None

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.BACKEND_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.BACKEND_TIMEOUT_SECONDS
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def get_instance(cls):
        if cls._instance is None:
            cls._instance = BackendClient()
        return cls._instance

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self):
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def call(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        json: Optional[JSON] = None,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> JSON:
        """
        Executes one upstream request and returns the decoded JSON body.

        Raises:
            Unauthorized: upstream answered 401.
            BackendError: any other non-2xx; body is parsed JSON or {}.
            UpstreamUnavailable: transport failure or timeout.
        """
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        request_kwargs: Dict[str, Any] = {"headers": headers}
        if json is not None:
            request_kwargs["json"] = json
        if params:
            request_kwargs["params"] = params
        if timeout is not None:
            request_kwargs["timeout"] = timeout

        try:
            resp = await self._get_client().request(method, path, **request_kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"⏱️ {method} {path} timed out: {e}")
            raise UpstreamUnavailable(f"Trading backend timed out on {method} {path}") from e
        except httpx.TransportError as e:
            logger.warning(f"🔌 {method} {path} transport failure: {e}")
            raise UpstreamUnavailable(f"Trading backend unreachable on {method} {path}") from e

        if resp.status_code == 401:
            logger.warning(f"⚠️ {method} {path} -> 401 Unauthorized")
            raise Unauthorized()

        if not resp.is_success:
            body = _safe_json(resp)
            logger.error(f"❌ {method} {path} -> {resp.status_code}: {body}", extra={"upstream_status": resp.status_code})
            raise BackendError(resp.status_code, body if isinstance(body, dict) else {})

        if not resp.content:
            return {}
        return _safe_json(resp)

    # --- AI Models ---

    async def list_models(self, token: str) -> List[Dict[str, Any]]:
        return _as_list(await self.call("GET", "/api/models", token=token))

    async def upsert_models(self, token: str, models: Dict[str, Dict[str, Any]]) -> JSON:
        return await self.call("PUT", "/api/models", token=token, json={"models": models})

    async def list_supported_models(self) -> List[Dict[str, Any]]:
        return _as_list(await self.call("GET", "/api/supported-models"))

    # --- Exchanges ---

    async def list_exchanges(self, token: str) -> List[Dict[str, Any]]:
        return _as_list(await self.call("GET", "/api/exchanges", token=token))

    async def upsert_exchanges(self, token: str, exchanges: Dict[str, Dict[str, Any]]) -> JSON:
        return await self.call("PUT", "/api/exchanges", token=token, json={"exchanges": exchanges})

    # --- Traders (lifecycle) ---

    async def create_trader(self, token: str, payload: Dict[str, Any]) -> JSON:
        return await self.call("POST", "/api/traders", token=token, json=payload)

    async def update_trader(self, token: str, trader_id: str, payload: Dict[str, Any]) -> JSON:
        return await self.call("PUT", f"/api/traders/{trader_id}", token=token, json=payload)

    async def delete_trader(self, token: str, trader_id: str) -> JSON:
        return await self.call("DELETE", f"/api/traders/{trader_id}", token=token)

    async def start_trader(self, token: str, trader_id: str) -> JSON:
        return await self.call("POST", f"/api/traders/{trader_id}/start", token=token)

    async def stop_trader(self, token: str, trader_id: str) -> JSON:
        return await self.call("POST", f"/api/traders/{trader_id}/stop", token=token)

    async def get_trader_config(self, token: str, trader_id: str) -> JSON:
        return await self.call("GET", f"/api/traders/{trader_id}/config", token=token)

    async def list_my_traders(self, token: str) -> List[Dict[str, Any]]:
        data = await self.call("GET", "/api/my-traders", token=token)
        if isinstance(data, dict):
            return _as_list(data.get("traders"))
        return _as_list(data)

    # --- Live reads (keyed by trader_id) ---

    async def get_account(self, token: Optional[str], trader_id: str, timeout: Optional[float] = None) -> JSON:
        return await self._trader_read("/api/account", token, trader_id, timeout)

    async def get_positions(self, token: Optional[str], trader_id: str, timeout: Optional[float] = None) -> JSON:
        return await self._trader_read("/api/positions", token, trader_id, timeout)

    async def get_equity_history(self, token: Optional[str], trader_id: str, timeout: Optional[float] = None) -> JSON:
        return await self._trader_read("/api/equity-history", token, trader_id, timeout)

    async def get_performance(self, token: Optional[str], trader_id: str, timeout: Optional[float] = None) -> JSON:
        return await self._trader_read("/api/performance", token, trader_id, timeout)

    async def get_statistics(self, token: Optional[str], trader_id: str, timeout: Optional[float] = None) -> JSON:
        return await self._trader_read("/api/statistics", token, trader_id, timeout)

    async def get_decisions(self, token: str, trader_id: str) -> JSON:
        return await self._trader_read("/api/decisions", token, trader_id)

    async def get_latest_decisions(self, token: str, trader_id: str) -> JSON:
        return await self._trader_read("/api/decisions/latest", token, trader_id)

    async def _trader_read(self, path: str, token: Optional[str], trader_id: str, timeout: Optional[float] = None):
        return await self.call("GET", path, token=token, params={"trader_id": trader_id}, timeout=timeout)

    # --- Prompts ---

    async def list_prompt_templates(self) -> JSON:
        return await self.call("GET", "/api/prompt-templates")

    async def get_prompt_template(self, name: str) -> JSON:
        return await self.call("GET", f"/api/prompt-templates/{name}")

    async def update_trader_prompt(self, token: str, trader_id: str, payload: Dict[str, Any]) -> JSON:
        # Singular `trader` in this backend path
        return await self.call("PUT", f"/api/trader/{trader_id}/prompt", token=token, json=payload)

    # --- Public ---

    async def get_system_config(self) -> JSON:
        return await self.call("GET", "/api/system-config")

    async def get_competition(self) -> JSON:
        return await self.call("GET", "/api/competition")

    async def get_all_positions(self) -> JSON:
        return await self.call("GET", "/api/positions/all")


def _safe_json(resp: httpx.Response) -> JSON:
    # The upstream is not guaranteed to return JSON on error. NaN/Infinity
    # literals are read as null so nothing non-finite reaches a response body.
    try:
        return resp.json(parse_constant=lambda _: None)
    except ValueError:
        return {}


def _as_list(data: Any) -> List[Dict[str, Any]]:
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]


# Global Accessor
backend_client = BackendClient.get_instance()
