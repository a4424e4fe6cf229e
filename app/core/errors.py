from typing import Any, Dict, Optional


class GatewayError(Exception):
    """Base for every failure the gateway renders to its own callers."""

    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


class Unauthorized(GatewayError):
    """Missing or rejected bearer token. Never retried."""

    status_code = 401
    default_message = "Unauthorized"


class MissingConfiguration(GatewayError):
    """
    The deployment lacks a secret it needs (e.g. a provider API key).
    Actionable by an operator, not the end user, so it maps to 400.
    """

    status_code = 400

    def __init__(self, secret_name: str):
        self.secret_name = secret_name
        super().__init__(f"Server is missing required configuration: {secret_name}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["missing"] = self.secret_name
        return data


class UpstreamUnavailable(GatewayError):
    """Network failure or timeout talking to the trading backend. Safe to retry later."""

    status_code = 502
    default_message = "Trading backend unavailable"


class UpstreamRejected(GatewayError):
    """The trading backend answered with a non-2xx status."""

    def __init__(self, status: int, reason: Optional[str] = None, body: Optional[Dict[str, Any]] = None):
        self.status = status
        self.status_code = status if 400 <= status < 600 else 502
        self.reason = reason
        self.body = body if body is not None else {}
        super().__init__(reason or f"Trading backend returned HTTP {status}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["upstream_status"] = self.status
        return data


class BackendError(UpstreamRejected):
    """Raw non-2xx response surfaced by the backend client; `body` is best-effort JSON."""

    def __init__(self, status: int, body: Optional[Dict[str, Any]] = None):
        body = body if isinstance(body, dict) else {}
        reason = body.get("error") or body.get("message")
        super().__init__(status, reason=reason if isinstance(reason, str) else None, body=body)


class ResourceNotFound(GatewayError):
    status_code = 404
    default_message = "Not found"


class TraderNotFound(ResourceNotFound):
    def __init__(self, trader_id: str):
        self.trader_id = trader_id
        super().__init__(f"Trader not found: {trader_id}")


class ExchangeNotConfigured(ResourceNotFound):
    def __init__(self, venue: str):
        self.venue = venue
        super().__init__(f"Exchange '{venue}' is not configured for this account")


class ProvisioningError(GatewayError):
    """
    A trader-creation step failed. `step` tells the user how far the workflow got,
    i.e. whether a wallet may already exist.
    """

    MODEL_RESOLUTION = "model_resolution"
    EXCHANGE_PROVISIONING = "exchange_provisioning"
    TRADER_CREATION = "trader_creation"

    def __init__(self, step: str, cause: GatewayError):
        self.step = step
        self.cause = cause
        self.status_code = cause.status_code
        super().__init__(f"Trader creation failed during {step.replace('_', ' ')}: {cause.message}")

    def to_dict(self) -> Dict[str, Any]:
        data = self.cause.to_dict()
        data["error"] = self.message
        data["step"] = self.step
        return data
