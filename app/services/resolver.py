import logging
from typing import Any, Dict, List, Optional

from app.adapters.backend_client import BackendClient, backend_client
from app.core.errors import MissingConfiguration, UpstreamRejected
from app.core.settings import Settings, settings
from app.services.venues import ExchangeResolution, VenueRegistry, venue_registry

logger = logging.getLogger("Resolver")


def find_model(models: List[Dict[str, Any]], provider: str) -> Optional[Dict[str, Any]]:
    """
    Provider-first lookup with id fallback.

    Duplicates are tolerated upstream, so the first provider match wins. Only when
    no config carries the provider do we accept one whose id equals it.
    """
    for model in models:
        if model.get("provider") == provider:
            return model
    for model in models:
        if model.get("id") == provider:
            return model
    return None


class ResourceResolver:
    """
    Turns a logical resource (AI provider, venue) into a concrete backend id,
    creating the resource when it is missing.
    """

    def __init__(
        self,
        client: Optional[BackendClient] = None,
        venues: Optional[VenueRegistry] = None,
        config: Optional[Settings] = None,
    ):
        self.client = client or backend_client
        self.venues = venues or venue_registry
        self.config = config or settings

    async def resolve_ai_model(self, token: str, provider: str, api_key: Optional[str] = None) -> str:
        provider = provider.strip().lower()

        # 1. Read-only path: an existing config is reused as-is
        model = find_model(await self.client.list_models(token), provider)
        if model:
            logger.info(f"🧠 Reusing AI model config {model.get('id')} for provider '{provider}'")
            return str(model["id"])

        # 2. Creation needs a secret from the caller or server configuration
        secret = api_key or self.config.provider_secret(provider)
        if not secret:
            secret_name = self.config.provider_secret_name(provider)
            logger.error(f"❌ No AI model config for '{provider}' and {secret_name} is not set")
            raise MissingConfiguration(secret_name)

        logger.info(f"🧠 Creating AI model config for provider '{provider}'...")
        await self.client.upsert_models(
            token,
            {
                provider: {
                    "enabled": True,
                    "api_key": secret,
                    "custom_api_url": "",
                    "custom_model_name": "",
                }
            },
        )

        # 3. Re-list to pick up the backend-assigned id
        model = find_model(await self.client.list_models(token), provider)
        if not model:
            raise UpstreamRejected(502, reason=f"AI model config for '{provider}' missing after creation")

        logger.info(f"✅ AI model config {model.get('id')} ready for provider '{provider}'")
        return str(model["id"])

    def requires_wallet(self, venue: str) -> bool:
        return self.venues.policy_for(venue).requires_wallet

    async def resolve_exchange(self, token: str, venue: str) -> ExchangeResolution:
        venue = venue.strip().lower()
        policy = self.venues.policy_for(venue)
        logger.info(f"🏦 Resolving exchange '{venue}' via {type(policy).__name__}")
        return await policy.provision(self.client, token, venue)
