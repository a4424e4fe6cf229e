import logging
from typing import Optional

from app.adapters.backend_client import BackendClient, backend_client
from app.core.errors import GatewayError, ProvisioningError, Unauthorized
from app.core.settings import Settings, settings
from app.schemas.requests import CreateTraderRequest
from app.schemas.responses import ProvisioningResult
from app.services.resolver import ResourceResolver

logger = logging.getLogger("Provisioner")


class TraderProvisioner:
    """
    Creates a trader and whatever it depends on, in a fixed order:

        1. auth check (no network)
        2. AI model config  (shared per provider, reused when present)
        3. exchange config  (fresh wallet per trader on wallet venues)
        4. payload assembly with the resolved backend ids
        5. trader creation

    The first failure aborts the workflow. Nothing is rolled back: a leftover
    model config is reusable and an unused exchange config costs nothing idle.
    No step is retried, so a wallet is never provisioned twice for one request.
    """

    def __init__(
        self,
        client: Optional[BackendClient] = None,
        resolver: Optional[ResourceResolver] = None,
        config: Optional[Settings] = None,
    ):
        self.client = client or backend_client
        self.config = config or settings
        self.resolver = resolver or ResourceResolver(client=self.client, config=self.config)

    async def create_trader(self, token: Optional[str], request: CreateTraderRequest) -> ProvisioningResult:
        # 1. AUTH
        if not token or not token.strip():
            raise Unauthorized("Unauthorized - No token provided")

        provider = (request.ai_provider or self.config.DEFAULT_AI_PROVIDER).lower()
        venue = (request.venue or self.config.DEFAULT_VENUE).lower()
        logger.info(f"📥 Create trader '{request.name}' (provider={provider}, venue={venue})")

        # 2. AI MODEL (cheap, usually exists)
        try:
            ai_model_id = await self.resolver.resolve_ai_model(token, provider)
        except Unauthorized:
            raise
        except GatewayError as e:
            logger.error(f"❌ Model resolution failed for '{request.name}': {e.message}", extra={"step": ProvisioningError.MODEL_RESOLUTION, "provider": provider})
            raise ProvisioningError(ProvisioningError.MODEL_RESOLUTION, e) from e

        # 3. EXCHANGE (irreversible on wallet venues, so it runs second)
        try:
            exchange = await self.resolver.resolve_exchange(token, venue)
        except Unauthorized:
            raise
        except GatewayError as e:
            logger.error(f"❌ Exchange provisioning failed for '{request.name}': {e.message}", extra={"step": ProvisioningError.EXCHANGE_PROVISIONING, "venue": venue})
            raise ProvisioningError(ProvisioningError.EXCHANGE_PROVISIONING, e) from e

        # 4. PAYLOAD
        payload = request.to_payload(request.name, ai_model_id, exchange.exchange_id)

        # 5. CREATE
        try:
            trader = await self.client.create_trader(token, payload)
        except Unauthorized:
            raise
        except GatewayError as e:
            if exchange.is_new_wallet:
                logger.critical(
                    f"💔 Trader creation failed after minting wallet {exchange.wallet_address} "
                    f"(exchange {exchange.exchange_id}): {e.message}"
                )
            else:
                logger.error(f"❌ Trader creation failed for '{request.name}': {e.message}", extra={"step": ProvisioningError.TRADER_CREATION})
            raise ProvisioningError(ProvisioningError.TRADER_CREATION, e) from e

        requires_wallet = self.resolver.requires_wallet(venue)
        result = ProvisioningResult(
            trader=trader if isinstance(trader, dict) else {"result": trader},
            ai_model_id=ai_model_id,
            exchange_id=exchange.exchange_id,
            wallet_address=exchange.wallet_address,
            is_new_wallet=exchange.is_new_wallet,
            needs_deposit=bool(requires_wallet and exchange.wallet_address),
        )

        logger.info(f"✅ Trader created: {result.trader_id} (exchange={result.exchange_id})")
        if result.needs_deposit:
            logger.info(f"💰 Deposit required: fund {result.wallet_address} before trader {result.trader_id} can trade")
        return result


# Global Instance
trader_provisioner = TraderProvisioner()
