"""
Exchange provisioning policies.

Which policy a venue gets is decided by one capability flag: whether the venue
authenticates with a dedicated on-chain key pair. Wallet venues never share a
configuration between traders; API-key venues always reuse the account's one.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, ClassVar, Dict, Iterable, Optional

from app.adapters.backend_client import BackendClient
from app.core.errors import ExchangeNotConfigured
from app.core.settings import settings
from app.services.wallets import WalletCredentials, generate_wallet

logger = logging.getLogger("Venues")


@dataclass(frozen=True)
class ExchangeResolution:
    exchange_id: str
    wallet_address: Optional[str] = None
    is_new_wallet: bool = False


class ExchangePolicy(ABC):
    requires_wallet: ClassVar[bool] = False

    @abstractmethod
    async def provision(self, client: BackendClient, token: str, venue: str) -> ExchangeResolution:
        """Returns the exchange configuration id a new trader should be bound to."""


class ExistingExchangePolicy(ExchangePolicy):
    """API-key venues: the account's existing configuration is used as-is."""

    requires_wallet = False

    async def provision(self, client: BackendClient, token: str, venue: str) -> ExchangeResolution:
        exchanges = await client.list_exchanges(token)
        for exchange in exchanges:
            if exchange.get("id") == venue:
                return ExchangeResolution(
                    exchange_id=venue,
                    wallet_address=exchange.get("hyperliquid_wallet_addr") or None,
                )
        raise ExchangeNotConfigured(venue)


class FreshWalletPolicy(ExchangePolicy):
    """
    Wallet venues: every call mints a new key pair and a new exchange configuration.
    Existing configurations are only listed to avoid id collisions, never reused.
    """

    requires_wallet = True

    def __init__(
        self,
        wallet_factory: Callable[[], WalletCredentials] = generate_wallet,
        clock: Callable[[], float] = time.time,
        testnet: bool = False,
    ):
        self.wallet_factory = wallet_factory
        self.clock = clock
        self.testnet = testnet
        self._last_issued = 0

    def mint_exchange_id(self, venue: str, taken: Iterable[str] = ()) -> str:
        # `<venue>_<unixSeconds>`, bumped forward past ids issued here or already upstream
        taken = set(taken)
        issued = max(int(self.clock()), self._last_issued + 1)
        while f"{venue}_{issued}" in taken:
            issued += 1
        self._last_issued = issued
        return f"{venue}_{issued}"

    async def provision(self, client: BackendClient, token: str, venue: str) -> ExchangeResolution:
        wallet = self.wallet_factory()

        # Collision check only: another worker may have minted the same second.
        # An existing config is never bound to the new trader.
        existing = {str(e.get("id")) for e in await client.list_exchanges(token)}
        exchange_id = self.mint_exchange_id(venue, taken=existing)

        await client.upsert_exchanges(
            token,
            {
                exchange_id: {
                    "enabled": True,
                    "api_key": wallet.private_key,
                    "secret_key": "",
                    "testnet": self.testnet,
                    "hyperliquid_wallet_addr": wallet.address,
                }
            },
        )
        logger.info(f"🏦 Created exchange config {exchange_id} for wallet {wallet.address} (needs deposit)")

        return ExchangeResolution(exchange_id=exchange_id, wallet_address=wallet.address, is_new_wallet=True)


class VenueRegistry:
    """Maps a venue id to its provisioning policy."""

    def __init__(
        self,
        wallet_venues: Iterable[str],
        wallet_policy: Optional[ExchangePolicy] = None,
        default_policy: Optional[ExchangePolicy] = None,
    ):
        self.wallet_venues = {v.lower() for v in wallet_venues}
        self.wallet_policy = wallet_policy or FreshWalletPolicy(testnet=settings.WALLET_TESTNET)
        self.default_policy = default_policy or ExistingExchangePolicy()
        self._overrides: Dict[str, ExchangePolicy] = {}

    def register(self, venue: str, policy: ExchangePolicy):
        self._overrides[venue.lower()] = policy

    def requires_wallet(self, venue: str) -> bool:
        return venue.lower() in self.wallet_venues

    def policy_for(self, venue: str) -> ExchangePolicy:
        key = venue.lower()
        if key in self._overrides:
            return self._overrides[key]
        return self.wallet_policy if self.requires_wallet(venue) else self.default_policy


# Global Instance
venue_registry = VenueRegistry(settings.WALLET_VENUES)
