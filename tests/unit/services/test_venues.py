import pytest

from app.core.errors import ExchangeNotConfigured
from app.services.venues import ExistingExchangePolicy, FreshWalletPolicy, VenueRegistry
from app.services.wallets import WalletCredentials


def frozen_clock():
    return 1_760_000_000.4


def counting_wallets():
    counter = {"n": 0}

    def factory():
        counter["n"] += 1
        n = counter["n"]
        return WalletCredentials(address="0x" + f"{n:040x}", private_key="0x" + f"{n:064x}")

    return factory


def test_exchange_id_uses_venue_and_unix_seconds():
    policy = FreshWalletPolicy(clock=frozen_clock)
    assert policy.mint_exchange_id("hyperliquid") == "hyperliquid_1760000000"


def test_exchange_ids_stay_unique_within_one_second():
    policy = FreshWalletPolicy(clock=frozen_clock)
    ids = {policy.mint_exchange_id("hyperliquid") for _ in range(3)}
    assert len(ids) == 3


@pytest.mark.asyncio
async def test_fresh_wallet_policy_never_reuses(mock_backend):
    mock_backend.list_exchanges.return_value = [{"id": "hyperliquid", "hyperliquid_wallet_addr": "0xabc"}]
    policy = FreshWalletPolicy(wallet_factory=counting_wallets(), clock=frozen_clock, testnet=True)

    first = await policy.provision(mock_backend, "tok", "hyperliquid")
    second = await policy.provision(mock_backend, "tok", "hyperliquid")

    assert first.exchange_id != second.exchange_id
    assert first.wallet_address != second.wallet_address
    assert first.is_new_wallet and second.is_new_wallet
    assert mock_backend.upsert_exchanges.await_count == 2
    assert "hyperliquid" not in (first.exchange_id, second.exchange_id)


@pytest.mark.asyncio
async def test_fresh_wallet_policy_stores_key_in_exchange_config(mock_backend):
    policy = FreshWalletPolicy(wallet_factory=counting_wallets(), clock=frozen_clock)

    result = await policy.provision(mock_backend, "tok", "hyperliquid")

    token, exchanges = mock_backend.upsert_exchanges.await_args.args
    assert token == "tok"
    config = exchanges[result.exchange_id]
    assert config["api_key"] == "0x" + f"{1:064x}"
    assert config["hyperliquid_wallet_addr"] == result.wallet_address
    assert config["enabled"] is True
    assert config["secret_key"] == ""


@pytest.mark.asyncio
async def test_existing_policy_returns_configured_exchange(mock_backend):
    mock_backend.list_exchanges.return_value = [{"id": "binance", "type": "cex"}]

    result = await ExistingExchangePolicy().provision(mock_backend, "tok", "binance")

    assert result.exchange_id == "binance"
    assert result.is_new_wallet is False
    mock_backend.upsert_exchanges.assert_not_awaited()


@pytest.mark.asyncio
async def test_existing_policy_rejects_unconfigured_exchange(mock_backend):
    mock_backend.list_exchanges.return_value = [{"id": "binance"}]

    with pytest.raises(ExchangeNotConfigured):
        await ExistingExchangePolicy().provision(mock_backend, "tok", "aster")


def test_registry_selects_policy_by_wallet_capability():
    wallet_policy = FreshWalletPolicy()
    registry = VenueRegistry(["Hyperliquid"], wallet_policy=wallet_policy)

    assert registry.policy_for("hyperliquid") is wallet_policy
    assert isinstance(registry.policy_for("binance"), ExistingExchangePolicy)
    assert registry.requires_wallet("HYPERLIQUID")


def test_registry_override_wins():
    registry = VenueRegistry(["hyperliquid"])
    custom = FreshWalletPolicy()
    registry.register("lighter", custom)

    assert registry.policy_for("lighter") is custom


def test_exchange_id_skips_ids_already_taken():
    policy = FreshWalletPolicy(clock=frozen_clock)

    exchange_id = policy.mint_exchange_id("hyperliquid", taken={"hyperliquid_1760000000", "hyperliquid_1760000001"})

    assert exchange_id == "hyperliquid_1760000002"


@pytest.mark.asyncio
async def test_fresh_wallet_policy_does_not_overwrite_same_second_config(mock_backend):
    # Another worker already minted this second's id for the same account
    mock_backend.list_exchanges.return_value = [{"id": "hyperliquid_1760000000", "api_key": "0xother"}]
    policy = FreshWalletPolicy(wallet_factory=counting_wallets(), clock=frozen_clock)

    result = await policy.provision(mock_backend, "tok", "hyperliquid")

    _, exchanges = mock_backend.upsert_exchanges.await_args.args
    assert result.exchange_id == "hyperliquid_1760000001"
    assert list(exchanges) == ["hyperliquid_1760000001"]
