import pytest

from app.core.settings import Settings
from app.services.estimates import estimate_volume, estimate_win_rate
from app.services.leaderboard import LeaderboardAggregator, model_icon, parse_owner, rank_by_pnl


def competitor(trader_id: str, pnl: float, **extra):
    data = {
        "trader_id": trader_id,
        "trader_name": f"{trader_id}'s Bot",
        "ai_model": "deepseek",
        "total_equity": 1000.0 + pnl,
        "total_pnl": pnl,
        "total_pnl_pct": pnl / 10,
        "position_count": 2,
        "is_running": True,
    }
    data.update(extra)
    return data


@pytest.mark.asyncio
async def test_leaderboard_sorted_descending_by_pnl(backend, fake_backend, test_settings):
    fake_backend.competition = [competitor("a", -50), competitor("b", 120), competitor("c", 30)]

    board = await LeaderboardAggregator(client=backend, config=test_settings).build_leaderboard()

    assert [a["id"] for a in board["agents"]] == ["b", "c", "a"]
    assert board["total_count"] == 3


def test_ties_keep_input_order():
    agents = [{"id": "x", "pnl": 10}, {"id": "y", "pnl": 20}, {"id": "z", "pnl": 10}, {"id": "w", "pnl": 20}]

    ranked = rank_by_pnl(agents)

    assert [a["id"] for a in ranked] == ["y", "w", "x", "z"]
    pnls = [a["pnl"] for a in ranked]
    assert pnls == sorted(pnls, reverse=True)


@pytest.mark.asyncio
async def test_estimates_are_kept_apart_from_measured_fields(backend, fake_backend, test_settings):
    fake_backend.competition = [competitor("a", 100)]

    board = await LeaderboardAggregator(client=backend, config=test_settings).build_leaderboard()
    agent = board["agents"][0]

    assert "win_rate" not in agent and "volume" not in agent
    assert agent["estimated"] == {"win_rate": 55.0, "volume": 22000.0, "trades": 2}


@pytest.mark.asyncio
async def test_estimates_can_be_switched_off(backend, fake_backend):
    fake_backend.competition = [competitor("a", 100)]
    config = Settings(ENABLE_ESTIMATES=False)

    board = await LeaderboardAggregator(client=backend, config=config).build_leaderboard()

    assert "estimated" not in board["agents"][0]


def test_win_rate_estimate_is_clamped():
    assert estimate_win_rate(300.0, 3) == 100.0
    assert estimate_win_rate(-300.0, 3) == 0.0
    assert estimate_win_rate(20.0, 0) == 0.0
    assert estimate_win_rate(20.0, 1) == 60.0


def test_volume_estimate():
    assert estimate_volume(1000.0, 3) == 30000.0


def test_owner_parsing():
    assert parse_owner("Alice's Momentum") == "Alice"
    assert parse_owner("Bob - Scalper") == "Bob"
    assert parse_owner("Nameless") == "Anonymous"


def test_model_icon_matches_substrings():
    assert model_icon("claude-3-opus") == "🧠"
    assert model_icon("unknown-llm") == "🤖"
    assert model_icon(None) == "🤖"
