from app.adapters.backend_client import BackendClient, backend_client
from app.services.dashboard import DashboardAggregator, dashboard_aggregator
from app.services.leaderboard import LeaderboardAggregator, leaderboard_aggregator
from app.services.portfolio import PortfolioAggregator, portfolio_aggregator
from app.services.provisioning import TraderProvisioner, trader_provisioner


def get_backend() -> BackendClient:
    return backend_client


def get_provisioner() -> TraderProvisioner:
    return trader_provisioner


def get_dashboard() -> DashboardAggregator:
    return dashboard_aggregator


def get_leaderboard() -> LeaderboardAggregator:
    return leaderboard_aggregator


def get_portfolio() -> PortfolioAggregator:
    return portfolio_aggregator
