# Data module
"""Order sources: static, JSON file and the dashboard HTTP API."""

from tradedesk.data.providers import (
    IOrderSource,
    StaticOrderSource,
    JsonFileOrderSource,
    DashboardApiClient,
)

__all__ = ["IOrderSource", "StaticOrderSource", "JsonFileOrderSource", "DashboardApiClient"]
