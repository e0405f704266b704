from __future__ import annotations

import json
import logging
import ssl
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List

import certifi
import httpx

from tradedesk.trading.models import OrderSettings, SuperTrendPoint, TrendDirection
from tradedesk.trading.validation import parse_decimal, parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://algo-treding-backend.onrender.com"


class IOrderSource(ABC):
    """Interface for anything that can supply a snapshot of raw order records."""

    @abstractmethod
    def get_orders(self) -> List[Dict[str, Any]]:
        """Fetch every order record currently available.

        Returns:
            Raw order records, unsorted and unvalidated
        """
        ...


class StaticOrderSource(IOrderSource):
    def __init__(self, records: List[Dict[str, Any]]) -> None:
        self._records = list(records)

    def get_orders(self) -> List[Dict[str, Any]]:
        return list(self._records)


class JsonFileOrderSource(IOrderSource):
    """Reads a JSON array of order records from disk."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def get_orders(self) -> List[Dict[str, Any]]:
        with self._path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{self._path}: expected a JSON array of orders")
        logger.info(f"Loaded {len(data)} order records from {self._path}")
        return data


class DashboardApiClient(IOrderSource):
    """Client for the trading dashboard backend.

    Exposes the orders, settings and Super-Trend endpoints. A bearer token
    is attached once set, either directly or through login().
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: str | None = None,
        timeout_s: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        kwargs: Dict[str, Any] = {"base_url": base_url, "timeout": timeout_s}
        if transport is not None:
            kwargs["transport"] = transport
        else:
            kwargs["verify"] = self._make_ssl_context()
        self._client = httpx.Client(**kwargs)
        self._lock = threading.Lock()
        self._token = token

    def set_token(self, token: str | None) -> None:
        self._token = token

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _get(self, path: str) -> Any:
        with self._lock:
            r = self._client.get(path, headers=self._headers())
        r.raise_for_status()
        return r.json()

    def _post(self, path: str, payload: Dict[str, Any]) -> Any:
        with self._lock:
            r = self._client.post(path, headers=self._headers(), json=payload)
        r.raise_for_status()
        return r.json()

    def health_check(self) -> Dict[str, Any]:
        return self._get("/healthCheck")

    def login(self, totp: str) -> Dict[str, Any]:
        """Log in with a one-time code and keep the returned JWT.

        Raises:
            ValueError: If the response carries no jwtToken
        """
        body = self._post("/login", {"totp": totp})
        token = (body.get("data") or {}).get("jwtToken")
        if not token:
            raise ValueError(f"Login failed: {body.get('message', 'no token returned')}")
        self._token = token
        return body

    def get_settings(self) -> OrderSettings:
        data = self._get("/getAllSettings")
        if not isinstance(data, dict):
            raise ValueError("getAllSettings: expected a JSON object")
        # The backend spells this flag "isLiveOrdresAllowed"
        allowed = data.get("isLiveOrdresAllowed", data.get("isLiveOrdersAllowed", False))
        return OrderSettings(
            id=str(data.get("_id", "")),
            record_id=int(data.get("recordId", 0)),
            live_orders_allowed=bool(allowed),
        )

    def get_orders(self) -> List[Dict[str, Any]]:
        data = self._get("/getAllOrders")
        if not isinstance(data, list):
            raise ValueError("getAllOrders: expected a JSON array")
        logger.info(f"Fetched {len(data)} order records")
        return data

    def get_super_trend(self) -> List[SuperTrendPoint]:
        out: List[SuperTrendPoint] = []
        for row in self._get("/getSuperTrend") or []:
            try:
                out.append(
                    SuperTrendPoint(
                        id=str(row["_id"]),
                        value=parse_decimal(row["superTrendValue"]),
                        direction=TrendDirection(str(row["superTrendDirection"]).lower()),
                        created_at=parse_timestamp(row["createdAt"]),
                    )
                )
            except (KeyError, TypeError, ValueError, ArithmeticError) as e:
                logger.warning(f"Skipping malformed Super-Trend row {row!r}: {e}")
                continue
        return out

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "DashboardApiClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _make_ssl_context(self) -> ssl.SSLContext:
        return ssl.create_default_context(cafile=certifi.where())
