"""
Authenticated Printful REST API client.

This module is the ONLY place that talks HTTP to Printful. Everything above
it deals in parsed dictionaries and ProviderError, never in requests
exceptions or raw responses.

ERROR NORMALIZATION:
    - 2xx: body parsed, ``result`` envelope unwrapped
    - non-2xx: ProviderError(status, message, raw_body), message taken from
      ``{"error": {"message": ...}}`` or ``{"result": "..."}``
    - connection failure / timeout: ProviderError(0, "network error")

RETRIES:
    Only GET requests are retried (bounded attempts, exponential backoff) on
    network errors, 429 and 5xx. POST/PUT/DELETE are sent exactly once:
    Printful has no submission idempotency key, so a blind retry of
    ``POST /orders`` could create a duplicate order.

Usage:
    client = PrintfulClient(api_token=config["PRINTFUL_API_TOKEN"])

    estimate = client.estimate_costs(payload)
    order = client.create_order(payload, confirm=True)

    status = client.test_connection()
    if not status.success:
        print(status.error.message)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests
from requests.exceptions import RequestException

from .exceptions import ProviderError


DEFAULT_BASE_URL = "https://api.printful.com"

# Events the bridge knows how to reconcile
DEFAULT_WEBHOOK_TYPES = [
    "package_shipped",
    "package_returned",
    "order_failed",
    "order_updated",
]

NETWORK_ERROR_MESSAGE = "network error"


@dataclass(frozen=True)
class ConnectionStatus:
    """Result of PrintfulClient.test_connection()."""

    success: bool
    store_info: Optional[Dict[str, Any]] = None
    error: Optional[ProviderError] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "store_info": self.store_info,
            "error": self.error.to_dict() if self.error else None,
        }


class PrintfulClient:
    """
    Thin authenticated transport for the Printful API.

    The client holds no order state. The bearer token is injected at
    construction time; nothing is read from the environment here.

    Attributes:
        base_url: API root without trailing slash
        timeout_seconds: Per-request timeout
        max_retries: Extra attempts for idempotent reads
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 30.0,
        max_retries: int = 3,
        backoff_seconds: float = 0.5,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the client.

        Args:
            api_token: Printful private token (sent as Bearer credential)
            base_url: API root (default: https://api.printful.com)
            timeout_seconds: Bounded timeout for every request
            max_retries: Retries for GET requests after the first attempt
            backoff_seconds: First backoff delay, doubled on each retry
            session: Optional requests.Session (tests inject a mock)
            logger: Logger instance (creates default if not provided)
            sleep: Sleep function used between retries

        Raises:
            ValueError: If api_token is empty
        """
        if not api_token:
            raise ValueError("api_token is required - set PRINTFUL_API_TOKEN")

        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(0, int(max_retries))
        self.backoff_seconds = backoff_seconds
        self._logger = logger or logging.getLogger("printful_bridge.core.printful_client")
        self._sleep = sleep

        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    # =========================================================================
    # VERBS
    # =========================================================================

    def get(self, endpoint: str) -> Any:
        """GET with bounded retry."""
        return self._request_with_retry("GET", endpoint)

    def post(self, endpoint: str, body: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("POST", endpoint, body)

    def put(self, endpoint: str, body: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("PUT", endpoint, body)

    def delete(self, endpoint: str, body: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("DELETE", endpoint, body)

    # =========================================================================
    # PRINTFUL OPERATIONS
    # =========================================================================

    def estimate_costs(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Estimate order costs without creating an order."""
        return self.create_order(payload, confirm=False)

    def create_order(self, payload: Dict[str, Any], confirm: bool = False) -> Dict[str, Any]:
        """
        Create a confirmed order, or estimate its costs.

        Both modes take the same payload shape. With confirm=False the
        request goes to /orders/estimate-costs and nothing is created.

        Args:
            payload: Provider-shaped order (see modules.order_translator)
            confirm: True to create the order, False to only estimate

        Returns:
            Parsed ``result`` object from Printful

        Raises:
            ProviderError: On any non-2xx response or transport failure
        """
        endpoint = "/orders" if confirm else "/orders/estimate-costs"
        return self.post(endpoint, payload)

    def get_order(self, order_id: Any) -> Dict[str, Any]:
        """Fetch an order by Printful id or ``@external_id``."""
        return self.get(f"/orders/{order_id}")

    def cancel_order(self, order_id: Any) -> Dict[str, Any]:
        return self.delete(f"/orders/{order_id}")

    def get_store_info(self) -> Dict[str, Any]:
        return self.get("/store")

    def get_webhooks(self) -> Dict[str, Any]:
        return self.get("/webhooks")

    def setup_webhook(self, url: str, types: Optional[List[str]] = None) -> Dict[str, Any]:
        """Point Printful's webhook delivery at ``url``."""
        return self.post("/webhooks", {
            "url": url,
            "types": list(types or DEFAULT_WEBHOOK_TYPES),
        })

    def delete_webhook(self) -> Dict[str, Any]:
        return self.delete("/webhooks")

    def test_connection(self) -> ConnectionStatus:
        """
        Check credentials and connectivity by fetching store metadata.

        Used by operator diagnostics only, never by the fulfillment path.
        Does not raise.
        """
        try:
            store_info = self.get_store_info()
        except ProviderError as e:
            self._logger.warning(f"Printful connection test failed: {e.message} (status={e.status})")
            return ConnectionStatus(success=False, error=e)

        self._logger.info("Printful connection test succeeded")
        return ConnectionStatus(success=True, store_info=store_info)

    # =========================================================================
    # HTTP LAYER
    # =========================================================================

    def _request_with_retry(self, method: str, endpoint: str) -> Any:
        attempt = 0
        while True:
            try:
                return self._request(method, endpoint)
            except ProviderError as e:
                if not e.is_retryable or attempt >= self.max_retries:
                    raise
                delay = self.backoff_seconds * (2 ** attempt)
                attempt += 1
                self._logger.warning(
                    f"{method} {endpoint} failed (status={e.status}), "
                    f"retry {attempt}/{self.max_retries} in {delay:.2f}s"
                )
                self._sleep(delay)

    def _request(
        self,
        method: str,
        endpoint: str,
        body: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Execute one HTTP request and normalize the outcome.

        Returns:
            ``result`` from the response envelope, or the whole body when
            there is no envelope

        Raises:
            ProviderError: For every failure mode
        """
        url = f"{self.base_url}{endpoint}"
        self._logger.debug(f"{method} {url}")

        try:
            response = self._session.request(
                method,
                url,
                json=body,
                timeout=self.timeout_seconds,
            )
        except RequestException as e:
            self._logger.error(f"{method} {endpoint} transport failure: {e}")
            raise ProviderError(status=0, message=NETWORK_ERROR_MESSAGE, raw_body=str(e)) from e

        data = self._parse_body(response)

        if not 200 <= response.status_code < 300:
            message = self._error_message(data)
            self._logger.error(f"{method} {endpoint} returned HTTP {response.status_code}: {message}")
            raise ProviderError(status=response.status_code, message=message, raw_body=data)

        if isinstance(data, dict) and "result" in data:
            return data["result"]
        return data

    @staticmethod
    def _parse_body(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text or None

    @staticmethod
    def _error_message(data: Any) -> str:
        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if isinstance(error, str) and error:
                return error
            if data.get("result"):
                return str(data["result"])
        return "Printful API request failed"
