"""
Registry client for the Data Mesh Manager API.

Reads access grants, data products and teams, writes assets, delivers
lifecycle events and stores connector state. Every call is a single blocking
HTTP request without retries; redelivery is the caller's concern.

HTTP 404 raises ``NotFoundError``; any other failure raises
``UpstreamCallError``.
"""

import logging
import urllib.parse
from typing import Any, Dict, List, Optional

import httpx

from brickmesh.errors import NotFoundError, UpstreamCallError
from brickmesh.models import AccessGrant, Asset, DataProduct, RegistryEvent, Team

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"
EVENTS_CONTENT_TYPE = "application/cloudevents-batch+json"


def _quote(value: str) -> str:
    return urllib.parse.quote(value, safe="")


class RegistryClient:
    """
    Data Mesh Manager API client.

    Example:
        ```python
        client = RegistryClient("https://api.datamesh-manager.com", api_key="...")
        grant = client.get_access("3c6f9a3e")
        ```
    """

    def __init__(
        self,
        host: str,
        api_key: Optional[str] = None,
        timeout_seconds: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        """Initialize the client.

        Args:
            host: Base URL of the registry API.
            api_key: API key sent with every request.
            timeout_seconds: Request timeout when the client builds its own httpx.Client.
            http_client: Optional httpx.Client for dependency injection (testing).
        """
        self._base_url = host.rstrip("/")
        self._headers = {"Accept": "application/json"}
        if api_key:
            self._headers[API_KEY_HEADER] = api_key
        self._http_client = http_client or httpx.Client(
            base_url=self._base_url,
            timeout=timeout_seconds,
        )
        self._owns_client = http_client is None

    def close(self) -> None:
        if self._owns_client:
            self._http_client.close()

    def _request(
        self,
        method: str,
        path: str,
        resource_type: str,
        resource_id: str,
        **kwargs: Any,
    ) -> Optional[Any]:
        """Execute a request and return the decoded JSON body, or None for an empty body."""
        headers = {**self._headers, **kwargs.pop("headers", {})}
        try:
            response = self._http_client.request(method, f"{self._base_url}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.error(f"Registry {method} {path} failed: {exc}")
            raise UpstreamCallError(f"{method} {path}", exc) from exc

        if response.status_code == 404:
            raise NotFoundError(resource_type, resource_id)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(f"Registry {method} {path} returned {response.status_code}")
            raise UpstreamCallError(f"{method} {path}", exc) from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamCallError(f"{method} {path}", exc) from exc

    # -------------------------------------------------------------------------
    # Read-only resources
    # -------------------------------------------------------------------------

    def get_access(self, access_id: str) -> AccessGrant:
        data = self._request("GET", f"/api/access/{_quote(access_id)}", "Access", access_id)
        return AccessGrant.model_validate(data)

    def get_data_product(self, data_product_id: str) -> DataProduct:
        data = self._request("GET", f"/api/dataproducts/{_quote(data_product_id)}", "DataProduct", data_product_id)
        return DataProduct.model_validate(data)

    def get_team(self, team_id: str) -> Team:
        data = self._request("GET", f"/api/teams/{_quote(team_id)}", "Team", team_id)
        return Team.model_validate(data)

    # -------------------------------------------------------------------------
    # Assets
    # -------------------------------------------------------------------------

    def get_asset(self, asset_id: str) -> Asset:
        data = self._request("GET", f"/api/assets/{_quote(asset_id)}", "Asset", asset_id)
        return Asset.from_payload(data)

    def add_asset(self, asset_id: str, asset: Asset) -> None:
        """Create or replace the asset stored under ``asset_id``."""
        self._request("PUT", f"/api/assets/{_quote(asset_id)}", "Asset", asset_id, json=asset.to_payload())

    def delete_asset(self, asset_id: str) -> None:
        self._request("DELETE", f"/api/assets/{_quote(asset_id)}", "Asset", asset_id)

    # -------------------------------------------------------------------------
    # Events and connector state
    # -------------------------------------------------------------------------

    def poll_events(self, last_event_id: Optional[str] = None) -> List[RegistryEvent]:
        """Fetch the events following ``last_event_id`` (all retained events when None)."""
        params = {"lastEventId": last_event_id} if last_event_id else {}
        data = self._request(
            "GET", "/api/events", "Events", last_event_id or "*",
            params=params,
            headers={"Accept": EVENTS_CONTENT_TYPE},
        )
        return [RegistryEvent.model_validate(item) for item in (data or [])]

    def get_state(self, connector_id: str) -> Dict[str, Any]:
        try:
            data = self._request("GET", f"/api/connectors/{_quote(connector_id)}/state", "ConnectorState", connector_id)
        except NotFoundError:
            logger.debug(f"No state stored for connector {connector_id}")
            return {}
        return dict(data or {})

    def save_state(self, connector_id: str, state: Dict[str, Any]) -> None:
        self._request(
            "PUT", f"/api/connectors/{_quote(connector_id)}/state", "ConnectorState", connector_id,
            json=state,
        )
