"""
Widget configuration service: theme colour, greeting, and email gate.

The controller treats any WidgetConfigError as "use the built-in
fallback", so adapters raise rather than returning partial configs.
"""

import logging
from typing import Optional, Protocol

import httpx
from pydantic import ValidationError

from leadwidget.config import settings
from leadwidget.schemas.widget_schema import WidgetConfig

logger = logging.getLogger(__name__)


class WidgetConfigError(Exception):
    """Configuration could not be fetched or parsed."""


class WidgetConfigNotFoundError(WidgetConfigError):
    """No configuration exists for the requested identifier."""


class WidgetConfigService(Protocol):
    async def get_config(self, identifier: str) -> WidgetConfig:
        ...


class StaticWidgetConfigService:
    """Serves configs from a dict; used by the console front-end and tests."""

    def __init__(self, configs: dict[str, WidgetConfig]) -> None:
        self._configs = dict(configs)

    async def get_config(self, identifier: str) -> WidgetConfig:
        config = self._configs.get(identifier)
        if config is None:
            raise WidgetConfigNotFoundError(f"No widget settings for '{identifier}'")
        return config


class HttpWidgetConfigService:
    """Reads settings from the hosted ``get-widget-settings`` function."""

    ENDPOINT = "/functions/v1/get-widget-settings"

    def __init__(
        self,
        base_url: str = settings.widget.config_base_url,
        api_key: str = settings.widget.config_api_key,
        timeout: float = settings.widget.config_timeout_sec,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {"apikey": api_key, "Authorization": f"Bearer {api_key}"}
        self._timeout = timeout
        self._client = client

    async def _get(self, identifier: str) -> httpx.Response:
        url = f"{self._base_url}{self.ENDPOINT}"
        params = {"identifier": identifier}
        if self._client is not None:
            return await self._client.get(
                url, params=params, headers=self._headers, timeout=self._timeout
            )
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(url, params=params, headers=self._headers)

    async def get_config(self, identifier: str) -> WidgetConfig:
        if not self._base_url:
            raise WidgetConfigError("WIDGET_CONFIG_BASE_URL is not configured")
        try:
            response = await self._get(identifier)
        except httpx.HTTPError as e:
            raise WidgetConfigError(f"Failed to fetch widget settings: {e}") from e

        if response.status_code == 404:
            raise WidgetConfigNotFoundError(f"No widget settings for '{identifier}'")
        if response.is_error:
            raise WidgetConfigError(
                f"Widget settings request failed with status {response.status_code}"
            )

        try:
            config = WidgetConfig.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise WidgetConfigError(f"Invalid widget settings payload: {e}") from e
        logger.debug("Loaded widget settings for '%s'", identifier)
        return config
