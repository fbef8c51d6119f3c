"""Reads the validated cart snapshot from the cart service."""

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.service_client import internal_get
from pydantic import ValidationError
from services.store_service.exceptions import ProviderUnavailable
from services.store_service.schemas import CartSnapshot

logger = get_logger(__name__)


class CartClient:
    """Cart service collaborator: prices and stock are validated there."""

    def __init__(self, service_url: str | None = None):
        self.service_url = service_url or get_settings().CART_SERVICE_URL

    async def get_cart_snapshot(self, member_auth_id: str) -> CartSnapshot:
        try:
            response = await internal_get(
                service_url=self.service_url,
                path=f"/internal/carts/{member_auth_id}",
                calling_service="store",
            )
        except httpx.RequestError as e:
            logger.error("Cart service unreachable for %s: %s", member_auth_id, e)
            raise ProviderUnavailable("Cart service is unavailable") from e

        if response.status_code == 404:
            return CartSnapshot(items=[])
        if response.status_code >= 400:
            raise ProviderUnavailable(
                f"Cart service returned {response.status_code}"
            )

        try:
            return CartSnapshot.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ProviderUnavailable("Cart service returned an invalid snapshot") from e


def get_cart_client() -> CartClient:
    return CartClient()
