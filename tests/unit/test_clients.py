"""Unit tests for the provider clients with httpx patched out."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from services.store_service.clients.cart_client import CartClient
from services.store_service.clients.geocoding_client import GeocodingClient, parse_address
from services.store_service.clients.razorpay_client import RazorpayClient, RazorpayError
from services.store_service.clients.routing_client import RoutingClient
from services.store_service.exceptions import ProviderUnavailable
from services.store_service.services.geo import Coordinate
from tests.factories import payment_signature, sign

ORIGIN = Coordinate(10.7870, 79.1378)
DEST = Coordinate(10.8000, 79.1500)


def _razorpay() -> RazorpayClient:
    return RazorpayClient(
        key_id="rzp_test_key",
        key_secret="rzp_test_secret",
        webhook_secret="rzp_test_webhook_secret",
    )


# ---------------------------------------------------------------------------
# Routing (OSRM)
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_routing_client_parses_route():
    payload = {
        "code": "Ok",
        "routes": [
            {
                "distance": 8123.4,
                "geometry": {"coordinates": [[79.1378, 10.787], [79.15, 10.8]]},
            }
        ],
    }
    with patch(
        "httpx.AsyncClient.request",
        new_callable=AsyncMock,
        return_value=httpx.Response(200, json=payload),
    ) as mock_request:
        route = await RoutingClient(base_url="http://osrm.test").route(ORIGIN, DEST)

    assert route.distance_meters == 8123.4
    assert route.path[0] == Coordinate(10.787, 79.1378)
    url = mock_request.call_args.args[1]
    # OSRM expects lon,lat
    assert url.endswith("/route/v1/driving/79.1378,10.787;79.15,10.8")


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"code": "NoRoute", "routes": []}),
        httpx.Response(200, json={"code": "Ok", "routes": []}),
        httpx.Response(500, json={"code": "Error"}),
        httpx.Response(200, content=b"<html>busy</html>"),
        httpx.Response(200, json=["unexpected"]),
        httpx.Response(200, json={"code": "Ok", "routes": ["unexpected"]}),
    ],
)
async def test_routing_client_failures_raise_provider_unavailable(response):
    with patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=response):
        with pytest.raises(ProviderUnavailable):
            await RoutingClient(base_url="http://osrm.test").route(ORIGIN, DEST)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_routing_client_network_error():
    with patch(
        "httpx.AsyncClient.request",
        new_callable=AsyncMock,
        side_effect=httpx.ConnectError("refused"),
    ):
        with pytest.raises(ProviderUnavailable):
            await RoutingClient(base_url="http://osrm.test").route(ORIGIN, DEST)


# ---------------------------------------------------------------------------
# Razorpay
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_razorpay_client_requires_keys(monkeypatch):
    from services.store_service.clients import razorpay_client

    monkeypatch.setattr(razorpay_client.settings, "RAZORPAY_KEY_ID", None)
    with pytest.raises(ValueError):
        RazorpayClient()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_razorpay_create_order():
    payload = {
        "id": "order_EKwxwAgItmmXdp",
        "entity": "order",
        "amount": 35000,
        "currency": "INR",
        "receipt": "GR-20261019-ABCDE-1",
        "status": "created",
    }
    with patch(
        "httpx.AsyncClient.request",
        new_callable=AsyncMock,
        return_value=httpx.Response(200, json=payload),
    ) as mock_request:
        order = await _razorpay().create_order(35000, "INR", "GR-20261019-ABCDE-1")

    assert order.id == "order_EKwxwAgItmmXdp"
    assert order.amount == 35000
    kwargs = mock_request.call_args.kwargs
    assert kwargs["auth"] == ("rzp_test_key", "rzp_test_secret")
    assert kwargs["json"]["receipt"] == "GR-20261019-ABCDE-1"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_razorpay_error_is_provider_unavailable():
    payload = {"error": {"code": "BAD_REQUEST_ERROR", "description": "Authentication failed"}}
    with patch(
        "httpx.AsyncClient.request",
        new_callable=AsyncMock,
        return_value=httpx.Response(401, json=payload),
    ):
        with pytest.raises(RazorpayError) as exc:
            await _razorpay().create_order(100, "INR", "r-1")

    assert isinstance(exc.value, ProviderUnavailable)
    assert exc.value.http_status == 401
    assert exc.value.status_code == 503
    assert exc.value.message == "Authentication failed"


@pytest.mark.unit
def test_razorpay_payment_signature():
    client = _razorpay()
    good = payment_signature("order_1", "pay_1")

    assert client.verify_payment_signature("order_1", "pay_1", good)
    assert not client.verify_payment_signature("order_1", "pay_2", good)
    assert not client.verify_payment_signature("order_1", "pay_1", "")


@pytest.mark.unit
def test_razorpay_webhook_signature():
    client = _razorpay()
    body = b'{"event":"payment.captured"}'

    assert client.verify_webhook_signature(body, sign("rzp_test_webhook_secret", body))
    assert not client.verify_webhook_signature(body + b" ", sign("rzp_test_webhook_secret", body))


# ---------------------------------------------------------------------------
# Geocoding (Nominatim)
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_parse_address_prefers_indian_fallbacks():
    parsed = parse_address(
        {
            "display_name": "Anna Nagar, Thanjavur, Tamil Nadu, 613007, India",
            "address": {
                "road": "2nd Cross Street",
                "neighbourhood": "Anna Nagar",
                "suburb": "Medical College",
                "state_district": "Thanjavur",
                "state": "Tamil Nadu",
                "postcode": "613007",
            },
        }
    )

    assert parsed.street == "2nd Cross Street, Anna Nagar, Medical College"
    assert parsed.city == "Medical College"
    assert parsed.state == "Tamil Nadu"
    assert parsed.zip_code == "613007"
    assert parsed.country == "India"
    assert parsed.title == "Anna Nagar"


@pytest.mark.unit
def test_parse_address_falls_back_to_display_name():
    parsed = parse_address({"display_name": "Big Temple, Thanjavur", "address": {"city": "Thanjavur"}})

    assert parsed.street == "Big Temple"
    assert parsed.city == "Thanjavur"
    assert parsed.title == "Thanjavur"
    assert parse_address({"display_name": "x"}) is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_geocoding_search_sends_user_agent():
    payload = [
        {"lat": "10.787", "lon": "79.1378", "display_name": "Thanjavur"},
        {"lat": None, "lon": "79.1", "display_name": "broken"},
    ]
    with patch(
        "httpx.AsyncClient.request",
        new_callable=AsyncMock,
        return_value=httpx.Response(200, json=payload),
    ) as mock_request:
        results = await GeocodingClient(
            base_url="http://nominatim.test", user_agent="store-tests/1.0"
        ).search("Thanjavur")

    assert len(results) == 1
    assert results[0].latitude == 10.787
    assert mock_request.call_args.kwargs["headers"]["User-Agent"] == "store-tests/1.0"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_geocoding_reverse_unable_to_geocode():
    with patch(
        "httpx.AsyncClient.request",
        new_callable=AsyncMock,
        return_value=httpx.Response(200, json={"error": "Unable to geocode"}),
    ):
        result = await GeocodingClient(base_url="http://nominatim.test").reverse(0.0, 0.0)

    assert result.address is None
    assert result.display_name is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_geocoding_outage_is_provider_unavailable():
    with patch(
        "httpx.AsyncClient.request",
        new_callable=AsyncMock,
        side_effect=httpx.ReadTimeout("slow"),
    ):
        with pytest.raises(ProviderUnavailable):
            await GeocodingClient(base_url="http://nominatim.test").search("Thanjavur")


# ---------------------------------------------------------------------------
# Cart service
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cart_client_reads_snapshot():
    payload = {
        "items": [
            {"product_id": "p1", "name": "Milk", "unit_price": "28.00", "quantity": 2}
        ]
    }
    with patch(
        "services.store_service.clients.cart_client.internal_get",
        new_callable=AsyncMock,
        return_value=httpx.Response(200, json=payload),
    ) as mock_get:
        cart = await CartClient(service_url="http://cart.test").get_cart_snapshot("m-1")

    assert cart.items[0].quantity == 2
    assert mock_get.call_args.kwargs["path"] == "/internal/carts/m-1"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cart_client_missing_cart_is_empty():
    with patch(
        "services.store_service.clients.cart_client.internal_get",
        new_callable=AsyncMock,
        return_value=httpx.Response(404, json={"detail": "not found"}),
    ):
        cart = await CartClient(service_url="http://cart.test").get_cart_snapshot("m-1")

    assert cart.items == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cart_client_outage_is_provider_unavailable():
    with patch(
        "services.store_service.clients.cart_client.internal_get",
        new_callable=AsyncMock,
        side_effect=httpx.ConnectError("refused"),
    ):
        with pytest.raises(ProviderUnavailable):
            await CartClient(service_url="http://cart.test").get_cart_snapshot("m-1")
