"""Tests for the Weather Underground adapter and the client factory."""

import httpx
import pytest

from ipweather.adapters.weather import create_weather_client
from ipweather.adapters.weather.wunderground import WundergroundClient, parse_snapshot
from ipweather.core.config import WeatherSettings
from ipweather.core.errors import UpstreamAppError, ValidationAppError


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestParseSnapshot:
    """Payload mapping."""

    def test_maps_current_observation_and_forecast(self, wu_payload) -> None:
        snapshot = parse_snapshot(wu_payload)

        assert snapshot.current.temperature_c == 21.5
        assert snapshot.current.humidity == "65%"
        assert snapshot.current.description == "Partly Cloudy"
        assert snapshot.current.icon == "http://icons.wxug.com/i/c/k/partlycloudy.gif"
        assert snapshot.current.location.name == "Mountain View, CA"
        # Raw values, normalization happens later
        assert snapshot.current.location.elevation == "123.4567"
        assert snapshot.forecast_date == "4:00 PM PDT"
        assert [day.title for day in snapshot.forecast] == ["Monday", "Monday Night"]
        assert snapshot.forecast[0].text == "Sunny. High 24C."

    def test_error_payload_raises(self) -> None:
        payload = {"response": {"error": {"type": "keynotfound", "description": "this key does not exist"}}}

        with pytest.raises(UpstreamAppError) as exc_info:
            parse_snapshot(payload)

        assert exc_info.value.code == "weather_provider_error"
        assert "this key does not exist" in exc_info.value.message

    def test_missing_observation_raises(self) -> None:
        with pytest.raises(UpstreamAppError) as exc_info:
            parse_snapshot({"response": {"version": "0.1"}})

        assert exc_info.value.code == "weather_missing_observation"

    def test_missing_forecast_yields_empty_list(self, wu_payload) -> None:
        del wu_payload["forecast"]

        snapshot = parse_snapshot(wu_payload)

        assert snapshot.forecast == []
        assert snapshot.forecast_date == ""


class TestWundergroundClient:
    """HTTP behaviour."""

    @pytest.mark.asyncio
    async def test_fetch_by_coords_builds_query_url(self, wu_payload) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=wu_payload)

        async with _client(handler) as client:
            wu = WundergroundClient(client, api_key="abc123", base_url="http://wu.test/api")
            snapshot = await wu.fetch_by_coords(37.386, -122.0838)

        assert snapshot.current.description == "Partly Cloudy"
        assert seen[0].url.host == "wu.test"
        assert seen[0].url.path == "/api/abc123/conditions/forecast/lang:EN/q/37.3860,-122.0838.json"
        assert "geo_ip" not in seen[0].url.params

    @pytest.mark.asyncio
    async def test_fetch_by_identity_uses_autoip(self, wu_payload) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=wu_payload)

        async with _client(handler) as client:
            wu = WundergroundClient(client, api_key="abc123", base_url="http://wu.test/api", lang="FR")
            await wu.fetch_by_identity("8.8.8.8")

        assert seen[0].url.path == "/api/abc123/conditions/forecast/lang:FR/q/autoip.json"
        assert seen[0].url.params["geo_ip"] == "8.8.8.8"

    @pytest.mark.asyncio
    async def test_non_success_status_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="bad gateway")

        async with _client(handler) as client:
            with pytest.raises(UpstreamAppError) as exc_info:
                await WundergroundClient(client, api_key="k").fetch_by_coords(1.0, 2.0)

        assert exc_info.value.code == "weather_http_error"
        assert exc_info.value.details["http_status"] == 502

    @pytest.mark.asyncio
    async def test_undecodable_body_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>maintenance</html>")

        async with _client(handler) as client:
            with pytest.raises(UpstreamAppError) as exc_info:
                await WundergroundClient(client, api_key="k").fetch_by_identity("8.8.8.8")

        assert exc_info.value.code == "weather_decode_error"

    @pytest.mark.asyncio
    async def test_non_object_body_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[1, 2, 3])

        async with _client(handler) as client:
            with pytest.raises(UpstreamAppError) as exc_info:
                await WundergroundClient(client, api_key="k").fetch_by_coords(1.0, 2.0)

        assert exc_info.value.code == "weather_decode_error"

    @pytest.mark.asyncio
    async def test_network_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        async with _client(handler) as client:
            with pytest.raises(UpstreamAppError) as exc_info:
                await WundergroundClient(client, api_key="k").fetch_by_coords(1.0, 2.0)

        assert exc_info.value.code == "weather_unreachable"

    @pytest.mark.asyncio
    async def test_provider_error_payload_is_not_swallowed(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"response": {"error": {"type": "querynotfound"}}})

        async with _client(handler) as client:
            with pytest.raises(UpstreamAppError) as exc_info:
                await WundergroundClient(client, api_key="k").fetch_by_coords(1.0, 2.0)

        assert exc_info.value.code == "weather_provider_error"


class TestCreateWeatherClient:
    """Factory selection."""

    @pytest.mark.asyncio
    async def test_creates_wunderground_client(self) -> None:
        async with httpx.AsyncClient() as client:
            wu = create_weather_client(WeatherSettings(api_key="k", lang="DE"), client)

        assert isinstance(wu, WundergroundClient)
        assert wu.lang == "DE"

    @pytest.mark.asyncio
    async def test_missing_api_key_raises(self) -> None:
        async with httpx.AsyncClient() as client:
            with pytest.raises(ValidationAppError) as exc_info:
                create_weather_client(WeatherSettings(api_key=None), client)

        assert exc_info.value.code == "weather_missing_api_key"

    @pytest.mark.asyncio
    async def test_unknown_provider_raises(self) -> None:
        async with httpx.AsyncClient() as client:
            with pytest.raises(ValidationAppError) as exc_info:
                create_weather_client(WeatherSettings(provider="darksky", api_key="k"), client)

        assert exc_info.value.code == "weather_unknown_provider"
