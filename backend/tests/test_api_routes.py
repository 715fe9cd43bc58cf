"""
Route-level tests: caching, parameter validation, error mapping and the
degradation rules of the feed, APOD and analytics endpoints.
"""

from unittest.mock import AsyncMock, patch

import pytest

from app.core.config import settings
from app.core.errors import (
    UpstreamConnectionError,
    UpstreamHTTPError,
    UpstreamParseError,
    UpstreamTimeoutError,
)


class TestHealth:

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["ok"] is True
        assert body["uptime"] >= 0

    def test_unknown_route_has_error_field(self, client):
        response = client.get("/api/nowhere")
        assert response.status_code == 404
        assert "error" in response.json()

    def test_shared_client_uses_configured_timeout(self, client):
        timeout = client.app.state.nasa.http_client.timeout
        assert timeout.read == settings.nasa_timeout_ms / 1000
        assert timeout.connect == settings.nasa_timeout_ms / 1000


class TestDonkiRoutes:

    def test_flares_are_cached_per_url(self, client, nasa, sample_flares):
        nasa.get_flares.return_value = sample_flares

        first = client.get("/api/donki/flares?days=3")
        second = client.get("/api/donki/flares?days=3")
        other = client.get("/api/donki/flares?days=4")

        assert first.json() == sample_flares
        assert second.json() == sample_flares
        assert other.status_code == 200
        assert nasa.get_flares.await_count == 2
        nasa.get_flares.assert_any_await(days=3)
        nasa.get_flares.assert_any_await(days=4)

    def test_empty_results_are_cached_too(self, client, nasa):
        nasa.get_hss.return_value = []

        client.get("/api/donki/hss")
        client.get("/api/donki/hss")

        nasa.get_hss.assert_awaited_once_with(days=5)

    @pytest.mark.parametrize("path,method", [
        ("/api/donki/cmes", "get_cmes"),
        ("/api/donki/gst", "get_geomagnetic_storms"),
        ("/api/donki/ips", "get_ips"),
        ("/api/donki/rbe", "get_rbe"),
        ("/api/donki/sep", "get_sep"),
        ("/api/donki/wsa-enlil", "get_wsa_enlil"),
    ])
    def test_category_routes(self, client, nasa, path, method):
        getattr(nasa, method).return_value = [{"id": path}]
        assert client.get(path).json() == [{"id": path}]
        getattr(nasa, method).assert_awaited_once()

    @pytest.mark.parametrize("path", [
        "/api/donki/cme-analysis",
        "/api/donki/notifications",
        "/api/donki/mpc",
        "/api/donki/flares-range",
        "/api/donki/mpc?startDate=2024-05-01",
        "/api/donki/notifications?endDate=2024-05-01",
    ])
    def test_missing_dates_short_circuit(self, client, nasa, path):
        response = client.get(path)

        assert response.status_code == 400
        assert response.json() == {"error": "startDate and endDate required"}
        nasa.get_cme_analysis.assert_not_awaited()
        nasa.get_notifications.assert_not_awaited()
        nasa.get_mpc.assert_not_awaited()
        nasa.get_flares.assert_not_awaited()

    def test_cme_analysis_forwards_filters(self, client, nasa):
        nasa.get_cme_analysis.return_value = []

        response = client.get(
            "/api/donki/cme-analysis?startDate=2024-05-01&endDate=2024-05-03"
            "&mostAccurateOnly=true&speed=500&halfAngle=30&catalog=ALL"
        )

        assert response.status_code == 200
        nasa.get_cme_analysis.assert_awaited_once_with(
            start_date="2024-05-01",
            end_date="2024-05-03",
            most_accurate_only=True,
            speed="500",
            half_angle="30",
            catalog="ALL",
        )

    def test_notifications_default_type(self, client, nasa):
        nasa.get_notifications.return_value = []
        client.get("/api/donki/notifications?startDate=2024-05-01&endDate=2024-05-03")
        nasa.get_notifications.assert_awaited_once_with(
            start_date="2024-05-01", end_date="2024-05-03", type="all"
        )

    def test_invalid_days_is_a_400(self, client, nasa):
        response = client.get("/api/donki/flares?days=abc")
        assert response.status_code == 400
        assert "error" in response.json()
        nasa.get_flares.assert_not_awaited()

    @pytest.mark.parametrize("path", [
        "/api/donki/flares?days=10000000",
        "/api/donki/gst?days=0",
        "/api/analytics/overview?days=10000000",
        "/api/analytics/chart-data/flares?days=3651",
    ])
    def test_out_of_range_days_is_a_400(self, client, nasa, path):
        response = client.get(path)
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request parameters"
        nasa.get_flares.assert_not_awaited()


class TestUpstreamErrorMapping:

    @pytest.mark.parametrize("error,status", [
        (UpstreamHTTPError("HTTP 404 - not found", status=404), 404),
        (UpstreamHTTPError("HTTP 403 - forbidden", status=403), 403),
        (UpstreamHTTPError("HTTP 429 - slow down", status=429), 502),
        (UpstreamHTTPError("HTTP 503 - down", status=503), 502),
        (UpstreamConnectionError("refused"), 502),
        (UpstreamTimeoutError("Timeout after 12000ms for x"), 504),
        (UpstreamParseError("Invalid JSON"), 500),
    ])
    def test_neo_lookup_errors(self, client, nasa, error, status):
        nasa.get_neo_lookup.side_effect = error

        response = client.get("/api/neo/3542519")

        assert response.status_code == status
        assert response.json() == {"error": error.message}

    def test_failures_are_not_cached(self, client, nasa):
        nasa.get_neo_today.side_effect = [UpstreamHTTPError("HTTP 500", status=500), {"element_count": 0}]

        assert client.get("/api/neo/today").status_code == 502
        assert client.get("/api/neo/today").json() == {"element_count": 0}


class TestNeoRoutes:

    def test_feed_passes_dates(self, client, nasa):
        nasa.get_neo_feed.return_value = {"near_earth_objects": {}}
        client.get("/api/neo/feed?start_date=2024-05-01&end_date=2024-05-02")
        nasa.get_neo_feed.assert_awaited_once_with(start_date="2024-05-01", end_date="2024-05-02")

    def test_lookup(self, client, nasa):
        nasa.get_neo_lookup.return_value = {"id": "3542519"}
        assert client.get("/api/neo/3542519").json() == {"id": "3542519"}
        nasa.get_neo_lookup.assert_awaited_once_with("3542519")


class TestApodRoute:

    def test_falls_back_to_known_good_date(self, client, nasa):
        nasa.get_apod.side_effect = [
            UpstreamHTTPError("HTTP 400 - date out of range", status=400),
            {"date": "2024-09-30", "title": "Andromeda"},
        ]

        response = client.get("/api/apod?date=1900-01-01&hd=true")

        assert response.status_code == 200
        assert response.json()["title"] == "Andromeda"
        assert nasa.get_apod.await_args_list[0].kwargs == {"date": "1900-01-01", "hd": True}
        assert nasa.get_apod.await_args_list[1].kwargs == {"date": "2024-09-30", "hd": True}

    def test_not_found_after_fallback(self, client, nasa):
        nasa.get_apod.side_effect = UpstreamHTTPError("HTTP 404", status=404)

        response = client.get("/api/apod?date=2030-01-01")

        assert response.status_code == 404
        assert response.json() == {"error": "APOD not found for the requested date"}

    def test_server_errors_propagate_without_fallback(self, client, nasa):
        nasa.get_apod.side_effect = UpstreamHTTPError("HTTP 500", status=500)

        assert client.get("/api/apod").status_code == 502
        nasa.get_apod.assert_awaited_once()

    def test_cached_by_date_and_hd(self, client, nasa):
        nasa.get_apod.return_value = {"title": "Today"}

        client.get("/api/apod")
        client.get("/api/apod?hd=false")
        client.get("/api/apod?hd=true")

        assert nasa.get_apod.await_count == 2

    @pytest.mark.parametrize("value,expected", [("TRUE", True), ("yes please", False), ("1", False)])
    def test_hd_only_honours_true(self, client, nasa, value, expected):
        nasa.get_apod.return_value = {"title": "Today"}

        response = client.get("/api/apod", params={"hd": value})

        assert response.status_code == 200
        assert nasa.get_apod.await_args.kwargs == {"date": None, "hd": expected}


class TestFeedRoute:

    def test_feed_merges_and_sorts(self, client, nasa, sample_flares, sample_neo_today):
        nasa.get_flares.return_value = sample_flares
        nasa.get_cmes.return_value = [{"startTime": "2024-05-09T10:00Z"}]
        nasa.get_geomagnetic_storms.side_effect = UpstreamHTTPError("HTTP 503", status=503)
        nasa.get_neo_today.return_value = sample_neo_today
        nasa.get_apod.return_value = {"date": "2024-05-10", "title": "Galaxy"}

        response = client.get("/api/feed?flares_days=1&cmes_days=abc")

        assert response.status_code == 200
        assert [i["type"] for i in response.json()] == ["NEO", "APOD", "CME", "FLR", "FLR"]
        nasa.get_flares.assert_awaited_once_with(days=1)
        nasa.get_cmes.assert_awaited_once_with(days=3)
        nasa.get_geomagnetic_storms.assert_awaited_once_with(days=5)

    @pytest.mark.parametrize("value", ["inf", "-inf", "1e400", "nan"])
    def test_unrepresentable_days_fall_back_to_defaults(self, client, nasa, value):
        for method in ("get_flares", "get_cmes", "get_geomagnetic_storms"):
            getattr(nasa, method).return_value = []
        nasa.get_neo_today.return_value = {"near_earth_objects": {}}
        nasa.get_apod.return_value = {}

        response = client.get(f"/api/feed?flares_days={value}")

        assert response.status_code == 200
        nasa.get_flares.assert_awaited_once_with(days=2)

    def test_not_found_degrades_to_empty_list(self, client):
        with patch("app.api.endpoints.feed.build_feed", new_callable=AsyncMock) as build:
            build.side_effect = UpstreamHTTPError("HTTP 404", status=404)
            response = client.get("/api/feed")

        assert response.status_code == 200
        assert response.json() == []


class TestAnalyticsRoutes:

    def test_overview_tolerates_partial_failure(self, client, nasa):
        nasa.get_flares.return_value = [{"classType": "X1.0"}, {"classType": "M2.0"}, {"classType": "X3.0"}]
        nasa.get_cmes.side_effect = UpstreamTimeoutError("Timeout")
        nasa.get_geomagnetic_storms.return_value = []
        nasa.get_hss.return_value = []
        nasa.get_ips.return_value = []
        nasa.get_rbe.side_effect = UpstreamHTTPError("HTTP 500", status=500)
        nasa.get_sep.return_value = []

        response = client.get("/api/analytics/overview?days=7")

        assert response.status_code == 200
        body = response.json()
        assert "cmes" not in body["events"] and "rbe" not in body["events"]
        flares = body["events"]["flares"]["statistics"]
        assert flares["classCounts"] == {"X": 2, "M": 1}
        assert flares["intensityDistribution"] == {"low": 0, "medium": 1, "high": 2}
        assert flares["mostCommonClass"] == "X"
        assert body["summary"]["totalEvents"] == 3
        assert body["summary"]["mostActiveType"] == "flares"
        nasa.get_sep.assert_awaited_once_with(days=7)

    def test_overview_is_cached(self, client, nasa):
        for name in ("get_flares", "get_cmes", "get_geomagnetic_storms", "get_hss", "get_ips", "get_rbe", "get_sep"):
            getattr(nasa, name).return_value = []

        client.get("/api/analytics/overview")
        client.get("/api/analytics/overview?days=7")

        nasa.get_flares.assert_awaited_once_with(days=7)

    @pytest.mark.parametrize("alias", ["GST", "geomagnetic-storms", "geomagneticstorm"])
    def test_chart_data_aliases(self, client, nasa, alias):
        nasa.fetch_category.return_value = [{"allKpIndex": [{"kpIndex": 5.0}, {"kpIndex": 6.5}, {"kpIndex": 9.0}]}]

        response = client.get(f"/api/analytics/chart-data/{alias}?days=3")

        assert response.status_code == 200
        body = response.json()
        assert body["eventType"] == "geomagneticstorms"
        assert body["statistics"]["stormIntensity"]["extreme"] == 1
        nasa.fetch_category.assert_awaited_once_with("geomagneticstorms", days=3)

    def test_chart_data_unknown_type(self, client, nasa):
        response = client.get("/api/analytics/chart-data/Sunspots")

        assert response.status_code == 400
        assert response.json() == {"error": "Unknown event type: Sunspots"}
        nasa.fetch_category.assert_not_awaited()

    def test_chart_data_upstream_failure(self, client, nasa):
        nasa.fetch_category.side_effect = UpstreamHTTPError("HTTP 503 - down", status=503)

        response = client.get("/api/analytics/chart-data/flares")

        assert response.status_code == 500
        assert response.json() == {"error": "Chart data failed", "message": "HTTP 503 - down"}
