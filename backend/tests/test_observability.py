"""Tests for observability features: metrics, health checks, and request tracing."""

from __future__ import annotations

from backend.app.circuit_breaker import CircuitState
from backend.app.health import health_checker
from backend.app.metrics import normalize_endpoint
from backend.app.service import service
from backend.app.settings import settings
from backend.app.utils import get_request_id, request_id_ctx

# ==============================================================================
# PROMETHEUS METRICS TESTS
# ==============================================================================


class TestPrometheusMetrics:
    """Test Prometheus metrics endpoint and tracking."""

    def test_metrics_endpoint_exists(self, client):
        """Test /metrics endpoint is accessible"""
        response = client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")

    def test_metrics_endpoint_returns_prometheus_format(self, client):
        """Test metrics endpoint returns Prometheus format"""
        content = client.get("/metrics").text

        assert "# HELP" in content
        assert "# TYPE" in content
        assert "local_directory_info" in content

    def test_http_metrics_tracked(self, client):
        """Test HTTP request metrics are tracked"""
        client.get("/health")
        client.get("/v1/businesses/3")

        content = client.get("/metrics").text

        assert "http_requests_total" in content
        assert "http_request_duration_seconds" in content
        assert 'endpoint="/v1/businesses/{id}"' in content

    def test_directory_metrics_tracked(self, client):
        client.post(
            "/v1/businesses",
            json={"name": "Metric Cafe", "category_id": "cafes", "address": "1 Count St"},
        )
        client.get("/v1/businesses/search", params={"q": "cafe"})

        content = client.get("/metrics").text

        assert 'directory_mutations_total{operation="create"}' in content
        assert "search_results_count_bucket" in content

    def test_endpoint_normalization(self):
        """Test endpoint path normalization for metrics"""
        assert (
            normalize_endpoint("/v1/reviews/123e4567-e89b-12d3-a456-426614174000")
            == "/v1/reviews/{id}"
        )
        assert normalize_endpoint("/v1/businesses/12345") == "/v1/businesses/{id}"
        assert normalize_endpoint("/v1/businesses/7/reviews") == "/v1/businesses/{id}/reviews"
        assert (
            normalize_endpoint("/v1/blog/local-bistro-covid-survival-story") == "/v1/blog/{slug}"
        )

        # Regular paths unchanged
        assert normalize_endpoint("/health") == "/health"
        assert normalize_endpoint("/v1/categories/cafes") == "/v1/categories/cafes"

        # Long alphanumeric IDs (20+ chars to match threshold)
        assert normalize_endpoint("/v1/users/abc123def456ghi789xyz/saved") == "/v1/users/{id}/saved"

    def test_metrics_endpoint_not_tracked(self, client):
        """Test that /metrics endpoint doesn't track itself"""
        content = client.get("/metrics").text
        assert 'endpoint="/metrics"' not in content


# ==============================================================================
# HEALTH CHECK TESTS
# ==============================================================================


class TestEnhancedHealthCheck:
    """Test enhanced health check with dependency verification."""

    def test_health_endpoint_basic_structure(self, client):
        """Test health endpoint returns expected structure"""
        response = client.get("/health")
        assert response.status_code in [200, 503]

        data = response.json()
        assert "status" in data
        assert "timestamp" in data
        assert data["checks"]
        assert data["service"] == "local-directory"
        assert data["version"] == "0.3.0"

    def test_health_check_includes_dependencies(self, client):
        """Test health check includes all dependency checks"""
        checks = client.get("/health").json()["checks"]

        assert set(checks) == {"directory", "database", "content_api", "sentry"}

    def test_health_check_reports_directory_and_database(self, client):
        checks = client.get("/health").json()["checks"]

        assert checks["directory"]["status"] == "ok"
        assert checks["directory"]["business_count"] == 8
        assert checks["directory"]["category_count"] == 6
        assert checks["database"]["status"] == "ok"
        assert "storage_path" in checks["database"]

    def test_disabled_content_api_keeps_service_healthy(self, client):
        response = client.get("/health")
        payload = response.json()

        assert payload["checks"]["content_api"]["status"] == "disabled"
        assert payload["status"] == "healthy"
        assert response.status_code == 200

    def test_open_content_circuit_reports_fallback(self, client):
        breaker = service.content.breaker
        service.content.enabled = True
        breaker._transition_to(CircuitState.OPEN)
        try:
            payload = client.get("/health").json()
            content_check = payload["checks"]["content_api"]
            assert content_check["status"] == "fallback"
            assert content_check["circuit"]["state"] == "open"
            assert payload["status"] == "healthy"
        finally:
            service.content.enabled = False
            breaker.reset()

    def test_health_disables_optional_dependencies(self, client):
        """Optional deps should be marked disabled when not configured."""
        original_sentry = settings.SENTRY_DSN
        try:
            settings.SENTRY_DSN = None
            health_checker.clear_cache()
            response = client.get("/health")
            payload = response.json()
            assert response.status_code == 200
            assert payload["checks"]["sentry"]["status"] == "disabled"
            assert payload["status"] == "healthy"
        finally:
            settings.SENTRY_DSN = original_sentry
            health_checker.clear_cache()

    def test_invalid_sentry_dsn_degrades_without_leaking_details(self, client):
        original_sentry = settings.SENTRY_DSN
        try:
            settings.SENTRY_DSN = "not-a-dsn"
            health_checker.clear_cache()
            response = client.get("/health")
            payload = response.json()
            assert response.status_code == 503
            assert payload["status"] == "degraded"
            assert payload["checks"]["sentry"] == {"status": "error"}
        finally:
            settings.SENTRY_DSN = original_sentry
            health_checker.clear_cache()


# ==============================================================================
# REQUEST ID TRACING TESTS
# ==============================================================================


class TestRequestIDTracing:
    """Test request ID tracing middleware."""

    def test_request_id_generated_if_not_provided(self, client):
        """Test request ID is generated if not provided in headers"""
        request_id = client.get("/health").headers["X-Request-ID"]

        # Should be a valid UUID format
        assert len(request_id) == 36
        assert request_id.count("-") == 4

    def test_request_id_preserved_from_header(self, client):
        """Test existing X-Request-ID header is preserved"""
        custom_id = "test-request-12345"
        response = client.get("/v1/categories", headers={"X-Request-ID": custom_id})
        assert response.headers["X-Request-ID"] == custom_id

    def test_request_id_unique_per_request(self, client):
        """Test each request gets a unique request ID"""
        id1 = client.get("/health").headers["X-Request-ID"]
        id2 = client.get("/health").headers["X-Request-ID"]
        assert id1 != id2

    def test_request_id_context_accessible(self):
        """Test request ID is accessible via context variable"""
        request_id_ctx.set("test-context-id")
        assert get_request_id() == "test-context-id"

        request_id_ctx.set("")
        assert get_request_id() == ""

    def test_error_responses_have_request_id(self, client):
        """Test error responses include request ID for debugging"""
        for path in ("/nonexistent-endpoint", "/v1/businesses/999"):
            response = client.get(path)
            assert response.status_code == 404
            assert "X-Request-ID" in response.headers

    def test_security_headers_present(self, client):
        response = client.get("/v1/stats")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
