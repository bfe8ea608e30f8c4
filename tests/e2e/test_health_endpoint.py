"""End-to-end tests for health and root endpoints."""

from defaultanswer.main import VERSION
from defaultanswer.services.sweep_prompts import PROMPT_SET_VERSION


class TestHealthEndpoint:
    """Test health check endpoint."""

    def test_health_endpoint_returns_200(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200

    def test_health_endpoint_response_format(self, test_client):
        """Without Supabase the service still reports healthy."""
        response = test_client.get("/health")

        assert response.json() == {
            "status": "ok",
            "environment": "local",
            "history_configured": False,
            "prompt_set_version": PROMPT_SET_VERSION,
        }


class TestRootEndpoint:
    def test_root(self, test_client):
        response = test_client.get("/")

        assert response.status_code == 200
        assert response.json() == {"message": "DefaultAnswer API", "version": VERSION}


class TestCorrelationId:
    """Test the correlation ID middleware through the app."""

    def test_generates_header(self, test_client):
        response = test_client.get("/health")

        assert len(response.headers["X-Correlation-ID"]) == 32

    def test_echoes_incoming_header(self, test_client):
        response = test_client.get("/health", headers={"X-Correlation-ID": "req-123"})

        assert response.headers["X-Correlation-ID"] == "req-123"
