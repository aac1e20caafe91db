"""Tests for the HTTP surface."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from oppbrief.agents.orchestrator import PipelineResult
from oppbrief.api.deps import get_pipeline_context
from oppbrief.errors import GENERIC_FAILURE_MESSAGE, ConfigurationError, PipelineError
from oppbrief.main import app


def _context() -> MagicMock:
    context = MagicMock()
    context.extractor.aclose = AsyncMock()
    return context


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def pipeline_context():
    context = _context()

    async def override():
        yield context

    app.dependency_overrides[get_pipeline_context] = override
    yield context
    app.dependency_overrides.pop(get_pipeline_context, None)


def test_health_check(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "oppbrief"}


class TestResearchEndpoint:
    def test_research_returns_and_stores_brief(self, client, pipeline_context, valid_brief):
        pipeline = AsyncMock(return_value=PipelineResult(brief=valid_brief, runtime_ms=1234))
        with patch("oppbrief.api.routes.research.run_research_pipeline", pipeline):
            response = client.post(
                "/api/research",
                json={"name": "Acme Corp", "website": "https://acme.com"},
            )

        assert response.status_code == 200
        data = response.json()
        assert data["runtime_ms"] == 1234
        assert data["brief"]["company"]["name"] == "Acme Corp"
        assert data["brief"]["roi"]["overall_roi_pct"] == valid_brief.roi.overall_roi_pct
        assert set(data["brief"]["confidence"]) == {"company", "competitors", "use_cases"}
        assert pipeline.await_args.args == ("Acme Corp", "https://acme.com")
        assert pipeline.await_args.kwargs == {"context": pipeline_context}

        shared = client.get(f"/api/briefs/{data['share_slug']}")
        assert shared.status_code == 200
        assert shared.json()["company"]["website"] == "https://acme.com"

    def test_pipeline_failure_hides_details_in_production(self, client, pipeline_context):
        pipeline = AsyncMock(side_effect=PipelineError("Failed to generate brief for Acme Corp: HTTP 503"))
        with patch("oppbrief.api.routes.research.run_research_pipeline", pipeline), \
             patch("oppbrief.api.routes.research.settings") as mock_settings:
            mock_settings.is_production = True
            response = client.post("/api/research", json={"name": "Acme Corp", "website": "acme.com"})

        assert response.status_code == 502
        assert response.json()["detail"] == GENERIC_FAILURE_MESSAGE

    def test_pipeline_failure_shows_details_in_development(self, client, pipeline_context):
        pipeline = AsyncMock(side_effect=PipelineError("Failed to generate brief for Acme Corp: HTTP 503"))
        with patch("oppbrief.api.routes.research.run_research_pipeline", pipeline), \
             patch("oppbrief.api.routes.research.settings") as mock_settings:
            mock_settings.is_production = False
            response = client.post("/api/research", json={"name": "Acme Corp", "website": "acme.com"})

        assert response.status_code == 502
        assert "HTTP 503" in response.json()["detail"]

    def test_missing_configuration_returns_503(self, client):
        pipeline = AsyncMock()
        with patch(
            "oppbrief.api.deps.build_context",
            side_effect=ConfigurationError("OPENROUTER_API_KEY is not configured"),
        ), patch("oppbrief.api.routes.research.run_research_pipeline", pipeline):
            response = client.post("/api/research", json={"name": "Acme Corp", "website": "acme.com"})

        assert response.status_code == 503
        assert response.json()["detail"] == "Research service is not configured"
        pipeline.assert_not_awaited()

    def test_configuration_error_during_research_returns_503(self, client, pipeline_context):
        pipeline = AsyncMock(side_effect=ConfigurationError("PERPLEXITY_API_KEY is not configured"))
        with patch("oppbrief.api.routes.research.run_research_pipeline", pipeline):
            response = client.post("/api/research", json={"name": "Acme Corp", "website": "acme.com"})

        assert response.status_code == 503

    @pytest.mark.parametrize("outcome", ["success", "failure"])
    def test_request_context_is_closed(self, client, valid_brief, outcome):
        context = _context()
        if outcome == "success":
            pipeline = AsyncMock(return_value=PipelineResult(brief=valid_brief, runtime_ms=1))
        else:
            pipeline = AsyncMock(side_effect=PipelineError("boom"))
        with patch("oppbrief.api.deps.build_context", return_value=context), \
             patch("oppbrief.api.routes.research.run_research_pipeline", pipeline):
            response = client.post("/api/research", json={"name": "Acme Corp", "website": "acme.com"})

        assert response.status_code == (200 if outcome == "success" else 502)
        context.extractor.aclose.assert_awaited_once()

    def test_blank_name_is_rejected(self, client, pipeline_context):
        response = client.post("/api/research", json={"name": "", "website": "acme.com"})

        assert response.status_code == 422


def test_unknown_share_slug_returns_404(client):
    response = client.get("/api/briefs/does-not-exist")

    assert response.status_code == 404
    assert response.json()["detail"] == "Brief not found"
