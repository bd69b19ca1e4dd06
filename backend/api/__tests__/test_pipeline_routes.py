"""
Integration tests for the cron and admin endpoints.

- verify_cron_secret: real dependency, settings patched with a known secret
- get_pipeline_db: overridden with a session on the per-test SQLite database
- run_enrichment_batch / run_scrape: mocked in api.cron_routes

Run: python3 -m pytest api/__tests__/test_pipeline_routes.py -v
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import update

from api.cron_routes import get_pipeline_db
from config.settings import Settings
from db.jobs_service import persist_new_jobs
from main import app
from models.job import EnrichmentStatus, Job
from sourcing.models import NormalizedJob, ScrapeResult
from workers.types import EnrichmentBatchResult

SECRET = "test-cron-secret"
AUTH = {"Authorization": f"Bearer {SECRET}"}


@pytest.fixture
def client(session_factory):
    """Test client with the cron secret set and DB sessions on SQLite."""
    def override_get_pipeline_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_pipeline_db] = override_get_pipeline_db
    with patch("auth.dependencies.settings", Settings(_env_file=None, CRON_SECRET=SECRET)):
        yield TestClient(app)
    app.dependency_overrides.clear()


def seed(db, count: int) -> list[int]:
    jobs = [
        NormalizedJob(company=f"Company {i}", role="Engineer", location="Remote", source_name="remoteok")
        for i in range(count)
    ]
    persist_new_jobs(db, jobs)
    return [job_id for (job_id,) in db.query(Job.id).order_by(Job.id).all()]


def set_status(db, job_id: int, status: str, **values) -> None:
    db.execute(update(Job).where(Job.id == job_id).values(enrichment_status=status, **values))
    db.commit()


class TestCronSecret:
    """Tests for verify_cron_secret on every pipeline endpoint."""

    @pytest.mark.parametrize("method, path", [
        ("post", "/api/cron/enrich"),
        ("post", "/api/cron/scrape"),
        ("get", "/api/admin/jobs/enrich"),
        ("post", "/api/admin/jobs/enrich"),
    ])
    def test_missing_header(self, client, method, path):
        response = getattr(client, method)(path)
        assert response.status_code == 401

    def test_wrong_secret(self, client):
        response = client.post("/api/cron/enrich", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized"

    def test_secret_not_configured(self, client):
        with patch("auth.dependencies.settings", Settings(_env_file=None, CRON_SECRET="")):
            response = client.post("/api/cron/enrich", headers=AUTH)

        assert response.status_code == 500
        assert response.json()["detail"] == "Server misconfiguration"


class TestCronEnrich:
    """Tests for POST /api/cron/enrich."""

    def test_returns_batch_counts(self, client):
        batch = AsyncMock(return_value=EnrichmentBatchResult(processed=3, enriched=2, failed=1, remaining=7))

        with patch("api.cron_routes.run_enrichment_batch", batch):
            response = client.post("/api/cron/enrich", headers=AUTH)

        assert response.status_code == 200
        assert response.json() == {"processed": 3, "enriched": 2, "failed": 1, "remaining": 7}
        batch.assert_awaited_once()

    def test_batch_error_is_500(self, client):
        batch = AsyncMock(side_effect=RuntimeError("claim failed"))

        with patch("api.cron_routes.run_enrichment_batch", batch):
            response = client.post("/api/cron/enrich", headers=AUTH)

        assert response.status_code == 500
        assert response.json()["detail"] == "Enrichment batch failed"


class TestCronScrape:
    def test_returns_scrape_result(self, client):
        scrape = AsyncMock(return_value=ScrapeResult(
            fetched=10, new_jobs=4, duplicates=6, errors=["reed: HTTP error: 418"], by_source={"remoteok": 4},
        ))

        with patch("api.cron_routes.run_scrape", scrape):
            response = client.post("/api/cron/scrape", headers=AUTH)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "fetched": 10,
            "new_jobs": 4,
            "duplicates": 6,
            "errors": ["reed: HTTP error: 418"],
            "by_source": {"remoteok": 4},
        }


class TestAdminQueue:
    """Tests for GET/POST /api/admin/jobs/enrich."""

    def test_stats_and_stuck(self, client, test_db):
        ids = seed(test_db, 3)
        set_status(
            test_db,
            ids[0],
            EnrichmentStatus.PROCESSING,
            enrichment_started_at=datetime.now(timezone.utc) - timedelta(hours=2),
        )

        response = client.get("/api/admin/jobs/enrich", headers=AUTH)

        assert response.status_code == 200
        body = response.json()
        assert body["stats"]["pending"] == 2
        assert body["stats"]["processing"] == 1
        assert body["stats"]["total"] == 3
        assert [job["id"] for job in body["stuck"]] == [ids[0]]

    def test_enqueue_single(self, client, test_db):
        ids = seed(test_db, 1)
        set_status(test_db, ids[0], EnrichmentStatus.ENRICHED)

        response = client.post("/api/admin/jobs/enrich", headers=AUTH, json={"job_id": ids[0]})

        assert response.status_code == 200
        body = response.json()
        assert body["action"] == "enqueue_single"
        assert body["queued"] is True
        assert body["stats"]["pending"] == 1

    def test_enqueue_unknown_job(self, client):
        response = client.post("/api/admin/jobs/enrich", headers=AUTH, json={"job_id": 999})

        assert response.status_code == 404
        assert response.json()["detail"] == "Job not found"

    def test_enqueue_all(self, client, test_db):
        ids = seed(test_db, 3)
        for job_id in ids[:2]:
            set_status(test_db, job_id, EnrichmentStatus.NONE)

        response = client.post("/api/admin/jobs/enrich", headers=AUTH, json={"all": True})

        assert response.status_code == 200
        assert response.json()["action"] == "enqueue_all"
        assert response.json()["queued"] == 2

    def test_reset_failed(self, client, test_db):
        ids = seed(test_db, 2)
        set_status(test_db, ids[0], EnrichmentStatus.FAILED, enrichment_retries=1)

        response = client.post("/api/admin/jobs/enrich", headers=AUTH, json={"reset": True})

        body = response.json()
        assert body["action"] == "reset_failed"
        assert body["reset"] == 1
        assert body["stats"]["failed"] == 0
        assert body["stats"]["pending"] == 2

    def test_no_action_is_400(self, client):
        response = client.post("/api/admin/jobs/enrich", headers=AUTH, json={"all": False})

        assert response.status_code == 400
        assert "Provide" in response.json()["detail"]
