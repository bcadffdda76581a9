"""
API tests using the FastAPI test client.

Startup hooks are not run; the seed store is swapped for a temp file per test.
"""
import json
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from karmatic.adapters.review_store import JSONReviewStore
from karmatic.api import app

client = TestClient(app)


def _iso_days_ago(days):
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


def _review_payload(rating, text="", days_ago=None):
    return {
        "id": f"r-{rating}-{days_ago}",
        "author": "Cliente",
        "rating": rating,
        "text": text,
        "date": _iso_days_ago(days_ago) if days_ago is not None else ""
    }


@pytest.fixture
def seed_file(tmp_path, monkeypatch):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps({
        "agencies": [{
            "placeId": "seed-1",
            "name": "Autos Uno",
            "rating": 4.5,
            "reviews": [_review_payload(5, "Muy honestos", 2), _review_payload(1, "Fraude", 4)]
        }]
    }), encoding="utf-8")
    store = JSONReviewStore(path)
    monkeypatch.setattr("karmatic.api.seed_store", store)
    return path


class TestScoringEndpoints:
    """Review metrics and trust analysis."""

    def test_trust_analyze(self, event_logger):
        reviews = [_review_payload(5) for _ in range(9)] + [_review_payload(1)]
        response = client.post("/api/trust/analyze", json={"reviews": reviews})

        assert response.status_code == 200
        data = response.json()
        assert data["trustAnalysis"]["trustScore"] == 71
        assert data["trustAnalysis"]["trustLevel"] == "alta"
        assert data["trustAnalysis"]["metrics"]["ratingPattern"] == "sospechoso"
        assert data["reviewMetrics"]["karmaScoreSample"] == 90.0
        assert data["summary"].startswith("🟢 Confianza alta (71/100)")

    def test_metrics_empty(self):
        response = client.post("/api/reviews/metrics", json={"reviews": []})

        assert response.status_code == 200
        data = response.json()
        assert data["processedReviewsCount"] == 0
        assert data["reviewFrequencyCategory"] == "No Determinada"
        assert data["karmaScoreSample"] is None
        assert data["ratingDistributionSample"] == {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}

    def test_metrics_tolerates_messy_reviews(self):
        reviews = [
            {"rating": "4", "text": None, "date": "ayer"},
            {"rating": None},
            {"rating": 5, "date": _iso_days_ago(3)},
        ]
        response = client.post("/api/reviews/metrics", json={"reviews": reviews})

        assert response.status_code == 200
        data = response.json()
        assert data["processedReviewsCount"] == 3
        assert data["averageRatingSample"] == 4.5
        assert data["daysSinceLastReview"] == 3

    def test_bad_payload(self):
        response = client.post("/api/trust/analyze", json={"reviews": "nope"})
        assert response.status_code == 422


class TestAgencyEndpoints:
    """Batch ranking and seed data."""

    def test_analyze_agencies(self, event_logger):
        payload = {
            "agencies": [
                {
                    "placeId": "p-good",
                    "name": "Buena",
                    "rating": 4.8,
                    "location": {"lat": 19.4326, "lng": -99.1332},
                    "reviews": [_review_payload(5, "Muy honestos", d) for d in (1, 2, 3)]
                },
                {
                    "placeId": "p-low",
                    "name": "Baja",
                    "rating": 3.0,
                    "reviews": [_review_payload(5, "", 1)]
                }
            ]
        }
        response = client.post("/api/agencies/analyze", json=payload)

        assert response.status_code == 200
        data = response.json()
        assert [a["agency"]["placeId"] for a in data["agencies"]] == ["p-good"]
        assert data["agencies"][0]["distance"] == 0.0
        assert data["metadata"]["totalAgenciesFound"] == 2
        assert data["metadata"]["totalAccepted"] == 1

    def test_analyze_requires_agencies(self):
        response = client.post("/api/agencies/analyze", json={"agencies": []})
        assert response.status_code == 422

    def test_seed_agency_trust(self, seed_file, event_logger):
        response = client.get("/api/seed/agencies/seed-1/trust")

        assert response.status_code == 200
        data = response.json()
        assert data["reviewMetrics"]["processedReviewsCount"] == 2
        assert 0 <= data["trustAnalysis"]["trustScore"] <= 100
        assert event_logger.read_events()[-1].event_id == 1001

    def test_seed_agency_not_found(self, seed_file, event_logger):
        response = client.get("/api/seed/agencies/missing/trust")
        assert response.status_code == 404


class TestSystemEndpoints:
    """Status, events and root."""

    def test_status(self, seed_file, event_logger):
        response = client.get("/api/status")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["seed_agencies"] == 1
        assert data["event_count"] == 0

    def test_status_degraded(self, tmp_path, monkeypatch, event_logger):
        broken = tmp_path / "broken.json"
        broken.write_text("{not json", encoding="utf-8")
        monkeypatch.setattr("karmatic.api.seed_store", JSONReviewStore(broken))

        data = client.get("/api/status").json()
        assert data["status"] == "degraded"
        assert data["seed_agencies"] == 0

    def test_events(self, seed_file, event_logger):
        client.get("/api/seed/agencies/seed-1/trust")

        data = client.get("/api/events", params={"limit": 1}).json()
        assert data["count"] == 1
        assert data["events"][0]["category"] == "Trust"

        info = client.get("/api/events", params={"level": "Information"}).json()
        assert all(event["level"] == "Information" for event in info["events"])

    def test_events_bad_limit(self, event_logger):
        assert client.get("/api/events", params={"limit": 0}).status_code == 422

    def test_root(self):
        data = client.get("/").json()
        assert data["status"] == "Karmatic Trust API running"
