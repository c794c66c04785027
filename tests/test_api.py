"""
LRS API Tests

End-to-end through FastAPI with the in-memory store.

TEST FOCUS:
- Learning event → stored statement (verb, score, object name)
- Validation failures → 400, batch entries fail individually
- Statement CRUD endpoints and 404s
- Report endpoints, camelCase query parameters
- Info / health endpoints
"""

from unittest.mock import patch

import pytest

VERB_NS = "http://adlnet.gov/expapi/verbs/"

AMA_EVENT = {
    "learnerName": "Ama",
    "action": "completed",
    "activityName": "Intro to Algebra",
    "score": 85,
}

FULL_RANGE = {"startDate": "2000-01-01T00:00:00", "endDate": "2100-01-01T00:00:00"}


def _statement_body(**overrides):
    body = {
        "actor": {"id": "u-1", "name": "Ama", "mbox": "mailto:ama@example.com"},
        "verb": {"id": f"{VERB_NS}completed", "display": {"en-US": "completed"}},
        "object": {
            "id": "http://example.com/activities/algebra",
            "objectType": "Activity",
            "definition": {"name": {"en-US": "Intro to Algebra"}},
        },
        "result": {"score": {"scaled": 0.8}, "completion": True, "success": True},
        "timestamp": "2025-03-01T10:00:00Z",
    }
    body.update(overrides)
    return body


class TestLearningEvents:
    """POST /api/learning-events"""

    def test_submit_event_end_to_end(self, client):
        response = client.post("/api/learning-events", json=AMA_EVENT)
        assert response.status_code == 201

        body = response.json()
        assert body["status"] == "ok"
        data = body["data"]
        assert data["success"] is True
        statement_id = data["statementId"]

        stored = client.get(f"/api/statements/{statement_id}").json()["data"]
        assert stored["verb"]["id"].endswith("/completed")
        assert stored["result"]["score"]["scaled"] == 0.85
        assert stored["object"]["definition"]["name"]["en-US"] == "Intro to Algebra"
        assert stored["version"] == "1.0.3"
        assert stored["actor"]["objectType"] == "Agent"
        assert data["validatedStatement"]["id"] == statement_id

    def test_invalid_event_rejected(self, client, memory_store):
        response = client.post(
            "/api/learning-events",
            json={"action": "completed", "activityName": "Intro"},
        )
        assert response.status_code == 400
        assert "missing required fields" in response.json()["detail"]
        assert memory_store.find_all() == []

    def test_empty_body_rejected(self, client):
        assert client.post("/api/learning-events").status_code == 400

    def test_created_event_is_published_once(self, client):
        from lrs_api.deps import get_event_publisher

        publisher = get_event_publisher()
        with patch.object(publisher, "publish", wraps=publisher.publish) as spy:
            response = client.post("/api/learning-events", json=AMA_EVENT)

        spy.assert_called_once()
        assert spy.call_args.args[0].id == response.json()["data"]["statementId"]

    def test_batch(self, client, memory_store):
        response = client.post(
            "/api/learning-events/batch",
            json={
                "events": [
                    AMA_EVENT,
                    {"learnerName": "Kofi", "action": "   ", "activityName": "Intro"},
                    None,
                    {"learnerId": "u-3", "action": "watched", "activityId": "http://example.com/v/1"},
                ]
            },
        )
        assert response.status_code == 200

        data = response.json()["data"]
        assert data["totalEvents"] == 4
        assert data["successCount"] == 2
        assert data["failureCount"] == 2
        assert [r["success"] for r in data["responses"]] == [True, False, False, True]
        assert data["responses"][1]["message"] == "Validation failed"
        assert len(memory_store.find_all()) == 2

    def test_batch_processing_error_isolated(self, client, memory_store):
        from lrs_api.deps import get_statement_store

        store = get_statement_store()
        original_save = store.save
        calls = {"n": 0}

        def flaky_save(statement):
            calls["n"] += 1
            if calls["n"] == 1:
                raise RuntimeError("disk full")
            return original_save(statement)

        with patch.object(store, "save", side_effect=flaky_save):
            response = client.post(
                "/api/learning-events/batch",
                json={"events": [AMA_EVENT, AMA_EVENT]},
            )

        data = response.json()["data"]
        assert data["successCount"] == 1
        assert data["failureCount"] == 1
        assert data["responses"][0]["message"] == "Processing error: disk full"


class TestStatements:
    """/api/statements CRUD"""

    def test_create_and_get(self, client):
        response = client.post("/api/statements", json=_statement_body())
        assert response.status_code == 201
        created = response.json()["data"]
        assert created["id"]
        assert created["stored"]
        assert created["timestamp"].startswith("2025-03-01T10:00:00")

        fetched = client.get(f"/api/statements/{created['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["data"] == created

    def test_create_requires_actor_verb_object(self, client):
        body = _statement_body()
        del body["verb"]
        assert client.post("/api/statements", json=body).status_code == 422

    def test_unknown_object_type_coerced(self, client):
        body = _statement_body(object={"id": "http://example.com/activities/x", "objectType": "Widget"})
        created = client.post("/api/statements", json=body).json()["data"]
        assert created["object"]["objectType"] == "Activity"

    def test_get_missing(self, client):
        assert client.get("/api/statements/does-not-exist").status_code == 404

    def test_list_filters(self, client):
        client.post("/api/statements", json=_statement_body())
        client.post(
            "/api/statements",
            json=_statement_body(
                actor={"id": "u-2", "name": "Kofi"},
                verb={"id": f"{VERB_NS}viewed"},
                timestamp="2025-04-01T10:00:00Z",
            ),
        )

        assert len(client.get("/api/statements").json()["data"]) == 2

        by_actor = client.get("/api/statements/actor/Kofi").json()["data"]
        assert [s["actor"]["name"] for s in by_actor] == ["Kofi"]

        by_verb = client.get(f"/api/statements/verb/{VERB_NS}viewed").json()["data"]
        assert len(by_verb) == 1

        in_march = client.get(
            "/api/statements/date-range",
            params={"start": "2025-03-01T00:00:00", "end": "2025-03-31T23:59:59"},
        ).json()["data"]
        assert len(in_march) == 1

    def test_date_range_inverted(self, client):
        response = client.get(
            "/api/statements/date-range",
            params={"start": "2025-04-01T00:00:00", "end": "2025-03-01T00:00:00"},
        )
        assert response.status_code == 400

    def test_delete(self, client):
        created = client.post("/api/statements", json=_statement_body()).json()["data"]

        assert client.delete(f"/api/statements/{created['id']}").status_code == 200
        assert client.get(f"/api/statements/{created['id']}").status_code == 404
        assert client.delete(f"/api/statements/{created['id']}").status_code == 404


class TestReports:
    """/api/reports/*"""

    def _seed(self, client):
        client.post("/api/learning-events", json={**AMA_EVENT, "learnerId": "ama", "completed": True})
        client.post(
            "/api/learning-events",
            json={"learnerId": "kofi", "learnerName": "Kofi", "action": "started", "activityName": "Intro to Algebra", "score": 40},
        )
        client.post(
            "/api/learning-events",
            json={"learnerId": "kofi", "learnerName": "Kofi", "action": "viewed", "activityId": "http://example.com/activities/video-1"},
        )

    def test_comprehensive(self, client):
        self._seed(client)
        response = client.get("/api/reports/comprehensive", params=FULL_RANGE)
        assert response.status_code == 200

        report = response.json()["data"]
        assert report["totalStatements"] == 3
        assert report["totalActors"] == 2
        assert report["totalVerbs"] == 3
        assert report["overallCompletionRate"] == pytest.approx(100.0 / 3)
        assert sum(v["percentage"] for v in report["verbBreakdown"]) == pytest.approx(100.0)
        assert [p["actorId"] for p in report["topPerformers"]] == ["ama", "kofi"]
        assert len(report["dailyTrends"]) == 1
        assert report["reportStartDate"].startswith("2000-01-01T00:00:00")

    def test_comprehensive_empty(self, client):
        report = client.get("/api/reports/comprehensive", params=FULL_RANGE).json()["data"]
        assert report["totalStatements"] == 0
        assert report["verbBreakdown"] == []
        assert report["overallAverageScore"] == 0.0

    def test_comprehensive_requires_dates(self, client):
        assert client.get("/api/reports/comprehensive").status_code == 422

    def test_inverted_range(self, client):
        params = {"startDate": "2025-02-01T00:00:00", "endDate": "2025-01-01T00:00:00"}
        assert client.get("/api/reports/verbs", params=params).status_code == 400

    def test_actor_report(self, client):
        self._seed(client)
        report = client.get("/api/reports/actor/kofi").json()["data"]
        assert report["actorName"] == "Kofi"
        assert report["totalStatements"] == 2
        assert report["activitiesAttempted"] == 2
        assert report["averageScore"] == 0.4

    def test_activity_report_with_uri_id(self, client):
        self._seed(client)
        report = client.get("/api/reports/activity/http://example.com/activities/video-1").json()["data"]
        assert report["totalStatements"] == 1
        assert report["activityName"] == "Learning Activity"

    def test_unknown_actor_zeroed(self, client):
        report = client.get("/api/reports/actor/nobody").json()["data"]
        assert report["totalStatements"] == 0
        assert report["completionRate"] == 0.0

    def test_verbs_and_trends(self, client):
        self._seed(client)
        verbs = client.get("/api/reports/verbs", params=FULL_RANGE).json()["data"]
        assert {v["verbDisplay"] for v in verbs} == {"completed", "started", "viewed"}

        trends = client.get("/api/reports/daily-trends", params=FULL_RANGE).json()["data"]
        assert len(trends) == 1
        assert trends[0]["totalStatements"] == 3
        assert trends[0]["uniqueActors"] == 2

    def test_rankings(self, client):
        self._seed(client)
        top = client.get("/api/reports/top-performers", params={"limit": 1}).json()["data"]
        assert [p["actorId"] for p in top] == ["ama"]

        assert client.get("/api/reports/top-performers", params={"limit": 0}).json()["data"] == []

        popular = client.get("/api/reports/popular-activities").json()["data"]
        assert popular[0]["totalStatements"] >= popular[-1]["totalStatements"]


class TestInfo:
    def test_root(self, client):
        body = client.get("/").json()
        assert body["xapiVersion"] == "1.0.3"
        assert "/api/learning-events" in body["endpoints"]

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["details"]["store"] == "alive"
        assert body["details"]["notifications"] == "running"
