"""
Tests for the /interests HTTP endpoints.
"""

import pytest
from conftest import FakeProvider
from fastapi.testclient import TestClient

from interests.api import get_engine
from interests.engine import SelectionEngine
from interests.errors import PersistenceError
from interests.store import InMemoryStorage, PreferenceStore
from pulse.web.app import app


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class BrokenStorage(InMemoryStorage):
    def write(self, key, document):
        raise PersistenceError("read-only filesystem")


class TestReadEndpoints:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_taxonomy(self, client):
        data = client.get("/interests/taxonomy").json()
        ids = [c["id"] for c in data["categories"]]
        assert ids == ["sports", "moviesTV", "news", "youtube", "custom"]

    def test_initial_state(self, client):
        data = client.get("/interests/state").json()
        assert data["active_category"] is None
        assert set(data["profile"]["categories"]) == {"sports", "moviesTV", "news", "youtube"}
        assert data["loading"] == {"sports": False, "moviesTV": False, "news": False, "youtube": False}


class TestSelectionFlow:

    def test_news_flow(self, client, provider):
        assert client.post("/interests/category", json={"category_id": "news"}).status_code == 200

        data = client.post("/interests/tags/toggle", json={"category": "news", "tag_id": "elections"}).json()
        assert data["profile"]["categories"]["news"]["selected_tags"] == ["elections"]

        data = client.post("/interests/ai-questions/news").json()
        questions = data["profile"]["categories"]["news"]["ai_follow_up_questions"]
        assert [q["question"] for q in questions] == provider.questions

        data = client.put(
            f"/interests/ai-questions/news/{questions[0]['id']}",
            json={"text": "National elections"},
        ).json()
        assert data["profile"]["categories"]["news"]["ai_follow_up_questions"][0]["answer"] == "National elections"

        assert client.post("/interests/validate").json() == {"valid": True, "errors": []}

    def test_validate_defaults(self, client):
        data = client.post("/interests/validate").json()
        assert data["valid"] is False
        assert data["errors"]

    def test_sub_category_and_other_text(self, client):
        client.post("/interests/category", json={"category_id": "sports"})
        client.post("/interests/sub-category", json={"sub_category_id": "sports_other"})
        data = client.put("/interests/other-text", json={"text": "Kabaddi"}).json()

        assert data["active_sub_category"] == "sports_other"
        assert data["profile"]["categories"]["sports"]["other_text"] == "Kabaddi"

    def test_follow_up_answers(self, client):
        client.post("/interests/category", json={"category_id": "sports"})
        client.post("/interests/sub-category", json={"sub_category_id": "sports_cricket"})

        answers = client.get("/interests/follow-ups/sports/favTeam/answers").json()["answers"]
        assert "India" in [a["label"] for a in answers]

        data = client.post(
            "/interests/follow-ups/predefined",
            json={"category": "sports", "question_id": "favTeam", "tag_label": "India"},
        ).json()
        answer = data["profile"]["categories"]["sports"]["follow_up_answers"]["favTeam"]
        assert answer["selected_predefined_tags"] == ["India"]

        data = client.post("/interests/follow-ups/other", json={"category": "sports", "question_id": "favTeam"}).json()
        assert data["active_other_input"] == "sports-favTeam-other"

        data = client.put(
            "/interests/follow-ups/other",
            json={"category": "sports", "question_id": "favTeam", "text": "Kerala"},
        ).json()
        assert data["profile"]["categories"]["sports"]["follow_up_answers"]["favTeam"]["custom_answer_via_other"] == "Kerala"

    def test_custom_tags(self, client):
        client.post("/interests/custom-tags", json={"scope": "global", "text": "Knitting"})
        client.post("/interests/custom-tags/toggle", json={"scope": "global", "text": "Chess"})
        data = client.post("/interests/custom-tags/remove", json={"scope": "global", "text": "Knitting"}).json()
        assert data["profile"]["custom_interest_tags"] == ["Chess"]

        client.put("/interests/instruction-draft", json={"text": "No spoilers"})
        data = client.post("/interests/custom-tags", json={"scope": "sports"}).json()
        assert data["profile"]["categories"]["sports"]["instruction_tags"] == ["No spoilers"]


class TestErrors:

    def test_validation_error_is_400(self, client):
        response = client.post("/interests/ai-questions/news")
        assert response.status_code == 400
        assert "No tags selected" in response.json()["detail"][0]

    def test_unknown_category_is_404(self, client):
        assert client.post("/interests/category", json={"category_id": "podcasts"}).status_code == 404
        assert client.post("/interests/tags/toggle", json={"category": "podcasts", "tag_id": "x"}).status_code == 404

    def test_unknown_question_is_404(self, client):
        assert client.get("/interests/follow-ups/news/favTeam/answers").status_code == 404

    def test_other_text_without_placeholder_is_400(self, client):
        client.post("/interests/category", json={"category_id": "news"})
        assert client.put("/interests/other-text", json={"text": "x"}).status_code == 400

    def test_provider_failure_is_not_an_http_error(self, client, engine, provider):
        provider.error = RuntimeError("timeout")
        client.post("/interests/tags/toggle", json={"category": "news", "tag_id": "elections"})

        response = client.post("/interests/ai-questions/news")

        assert response.status_code == 200
        data = response.json()
        assert data["profile"]["categories"]["news"]["ai_follow_up_questions"] == []
        assert "news" in data["ai_errors"]

    def test_persistence_error_is_500(self, taxonomy):
        engine = SelectionEngine(PreferenceStore(BrokenStorage()), taxonomy=taxonomy, provider=FakeProvider())
        app.dependency_overrides[get_engine] = lambda: engine
        try:
            response = TestClient(app).post("/interests/tags/toggle", json={"category": "news", "tag_id": "elections"})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert engine.profile.category("news").selected_tags == ()


class TestFrequencyEndpoints:

    def test_custom_frequency(self, client):
        data = client.put("/interests/frequency", json={"frequency": "Custom", "custom_time": "07:45"}).json()
        assert data["profile"]["frequency"] == "Custom"
        assert data["profile"]["custom_frequency_time"] == "07:45"

    def test_invalid_time(self, client):
        response = client.put("/interests/frequency", json={"frequency": "Custom", "custom_time": "25:00"})
        assert response.status_code == 400

    def test_unknown_frequency(self, client):
        response = client.put("/interests/frequency", json={"frequency": "Hourly"})
        assert response.status_code == 400

    def test_pause_toggle(self, client):
        data = client.post("/interests/pause", json={}).json()
        assert data["profile"]["alerts_paused"] is True
        data = client.post("/interests/pause", json={"paused": True}).json()
        assert data["profile"]["alerts_paused"] is True
        data = client.post("/interests/pause", json={}).json()
        assert data["profile"]["alerts_paused"] is False

    def test_reset(self, client):
        client.post("/interests/custom-tags", json={"scope": "global", "text": "Knitting"})
        data = client.post("/interests/reset").json()
        assert data["profile"]["custom_interest_tags"] == []
        assert data["profile"]["version"] == 0
