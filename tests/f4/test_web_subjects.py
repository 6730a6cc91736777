"""Tests for subject and topic endpoints (F4)."""

import pytest

from studytrack.backend.base import BackendError


@pytest.fixture
def subject(client, auth_headers):
    """Create a subject and return its JSON."""
    response = client.post(
        "/api/subjects",
        json={"name": "Math", "color": "#3366ff"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()


def _add_topics(client, headers, subject_id, *titles):
    data = None
    for title in titles:
        response = client.post(
            f"/api/subjects/{subject_id}/topics",
            json={"title": title},
            headers=headers,
        )
        assert response.status_code == 201
        data = response.json()
    return data


class TestSubjects:
    """Tests for /api/subjects."""

    def test_create_subject(self, subject):
        assert subject["name"] == "Math"
        assert subject["color"] == "#3366ff"
        assert subject["progress"] == 0
        assert subject["topics"] == []
        assert subject["total_topics"] == 0

    def test_create_subject_default_color(self, client, auth_headers):
        response = client.post("/api/subjects", json={"name": "Physics"}, headers=auth_headers)
        assert response.json()["color"] == "#ffffff"

    def test_create_subject_invalid_color(self, client, auth_headers):
        response = client.post(
            "/api/subjects", json={"name": "Math", "color": "blue"}, headers=auth_headers
        )
        assert response.status_code == 422

    def test_create_subject_empty_name(self, client, auth_headers):
        response = client.post("/api/subjects", json={"name": ""}, headers=auth_headers)
        assert response.status_code == 422

    def test_list_subjects(self, client, auth_headers, subject):
        response = client.get("/api/subjects", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["subjects"][0]["id"] == subject["id"]

    def test_subjects_are_per_user(self, client, subject, register):
        other = register(name="Bob", email="bob@example.com")
        response = client.get("/api/subjects", headers=other)
        assert response.json()["count"] == 0

    def test_get_subject_not_found(self, client, auth_headers):
        response = client.get("/api/subjects/missing", headers=auth_headers)
        assert response.status_code == 404

    def test_update_subject(self, client, auth_headers, subject):
        response = client.patch(
            f"/api/subjects/{subject['id']}",
            json={"name": "Mathematics"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Mathematics"
        assert response.json()["color"] == "#3366ff"

    def test_delete_subject(self, client, auth_headers, subject):
        response = client.delete(f"/api/subjects/{subject['id']}", headers=auth_headers)
        assert response.status_code == 204

        response = client.get(f"/api/subjects/{subject['id']}", headers=auth_headers)
        assert response.status_code == 404


class TestTopics:
    """Tests for /api/subjects/{id}/topics."""

    def test_add_topics_in_order(self, client, auth_headers, subject):
        data = _add_topics(client, auth_headers, subject["id"], "Algebra", "Geometry")
        assert [t["title"] for t in data["topics"]] == ["Algebra", "Geometry"]
        assert [t["order"] for t in data["topics"]] == [0, 1]
        assert data["total_topics"] == 2

    def test_add_topic_unknown_subject(self, client, auth_headers):
        response = client.post(
            "/api/subjects/missing/topics", json={"title": "Algebra"}, headers=auth_headers
        )
        assert response.status_code == 404

    def test_toggle_updates_progress(self, client, auth_headers, subject):
        data = _add_topics(client, auth_headers, subject["id"], "Algebra", "Geometry")
        topic_id = data["topics"][0]["id"]

        response = client.post(
            f"/api/subjects/{subject['id']}/topics/{topic_id}/toggle", headers=auth_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["topics"][0]["completed"] is True
        assert data["progress"] == 50.0
        assert data["completed_topics"] == 1

        # Progress survives a reload
        reloaded = client.get(f"/api/subjects/{subject['id']}", headers=auth_headers).json()
        assert reloaded["progress"] == 50.0

    def test_toggle_unknown_topic(self, client, auth_headers, subject):
        response = client.post(
            f"/api/subjects/{subject['id']}/topics/missing/toggle", headers=auth_headers
        )
        assert response.status_code == 404

    def test_update_topic(self, client, auth_headers, subject):
        data = _add_topics(client, auth_headers, subject["id"], "Algebra")
        topic_id = data["topics"][0]["id"]

        response = client.patch(
            f"/api/subjects/{subject['id']}/topics/{topic_id}",
            json={"title": "Linear algebra", "completed": True},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["topics"][0]["title"] == "Linear algebra"
        assert data["progress"] == 100.0

    def test_delete_topic(self, client, auth_headers, subject):
        data = _add_topics(client, auth_headers, subject["id"], "A", "B", "C")
        middle = data["topics"][1]["id"]

        response = client.delete(
            f"/api/subjects/{subject['id']}/topics/{middle}", headers=auth_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert [t["title"] for t in data["topics"]] == ["A", "C"]
        assert [t["order"] for t in data["topics"]] == [0, 1]

    def test_reorder_topics(self, client, auth_headers, subject):
        data = _add_topics(client, auth_headers, subject["id"], "A", "B", "C")
        ids = [t["id"] for t in data["topics"]]

        response = client.put(
            f"/api/subjects/{subject['id']}/topics/order",
            json={"topic_ids": [ids[2], ids[0], ids[1]]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert [t["title"] for t in response.json()["topics"]] == ["C", "A", "B"]

        reloaded = client.get(f"/api/subjects/{subject['id']}", headers=auth_headers).json()
        assert [t["title"] for t in reloaded["topics"]] == ["C", "A", "B"]

    def test_reorder_incomplete_list(self, client, auth_headers, subject):
        data = _add_topics(client, auth_headers, subject["id"], "A", "B")
        response = client.put(
            f"/api/subjects/{subject['id']}/topics/order",
            json={"topic_ids": [data["topics"][0]["id"]]},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_backend_failure_is_502(self, client, auth_headers, subject, backend, monkeypatch):
        async def fail(*args, **kwargs):
            raise BackendError("permission denied", status_code=403)

        monkeypatch.setattr(backend, "insert", fail)
        response = client.post(
            f"/api/subjects/{subject['id']}/topics", json={"title": "A"}, headers=auth_headers
        )
        assert response.status_code == 502
        assert response.json()["detail"] == "Backend request failed"


class TestBlankNames:
    """Names and titles are trimmed before validation."""

    def test_blank_subject_name(self, client, auth_headers):
        response = client.post("/api/subjects", json={"name": "   "}, headers=auth_headers)
        assert response.status_code == 422
        assert client.get("/api/subjects", headers=auth_headers).json()["count"] == 0

    def test_subject_name_is_trimmed(self, client, auth_headers):
        response = client.post("/api/subjects", json={"name": "  Math  "}, headers=auth_headers)
        assert response.status_code == 201
        assert response.json()["name"] == "Math"

    def test_blank_rename(self, client, auth_headers, subject):
        response = client.patch(
            f"/api/subjects/{subject['id']}", json={"name": "  "}, headers=auth_headers
        )
        assert response.status_code == 422
        reloaded = client.get(f"/api/subjects/{subject['id']}", headers=auth_headers).json()
        assert reloaded["name"] == "Math"

    def test_blank_topic_title(self, client, auth_headers, subject):
        response = client.post(
            f"/api/subjects/{subject['id']}/topics", json={"title": "  "}, headers=auth_headers
        )
        assert response.status_code == 422

    def test_blank_topic_rename(self, client, auth_headers, subject):
        data = _add_topics(client, auth_headers, subject["id"], "Algebra")
        topic_id = data["topics"][0]["id"]
        response = client.patch(
            f"/api/subjects/{subject['id']}/topics/{topic_id}",
            json={"title": " "},
            headers=auth_headers,
        )
        assert response.status_code == 422


class TestTopicOrderUpdate:
    """PATCH with an order moves the topic and keeps orders dense."""

    def test_order_past_end_moves_last(self, client, auth_headers, subject):
        data = _add_topics(client, auth_headers, subject["id"], "a", "b", "c")
        first = data["topics"][0]["id"]

        response = client.patch(
            f"/api/subjects/{subject['id']}/topics/{first}",
            json={"order": 7},
            headers=auth_headers,
        )
        assert response.status_code == 200
        expected = [("b", 0), ("c", 1), ("a", 2)]
        assert [(t["title"], t["order"]) for t in response.json()["topics"]] == expected

        reloaded = client.get(f"/api/subjects/{subject['id']}", headers=auth_headers).json()
        assert [(t["title"], t["order"]) for t in reloaded["topics"]] == expected

        data = _add_topics(client, auth_headers, subject["id"], "d")
        assert [(t["title"], t["order"]) for t in data["topics"]] == [*expected, ("d", 3)]

    def test_negative_order_rejected(self, client, auth_headers, subject):
        data = _add_topics(client, auth_headers, subject["id"], "a")
        response = client.patch(
            f"/api/subjects/{subject['id']}/topics/{data['topics'][0]['id']}",
            json={"order": -1},
            headers=auth_headers,
        )
        assert response.status_code == 422
