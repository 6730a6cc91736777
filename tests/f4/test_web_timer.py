"""Tests for live timer endpoints (F4)."""

import asyncio

import pytest

from studytrack.web.timers import get_timer_manager


@pytest.fixture
def short_focus(client, auth_headers):
    """One-minute focus sessions."""
    response = client.patch("/api/settings", json={"focus_time": 1}, headers=auth_headers)
    assert response.status_code == 200
    return auth_headers


class TestTimerControls:
    """Tests for /api/timer controls."""

    def test_initial_state(self, client, auth_headers):
        response = client.get("/api/timer", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["mode"] == "focus"
        assert data["label"] == "Focus Session"
        assert data["time_left"] == 1500
        assert data["clock"] == "25:00"
        assert data["is_running"] is False
        assert data["play_sound"] is False

    def test_start_and_pause(self, client, auth_headers, tick):
        response = client.post("/api/timer/start", headers=auth_headers)
        assert response.json()["is_running"] is True

        tick(3)
        assert client.get("/api/timer", headers=auth_headers).json()["time_left"] == 1497

        response = client.post("/api/timer/pause", headers=auth_headers)
        data = response.json()
        assert data["is_running"] is False
        assert data["session_started"] is True

        tick(3)
        assert client.get("/api/timer", headers=auth_headers).json()["time_left"] == 1497

    def test_start_with_subject(self, client, auth_headers):
        subject = client.post("/api/subjects", json={"name": "Math"}, headers=auth_headers).json()
        response = client.post(
            "/api/timer/start", json={"subject_id": subject["id"]}, headers=auth_headers
        )
        assert response.json()["subject_id"] == subject["id"]

    def test_start_with_unknown_subject(self, client, auth_headers):
        response = client.post(
            "/api/timer/start", json={"subject_id": "missing"}, headers=auth_headers
        )
        assert response.status_code == 404

    def test_reset(self, client, auth_headers, tick):
        client.post("/api/timer/start", headers=auth_headers)
        tick(5)
        data = client.post("/api/timer/reset", headers=auth_headers).json()
        assert data["time_left"] == 1500
        assert data["session_started"] is False

    def test_mode_change(self, client, auth_headers):
        response = client.put("/api/timer/mode", json={"mode": "long"}, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["mode"] == "long"
        assert data["time_left"] == 15 * 60

    def test_mode_change_blocked_during_session(self, client, auth_headers):
        client.post("/api/timer/start", headers=auth_headers)
        response = client.put("/api/timer/mode", json={"mode": "short"}, headers=auth_headers)
        assert response.status_code == 409

    def test_invalid_mode(self, client, auth_headers):
        response = client.put("/api/timer/mode", json={"mode": "nap"}, headers=auth_headers)
        assert response.status_code == 422

    def test_toggle_sound(self, client, auth_headers):
        assert client.post("/api/timer/sound", headers=auth_headers).json()["sound_enabled"] is False
        assert client.post("/api/timer/sound", headers=auth_headers).json()["sound_enabled"] is True

    def test_timers_are_per_user(self, client, auth_headers, register):
        other = register(name="Bob", email="bob@example.com")
        client.post("/api/timer/start", headers=auth_headers)
        assert client.get("/api/timer", headers=other).json()["is_running"] is False


class TestTimerCompletion:
    """Tests for completed sessions recorded by the live timer."""

    def test_completed_session_is_recorded(self, client, short_focus, tick):
        client.post("/api/timer/start", headers=short_focus)

        assert tick(59) == []
        recorded = tick(1)
        assert len(recorded) == 1
        assert recorded[0].type == "focus"
        assert recorded[0].duration == 1

        sessions = client.get("/api/sessions", headers=short_focus).json()
        assert sessions["count"] == 1
        stats = client.get("/api/stats", headers=short_focus).json()
        assert stats["sessions_completed"] == 1

    def test_sound_cue_delivered_once(self, client, short_focus, tick):
        client.post("/api/timer/start", headers=short_focus)
        tick(60)

        first = client.get("/api/timer", headers=short_focus).json()
        assert first["play_sound"] is True
        assert first["is_running"] is False
        assert first["time_left"] == 60

        second = client.get("/api/timer", headers=short_focus).json()
        assert second["play_sound"] is False

    def test_no_sound_when_disabled(self, client, short_focus, tick):
        client.post("/api/timer/sound", headers=short_focus)
        client.post("/api/timer/start", headers=short_focus)
        tick(60)
        assert client.get("/api/timer", headers=short_focus).json()["play_sound"] is False

    def test_auto_start_next_mode(self, client, auth_headers, tick):
        client.patch(
            "/api/settings",
            json={"focus_time": 1, "short_break": 2, "auto_start": True},
            headers=auth_headers,
        )
        client.post("/api/timer/start", headers=auth_headers)
        tick(60)

        pending = client.get("/api/timer", headers=auth_headers).json()
        assert pending["auto_start_pending"] is True

        tick(2)
        data = client.get("/api/timer", headers=auth_headers).json()
        assert data["mode"] == "short"
        assert data["is_running"] is True
        assert data["time_left"] == 120


class TestTimerLogout:
    """Signing out drops the user's live timer."""

    def test_logout_removes_running_timer(self, client, short_focus, tick):
        client.post("/api/timer/start", headers=short_focus)
        assert asyncio.run(get_timer_manager().get_timer_count()) == 1

        response = client.post("/api/auth/logout", headers=short_focus)
        assert response.status_code == 204
        assert asyncio.run(get_timer_manager().get_timer_count()) == 0

        assert tick(60) == []

    def test_other_users_timer_survives_logout(self, client, short_focus, register, tick):
        other = register(name="Bob", email="bob@example.com")
        client.post("/api/timer/start", headers=other)

        client.post("/api/auth/logout", headers=short_focus)
        assert asyncio.run(get_timer_manager().get_timer_count()) == 1

        tick(3)
        assert client.get("/api/timer", headers=other).json()["time_left"] == 1497
