# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
HTTP tests for the EntryStack Insights service.
Services run over an in-memory repository with a fixed clock.
"""

import json
import logging
import sys
from datetime import timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from conftest import (
    NOW, InMemoryEventRepository, make_event, make_member, make_rsvps, make_task,
)
from entrystack.core.config import settings
from entrystack.core.logging import JSONFormatter
from entrystack.core.dependencies import (
    get_email_service, get_event_repo, get_risk_service,
)
from entrystack.models.domain import Member
from entrystack.services.email_service import EmailService
from entrystack.services.risk_service import RiskService
from main import app

client = TestClient(app)


# ============================================
# Fixtures
# ============================================
@pytest.fixture
def repo():
    jo = make_member(id=7, full_name="Jo Park", email="jo@example.org")
    return InMemoryEventRepository(
        events=[
            make_event(
                id=1, capacity=100, rsvps=make_rsvps(1, confirmed=20),
                volunteer_tasks=[
                    make_task(id=11, title="Book caterer", priority="High",
                              due_at=NOW - timedelta(days=1), assignee=jo),
                    make_task(id=12, title="Print flyers", due_at=NOW + timedelta(days=3)),
                ],
            ),
            make_event(id=2, title="Quiet Meetup", capacity=10,
                       rsvps=make_rsvps(2, confirmed=9)),
        ],
        members=[jo],
    )


@pytest.fixture(autouse=True)
def wire(repo):
    app.dependency_overrides[get_event_repo] = lambda: repo
    app.dependency_overrides[get_risk_service] = lambda: RiskService(repo, clock=lambda: NOW)
    app.dependency_overrides[get_email_service] = lambda: EmailService(repo, clock=lambda: NOW)
    yield
    app.dependency_overrides.clear()


def _generate(**payload):
    return client.post("/ai/email/generate", json=payload)


# ============================================
# Health & Metrics
# ============================================
class TestHealth:
    def test_health(self):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == settings.SERVICE_NAME
        assert data["version"] == settings.SERVICE_VERSION

    def test_ready(self, repo):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["database"] == "connected"
        assert "verify_connection" in repo.calls

    def test_not_ready(self, repo):
        repo.fail_with = RuntimeError("connection refused")
        response = client.get("/health/ready")
        assert response.status_code == 503
        assert "connection refused" in response.json()["detail"]

    def test_metrics(self):
        client.get("/ai/events/1/risks")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "entrystack_requests_total" in response.text
        assert "entrystack_risk_analyses_total" in response.text


class TestRequestID:
    def test_generated(self):
        response = client.get("/health")
        assert "X-Request-ID" in response.headers

    def test_propagated(self):
        response = client.get("/health", headers={"X-Request-ID": "trace-42"})
        assert response.headers["X-Request-ID"] == "trace-42"


# ============================================
# Risk analysis
# ============================================
class TestEventRisks:
    def test_analysis_is_camel_case(self):
        response = client.get("/ai/events/1/risks")
        assert response.status_code == 200
        data = response.json()
        assert data["eventId"] == 1
        assert data["eventTitle"] == "Spring Gala"
        assert set(data["summary"]) == {"totalRisks", "highRisks", "mediumRisks", "lowRisks"}
        assert data["riskScore"] == sum(
            {"high": 3, "medium": 2, "low": 1}[r["severity"]] for r in data["risks"]
        )

    def test_analysis_findings(self):
        data = client.get("/ai/events/1/risks").json()
        types = [r["type"] for r in data["risks"]]
        assert types == ["low_rsvp", "overdue_tasks", "low_completion"]
        assert data["riskLevel"] == "high"
        assert data["risks"][0]["data"]["confirmedRSVPs"] == 20

    @pytest.mark.parametrize("bad_id", ["abc", "0", "-1", "1.5", "²"])
    def test_invalid_id(self, bad_id):
        response = client.get(f"/ai/events/{bad_id}/risks")
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid event ID parameter"

    def test_not_found(self):
        response = client.get("/ai/events/999/risks")
        assert response.status_code == 404
        assert response.json()["detail"] == "Event not found"

    def test_overview(self):
        response = client.get("/ai/events/risks")
        assert response.status_code == 200
        data = response.json()
        assert data == [
            {"eventId": 1, "eventTitle": "Spring Gala", "riskLevel": "high", "riskCount": 2},
            {"eventId": 2, "eventTitle": "Quiet Meetup", "riskLevel": "low", "riskCount": 0},
        ]

    def test_overview_empty(self):
        app.dependency_overrides[get_risk_service] = lambda: RiskService(
            InMemoryEventRepository(), clock=lambda: NOW,
        )
        response = client.get("/ai/events/risks")
        assert response.status_code == 200
        assert response.json() == []


# ============================================
# Email generation
# ============================================
class TestEmailGenerate:
    def test_success_shape(self):
        response = _generate(type="rsvp_confirmation", eventId=1, recipientName="Sam")
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["email"]["subject"] == "RSVP Confirmation: Spring Gala"
        assert data["email"]["body"].startswith("Dear Sam,")
        assert data["email"]["to"] == ""
        assert "generatedAt" in data

    def test_string_id_accepted(self):
        response = _generate(type="task_assignment", taskId="11")
        assert response.status_code == 200
        data = response.json()["email"]
        assert data["subject"] == "New Task Assignment: Book caterer"
        assert data["to"] == "jo@example.org"

    def test_member_resolution(self):
        response = _generate(type="event_reminder", eventId=1, memberId=7)
        assert response.status_code == 200
        assert response.json()["email"]["to"] == "jo@example.org"

    def test_event_wide_task_reminder(self):
        response = _generate(type="task_reminder", eventId=1)
        assert response.status_code == 200
        assert response.json()["email"]["subject"] == (
            "Task Reminder: 2 tasks need attention for Spring Gala"
        )

    def test_unknown_type(self):
        response = _generate(type="newsletter", eventId=1)
        assert response.status_code == 400
        detail = response.json()["detail"]
        for email_type in ("event_reminder", "task_assignment", "task_reminder",
                           "sponsor_thank_you", "rsvp_confirmation"):
            assert email_type in detail

    def test_missing_type(self):
        response = _generate(eventId=1)
        assert response.status_code == 400

    @pytest.mark.parametrize("bad_type", [5, ["event_reminder"], {"name": "x"}])
    def test_non_string_type(self, bad_type):
        response = _generate(type=bad_type, eventId=1)
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Invalid email type.")

    def test_missing_reference(self):
        response = _generate(type="event_reminder")
        assert response.status_code == 400
        assert response.json()["detail"] == "Event ID required for event reminder"

    @pytest.mark.parametrize("bad_id", ["abc", 0, -3, True, "2x", "²"])
    def test_malformed_id(self, bad_id):
        response = _generate(type="event_reminder", eventId=bad_id)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid event ID parameter"

    def test_event_not_found(self):
        response = _generate(type="sponsor_thank_you", eventId=404)
        assert response.status_code == 404
        assert response.json()["detail"] == "Event not found"

    def test_no_tasks_need_reminders(self):
        response = _generate(type="task_reminder", eventId=2)
        assert response.status_code == 404
        assert response.json()["detail"] == "No tasks found that need reminders"


# ============================================
# Authentication
# ============================================
class TestAuth:
    @pytest.fixture(autouse=True)
    def auth_on(self):
        with patch.object(settings, "AUTH_ENABLED", True), \
                patch.object(settings, "API_KEYS", {"secret-key"}):
            yield

    def test_missing_key(self):
        response = client.get("/ai/events/1/risks")
        assert response.status_code == 401
        assert "X-API-Key" in response.json()["detail"]

    def test_invalid_key(self):
        response = client.get("/ai/events/1/risks", headers={"X-API-Key": "nope"})
        assert response.status_code == 403

    def test_valid_key(self):
        response = client.get("/ai/events/1/risks", headers={"X-API-Key": "secret-key"})
        assert response.status_code == 200

    def test_health_bypasses_auth(self):
        assert client.get("/health").status_code == 200
        assert client.get("/metrics").status_code == 200

    def test_preflight_bypasses_auth(self):
        response = client.options(
            "/ai/email/generate",
            headers={"Origin": "http://localhost:3000",
                     "Access-Control-Request-Method": "POST"},
        )
        assert response.status_code == 200


# ============================================
# Error handling
# ============================================
class TestErrors:
    def test_unexpected_error_is_500(self, repo):
        repo.fail_with = RuntimeError("boom")
        unsafe_client = TestClient(app, raise_server_exceptions=False)
        response = unsafe_client.get("/ai/events/1/risks")
        assert response.status_code == 500
        assert response.json() == {"error": "internal_server_error", "detail": "boom"}

    def test_bad_stored_row_is_500_not_400(self, repo):
        try:
            Member.model_validate({"id": "not-a-number"})
        except ValidationError as exc:
            repo.fail_with = exc
        unsafe_client = TestClient(app, raise_server_exceptions=False)
        response = unsafe_client.post(
            "/ai/email/generate", json={"type": "event_reminder", "eventId": 1},
        )
        assert response.status_code == 500
        assert response.json()["error"] == "internal_server_error"


# ============================================
# Logging
# ============================================
class TestLogging:
    def test_json_line(self):
        record = logging.LogRecord("entrystack.test", logging.INFO, __file__, 1,
                                   "Risk analysis event=%s", (3,), None)
        record.request_id = "trace-42"
        data = json.loads(JSONFormatter().format(record))
        assert data["level"] == "INFO"
        assert data["service"] == settings.SERVICE_NAME
        assert data["message"] == "Risk analysis event=3"
        assert data["request_id"] == "trace-42"

    def test_exception_fields(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            exc_info = sys.exc_info()
        record = logging.LogRecord("entrystack.test", logging.ERROR, __file__, 1,
                                   "failed", (), exc_info)
        data = json.loads(JSONFormatter().format(record))
        assert data["error"] == "boom"
        assert data["error_type"] == "RuntimeError"
