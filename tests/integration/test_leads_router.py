"""Integration tests for the lead capture endpoint."""

import pytest
from sqlalchemy.exc import IntegrityError

from playbook_paywall.common.config import get_settings
from playbook_paywall.deps import get_lead_service
from playbook_paywall.leads.models import LeadCaptureModel
from playbook_paywall.leads.service import LeadService


class RecordingLeadService(LeadService):
    """Records forwards instead of calling Loops."""

    def __init__(self, settings):
        super().__init__(settings)
        self.forwarded = []

    async def forward_to_loops(self, lead):
        self.forwarded.append(lead.email)
        return True


class DuplicatingLeadService(RecordingLeadService):
    """Leaves a conflicting row behind so the capture's commit fails."""

    async def capture_lead(self, session, *args, **kwargs):
        lead = await super().capture_lead(session, *args, **kwargs)
        session.add(LeadCaptureModel(email=lead.email))
        return lead


@pytest.fixture
def recorder(app):
    svc = RecordingLeadService(get_settings())
    app.dependency_overrides[get_lead_service] = lambda: svc
    return svc


class TestCaptureLead:
    async def test_capture(self, client):
        resp = await client.post("/leads", json={
            "email": "reader@example.com",
            "source": "widget-map",
            "consent_given": True,
        })
        assert resp.status_code == 200
        assert resp.json()["success"] is True

    async def test_capture_twice(self, client):
        body = {"email": "reader@example.com", "consent_given": True}
        assert (await client.post("/leads", json=body)).status_code == 200
        assert (await client.post("/leads", json=body)).status_code == 200

    async def test_requires_consent(self, client):
        resp = await client.post("/leads", json={"email": "reader@example.com"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Consent is required"

    async def test_invalid_email(self, client):
        resp = await client.post("/leads", json={"email": "nope", "consent_given": True})
        assert resp.status_code == 422

    async def test_invalid_target_product(self, client):
        resp = await client.post("/leads", json={
            "email": "reader@example.com",
            "consent_given": True,
            "target_product": "web_playbook",
        })
        assert resp.status_code == 400


class TestLoopsForward:
    async def test_forwarded_after_capture(self, client, recorder):
        resp = await client.post("/leads", json={
            "email": "Reader@Example.com", "consent_given": True,
        })
        assert resp.status_code == 200
        assert recorder.forwarded == ["reader@example.com"]

    async def test_rejected_capture_is_not_forwarded(self, client, recorder):
        resp = await client.post("/leads", json={"email": "reader@example.com"})
        assert resp.status_code == 400
        assert recorder.forwarded == []

    async def test_failed_commit_is_not_forwarded(self, app, client):
        svc = DuplicatingLeadService(get_settings())
        app.dependency_overrides[get_lead_service] = lambda: svc
        with pytest.raises(IntegrityError):
            await client.post("/leads", json={
                "email": "reader@example.com", "consent_given": True,
            })
        assert svc.forwarded == []
