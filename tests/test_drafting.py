"""
tests/test_drafting.py
───────────────────────
Tests for the drafting client (HTTP mocked with respx) and prompt helpers.
"""
import dataclasses
import json

import httpx
import pytest
import respx

from src.analytics.anomaly import classify
from src.data.models import Thresholds
from src.drafting.client import DraftingClient
from src.drafting.prompts import draft_merchant_email, draft_rca, email_prompt, rca_prompt
from src.errors import DraftingFailure

HOST = "gemini.test"
PATH = "/v1beta/models/test-model:generateContent"


def _ok(text: str = "Drafted text") -> httpx.Response:
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


@pytest.fixture
def sleeps() -> list:
    return []


@pytest.fixture
def client(settings, sleeps):
    c = DraftingClient(settings, sleep=sleeps.append)
    yield c
    c.close()


@pytest.fixture
def warning_alert(fleet):
    return classify(fleet, Thresholds())[1]


class TestDraftingClient:
    def test_endpoint(self, client):
        assert client.endpoint == f"https://{HOST}{PATH}"
        assert client.configured

    @respx.mock
    def test_success(self, client, sleeps):
        route = respx.post(host=HOST, path=PATH).mock(return_value=_ok("Check the router."))
        assert client.generate("system", "user") == "Check the router."
        assert route.call_count == 1
        assert sleeps == []

        request = route.calls.last.request
        assert request.url.params["key"] == "test-key"
        body = json.loads(request.content)
        assert body["contents"][0]["parts"][0]["text"] == "user"
        assert body["systemInstruction"]["parts"][0]["text"] == "system"

    @respx.mock
    def test_retries_rate_limit_with_backoff(self, client, sleeps):
        route = respx.post(host=HOST, path=PATH).mock(
            side_effect=[httpx.Response(429), httpx.Response(429), _ok()]
        )
        assert client.generate("s", "u") == "Drafted text"
        assert route.call_count == 3
        assert sleeps == [1.0, 2.0]

    @respx.mock
    def test_rate_limit_exhausted(self, client, sleeps):
        route = respx.post(host=HOST, path=PATH).mock(return_value=httpx.Response(429))
        with pytest.raises(DraftingFailure, match="429"):
            client.generate("s", "u")
        assert route.call_count == 3
        assert sleeps == [1.0, 2.0]

    @respx.mock
    def test_server_error_not_retried(self, client, sleeps):
        route = respx.post(host=HOST, path=PATH).mock(return_value=httpx.Response(500, text="oops"))
        with pytest.raises(DraftingFailure, match="status: 500"):
            client.generate("s", "u")
        assert route.call_count == 1
        assert sleeps == []

    @respx.mock
    def test_transport_error_not_retried(self, client, sleeps):
        route = respx.post(host=HOST, path=PATH).mock(side_effect=httpx.ConnectError)
        with pytest.raises(DraftingFailure):
            client.generate("s", "u")
        assert route.call_count == 1
        assert sleeps == []

    @pytest.mark.parametrize(
        "payload",
        [{}, {"candidates": []}, {"candidates": [{"content": {"parts": [{"text": ""}]}}]}],
    )
    @respx.mock
    def test_empty_response(self, client, payload):
        respx.post(host=HOST, path=PATH).mock(return_value=httpx.Response(200, json=payload))
        with pytest.raises(DraftingFailure, match="empty or malformed"):
            client.generate("s", "u")

    @respx.mock
    def test_non_json_response(self, client):
        respx.post(host=HOST, path=PATH).mock(return_value=httpx.Response(200, text="<html>"))
        with pytest.raises(DraftingFailure):
            client.generate("s", "u")

    def test_missing_key(self, settings):
        client = DraftingClient(dataclasses.replace(settings, GEMINI_API_KEY=""))
        assert not client.configured
        with pytest.raises(DraftingFailure, match="GEMINI_API_KEY"):
            client.generate("s", "u")
        client.close()


class TestPrompts:
    def test_rca_prompt_includes_metrics(self, warning_alert):
        prompt = rca_prompt(warning_alert)
        assert "T1004" in prompt
        assert "Transactions: 350" in prompt
        assert "Errors: 100" in prompt
        assert "Error Rate: 28.57%" in prompt
        assert "Issue Type: Warning" in prompt

    def test_email_prompt_includes_issue(self, warning_alert):
        prompt = email_prompt(warning_alert)
        assert warning_alert.merchant_name in prompt
        assert warning_alert.message in prompt
        assert "under 150 words" in prompt


class TestDraftResults:
    @respx.mock
    def test_draft_rca(self, client, warning_alert):
        respx.post(host=HOST, path=PATH).mock(return_value=_ok("Likely a failing card reader."))
        result = draft_rca(client, warning_alert)
        assert result.title == "RCA Suggestion for T1004"
        assert result.content == "Likely a failing card reader."
        assert not result.failed

    @respx.mock
    def test_draft_email_failure_is_reported(self, client, warning_alert):
        respx.post(host=HOST, path=PATH).mock(return_value=httpx.Response(503))
        result = draft_merchant_email(client, warning_alert)
        assert result.title == f"Draft Proactive Email for {warning_alert.merchant_name}"
        assert result.failed
        assert result.content.startswith("Failed to draft communication:")

    def test_missing_key_explains(self, settings, warning_alert):
        client = DraftingClient(dataclasses.replace(settings, GEMINI_API_KEY=""))
        with respx.mock(assert_all_called=False) as mock:
            route = mock.post(host=HOST, path=PATH)
            result = draft_rca(client, warning_alert)
            assert not route.called
        client.close()
        assert result.failed
        assert result.title == "Drafting API Error"
        assert "GEMINI_API_KEY is missing" in result.content


class TestAlertBadge:
    def test_icon_per_severity(self):
        from config.alerts import AlertSeverity
        from src.layout.components.alert_badge import alert_badge
        assert alert_badge(AlertSeverity.CRITICAL).children == "⚡ Critical"
        assert alert_badge("Warning").children == "📉 Warning"
        assert alert_badge(AlertSeverity.INFO).children == "📊 Info"
