import os

import pytest
import requests

import integrations
import main
from integrations import IntegrationError, apply_suggestions, invoke_llm, save_upload, send_email

SUGGESTION = {
    "title": "Overflowing garbage bin",
    "description": "Waste spilling onto the footpath",
    "category": "trash",
    "priority": "high",
    "confidence": "high",
    "additional_notes": "",
}


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.exceptions.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


def test_save_upload_writes_file(tmp_path, monkeypatch):
    monkeypatch.setattr(integrations, "UPLOAD_DIR", str(tmp_path))
    url = save_upload("photo.JPG", "image/jpeg", b"jpeg-bytes")
    name = url.rsplit("/", 1)[-1]
    assert url.startswith(f"{integrations.PUBLIC_BASE_URL}/uploads/")
    assert name.endswith(".jpg")
    assert (tmp_path / name).read_bytes() == b"jpeg-bytes"


@pytest.mark.parametrize("content_type, data", [("application/pdf", b"pdf"), ("image/png", b"")])
def test_save_upload_rejects(tmp_path, monkeypatch, content_type, data):
    monkeypatch.setattr(integrations, "UPLOAD_DIR", str(tmp_path))
    with pytest.raises(IntegrationError):
        save_upload("file", content_type, data)
    assert os.listdir(tmp_path) == []


def test_upload_endpoint(client, user_headers):
    res = client.post("/integrations/upload", files={"file": ("voice.webm", b"opus", "audio/webm")}, headers=user_headers)
    assert res.status_code == 200
    assert res.json()["file_url"].endswith(".webm")

    res = client.post("/integrations/upload", files={"file": ("x.exe", b"MZ", "application/octet-stream")}, headers=user_headers)
    assert res.status_code == 400


def test_send_email_without_smtp(monkeypatch):
    monkeypatch.setattr(integrations, "SMTP_SERVER", None)
    assert send_email("a@example.com", "Hi", "Body") is False


def test_send_email_endpoint_is_admin_only(client, user_headers, admin_headers, sent_emails):
    payload = {"to": "a@example.com", "subject": "Hello", "body": "Body"}
    assert client.post("/integrations/send-email", json=payload, headers=user_headers).status_code == 403

    res = client.post("/integrations/send-email", json=payload, headers=admin_headers)
    assert res.json() == {"sent": True}
    assert sent_emails[-1]["subject"] == "Hello"


def test_invoke_llm_parses_json(monkeypatch):
    calls = []

    def fake_post(url, json, headers, timeout):
        calls.append(json)
        return FakeResponse({"choices": [{"message": {"content": '{"title": "x"}'}}]})

    monkeypatch.setattr(integrations, "LLM_API_URL", "http://llm.local/v1/chat/completions")
    monkeypatch.setattr(integrations.requests, "post", fake_post)

    result = invoke_llm("describe", file_urls=["http://x/a.jpg"], response_json_schema={"type": "object"})
    assert result == {"title": "x"}
    content = calls[0]["messages"][0]["content"]
    assert content[1] == {"type": "image_url", "image_url": {"url": "http://x/a.jpg"}}
    assert calls[0]["response_format"]["type"] == "json_schema"


def test_invoke_llm_errors(monkeypatch):
    monkeypatch.setattr(integrations, "LLM_API_URL", None)
    with pytest.raises(IntegrationError):
        invoke_llm("hello")

    def timeout(*args, **kwargs):
        raise requests.exceptions.Timeout()

    monkeypatch.setattr(integrations, "LLM_API_URL", "http://llm.local")
    monkeypatch.setattr(integrations.requests, "post", timeout)
    with pytest.raises(IntegrationError, match="timed out"):
        invoke_llm("hello")

    monkeypatch.setattr(integrations.requests, "post", lambda *a, **k: FakeResponse({}, status=500))
    with pytest.raises(IntegrationError):
        invoke_llm("hello")


def test_apply_suggestions_keeps_existing_when_blank():
    form = {"title": "My title", "description": "", "category": "", "priority": "medium", "address": "Sector 5"}
    merged = apply_suggestions(form, {**SUGGESTION, "title": ""})
    assert merged["title"] == "My title"
    assert merged["category"] == "trash"
    assert merged["priority"] == "high"
    assert merged["address"] == "Sector 5"


def test_analyze_image_endpoint(client, user_headers, monkeypatch):
    monkeypatch.setattr(integrations, "invoke_llm", lambda *a, **k: SUGGESTION)
    res = client.post(
        "/integrations/analyze-image",
        json={"file_url": "http://x/bin.jpg", "form": {"title": "", "address": "Sector 5"}},
        headers=user_headers,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["category"] == "trash"
    assert body["form"]["title"] == "Overflowing garbage bin"
    assert body["form"]["address"] == "Sector 5"


@pytest.mark.parametrize("outcome", ["error", "bad_shape"])
def test_analyze_image_failure_falls_back_to_manual(client, user_headers, monkeypatch, outcome):
    def fake_llm(*args, **kwargs):
        if outcome == "error":
            raise IntegrationError("LLM request timed out")
        return {"title": "x", "category": "volcano"}

    monkeypatch.setattr(integrations, "invoke_llm", fake_llm)
    res = client.post("/integrations/analyze-image", json={"file_url": "http://x/bin.jpg"}, headers=user_headers)
    assert res.status_code == 502
    assert res.json()["detail"] == "AI analysis failed, but you can still fill the form manually."


def test_invoke_llm_endpoint(client, user_headers, monkeypatch):
    monkeypatch.setattr(main, "invoke_llm", lambda prompt, file_urls=None, response_json_schema=None: f"echo: {prompt}")
    res = client.post("/integrations/invoke-llm", json={"prompt": "hi"}, headers=user_headers)
    assert res.json() == {"result": "echo: hi"}
