import logging

import pytest
import requests

from core.config import NotificationSettings
from integrations.ntfy_notifier import NtfyNotifier


class FakeResponse:
    def __init__(self, status_code=200, text="{}"):
        self.status_code = status_code
        self.text = text


@pytest.fixture
def active_settings():
    return NotificationSettings(enabled=True, url="https://ntfy.example.com/", token="tk_secret", topic="bench")


@pytest.fixture
def captured_posts(monkeypatch):
    posts = []

    def fake_post(url, data=None, headers=None, timeout=None):
        posts.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        return FakeResponse()

    monkeypatch.setattr(requests, "post", fake_post)
    return posts


def test_build_request_has_fixed_fields(active_settings):
    request = NtfyNotifier(active_settings).build_request("VPS Benchmark Complete", "host: CPU 1ev/s", "high")

    assert request.url == "https://ntfy.example.com/bench"
    assert request.topic == "bench"
    assert request.body == "host: CPU 1ev/s"
    assert request.headers == {
        "Title": "VPS Benchmark Complete",
        "Priority": "high",
        "Authorization": "Bearer tk_secret",
    }


def test_build_request_without_token_omits_authorization():
    settings = NotificationSettings(enabled=True, url="https://ntfy.sh")
    request = NtfyNotifier(settings).build_request("t", "m", "bogus")

    assert "Authorization" not in request.headers
    assert request.headers["Priority"] == "default"
    assert request.url == "https://ntfy.sh/vps-benchmarks"


def test_notify_posts_body_verbatim(active_settings, captured_posts):
    message = "host'$(rm -rf /)`: Net 10↓/5↑ Mbps"

    assert NtfyNotifier(active_settings).notify("VPS Benchmark Complete", message) is True

    assert len(captured_posts) == 1
    assert captured_posts[0]["data"] == message.encode("utf-8")
    assert captured_posts[0]["timeout"] == active_settings.timeout


def test_disabled_notifier_sends_nothing(captured_posts):
    notifier = NtfyNotifier(NotificationSettings(enabled=False, url="https://ntfy.sh"))

    assert notifier.notify("t", "m") is False
    assert NtfyNotifier(NotificationSettings(enabled=True, url=None)).notify("t", "m") is False
    assert captured_posts == []


def test_transport_error_is_logged_not_raised(active_settings, monkeypatch, caplog):
    def failing_post(*_args, **_kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(requests, "post", failing_post)

    with caplog.at_level(logging.WARNING):
        assert NtfyNotifier(active_settings).notify("t", "m") is False

    assert "connection refused" in caplog.text


def test_http_error_status_reports_failure(active_settings, monkeypatch, caplog):
    monkeypatch.setattr(requests, "post", lambda *_a, **_k: FakeResponse(403, "forbidden"))

    with caplog.at_level(logging.WARNING):
        assert NtfyNotifier(active_settings).notify("t", "m") is False

    assert "HTTP 403" in caplog.text


def test_unencodable_token_is_logged_not_raised(monkeypatch, caplog):
    def latin1_post(url, data=None, headers=None, timeout=None):
        for value in headers.values():
            value.encode("latin-1")
        return FakeResponse()

    monkeypatch.setattr(requests, "post", latin1_post)
    settings = NotificationSettings(enabled=True, url="https://ntfy.example.com", token="tök€n")

    with caplog.at_level(logging.WARNING):
        assert NtfyNotifier(settings).notify("VPS Benchmark Complete", "host: CPU 1ev/s") is False

    assert "latin-1" in caplog.text
