import requests

from apps.worker.app.engine.notifier import Notification, Notifier


class FakeResponse:
    def __init__(self, status_code: int = 200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, status_code: int = 200, error: Exception = None):
        self.status_code = status_code
        self.error = error
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error:
            raise self.error
        return FakeResponse(self.status_code)


def _notification(**overrides) -> Notification:
    data = {
        "user_id": "user-1",
        "account_id": "acc-1",
        "title": "CRITICAL: Daily Drawdown at 92%",
        "body": "FTMO 10k has used 92.0% of its daily drawdown limit. Trading paused.",
        "kind": "critical",
    }
    data.update(overrides)
    return Notification(**data)


def test_push_payload_carries_notification_type():
    session = FakeSession()
    notifier = Notifier(push_url="https://push.example/send", push_token="t0k", timeout=3.0, session=session)

    assert notifier.send(_notification()) is True

    call = session.calls[0]
    assert call["json"]["type"] == "critical"
    assert call["json"]["account_id"] == "acc-1"
    assert call["json"]["url"] == "/dashboard?tab=overview"
    assert call["headers"]["Authorization"] == "Bearer t0k"
    assert call["timeout"] == 3.0


def test_recovery_notifications_keep_their_own_type():
    session = FakeSession()
    notifier = Notifier(push_url="https://push.example/send", session=session)

    notifier.send(_notification(title="Recovery Mode Complete", kind="success"))

    assert session.calls[0]["json"]["type"] == "success"


def test_transport_errors_are_swallowed():
    session = FakeSession(error=requests.ConnectionError("gateway down"))
    notifier = Notifier(
        push_url="https://push.example/send",
        telegram_token="bot",
        telegram_chat_id="42",
        session=session,
    )

    assert notifier.send(_notification()) is False
    assert len(session.calls) == 2


def test_http_error_status_counts_as_not_delivered():
    session = FakeSession(status_code=500)
    notifier = Notifier(push_url="https://push.example/send", session=session)

    assert notifier.send(_notification()) is False


def test_no_channel_configured_drops_quietly():
    session = FakeSession()

    assert Notifier(session=session).send(_notification()) is False
    assert session.calls == []
