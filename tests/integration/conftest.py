import pytest
from fastapi.testclient import TestClient

from apps.api.app.api.ops import get_notifier
from apps.api.app.db.session import Base, engine
from apps.api.app.main import app


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send(self, notification):
        if self.fail:
            raise RuntimeError("push gateway unreachable")
        self.sent.append(notification)
        return True

    @property
    def titles(self):
        return [n.title for n in self.sent]


@pytest.fixture()
def notifier():
    recorder = RecordingNotifier()
    app.dependency_overrides[get_notifier] = lambda: recorder
    yield recorder
    app.dependency_overrides.pop(get_notifier, None)


@pytest.fixture()
def client(notifier):
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    with TestClient(app) as tc:
        yield tc
