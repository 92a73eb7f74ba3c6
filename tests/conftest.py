import threading
import time

import pytest
import requests

from roblox_utils import IdentityVerifier
from serializer import MutationSerializer
from storage import DocumentStore
from whitelist import WhitelistRegistrar

_UNREADABLE = object()


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is _UNREADABLE:
            raise ValueError("no json")
        return self._payload


class FakeRobloxSession:
    """Stands in for the Roblox usernames endpoint."""

    def __init__(self, users=None):
        # lowercase name -> (id, canonical name, display name)
        self.users = dict(users or {})
        self.calls = []
        self.status_code = 200
        self.error = None
        self.payload = None

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        if self.payload is not None:
            return FakeResponse(self.status_code, self.payload)
        data = []
        for name in json["usernames"]:
            found = self.users.get(name.lower())
            if found:
                uid, canonical, display = found
                data.append({"requestedUsername": name, "id": uid, "name": canonical, "displayName": display})
        return FakeResponse(self.status_code, {"data": data})


class FakePasteSession:
    """In-memory Pastefy paste with switchable failures."""

    def __init__(self, content="", get_delay=0.0):
        self.content = content
        self.get_delay = get_delay
        self.calls = []
        self.put_bodies = []
        self.fail_put = 0
        self.fail_get = 0
        self.put_status = 500
        self.error = None
        self._lock = threading.Lock()

    def request(self, method, url, headers=None, timeout=None, json=None):
        with self._lock:
            self.calls.append((method, url, headers, timeout))
        if self.error is not None:
            raise self.error
        if method == "GET":
            if self.fail_get:
                self.fail_get -= 1
                return FakeResponse(503, {})
            snapshot = self.content
            if self.get_delay:
                time.sleep(self.get_delay)
            return FakeResponse(200, {"id": "paste", "content": snapshot})
        if method == "PUT":
            if self.fail_put:
                self.fail_put -= 1
                return FakeResponse(self.put_status, {})
            self.put_bodies.append(json)
            self.content = json["content"]
            return FakeResponse(200, {"success": True})
        return FakeResponse(405, {})

    def puts(self):
        return [c for c in self.calls if c[0] == "PUT"]


@pytest.fixture
def unreadable():
    return _UNREADABLE


@pytest.fixture
def roblox_session():
    return FakeRobloxSession({
        "alice": (42, "Alice", "Ally"),
        "bob_builder": (7, "Bob_Builder", "Bob"),
        "carol": (99, "carol", None),
    })


@pytest.fixture
def paste_session():
    return FakePasteSession()


@pytest.fixture
def verifier(roblox_session):
    return IdentityVerifier(url="https://roblox.test/users", timeout=10, session=roblox_session)


@pytest.fixture
def store(paste_session):
    return DocumentStore(
        base_url="https://pastefy.test/api/v2/",
        api_key="secret-key",
        paste_id="abc123",
        timeout=10,
        session=paste_session,
    )


@pytest.fixture
def registrar(verifier, store):
    return WhitelistRegistrar(verifier, store, MutationSerializer())


@pytest.fixture
def timeout_error():
    return requests.Timeout("read timed out")


@pytest.fixture
def response_factory():
    return FakeResponse


@pytest.fixture
def paste_session_factory():
    return FakePasteSession
