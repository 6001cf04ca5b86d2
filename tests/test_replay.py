import json
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from urllib.parse import urlparse

import pytest
import requests
import requests.adapters

from steritrack_client import SteriTrackClient
from steritrack_client.auth.replay import is_renewal_eligible
from steritrack_client.auth.store import MemoryCredentialStore
from steritrack_client.context import RequestContext
from steritrack_client.exceptions import AuthenticationError, RequestError, TransportError

BASE_URL = "https://steri.test/api"


def build_client(tokens=None):
    store = MemoryCredentialStore(
        tokens if tokens is not None else {"access_token": "old", "refresh_token": "rt-1"}
    )
    client = SteriTrackClient(base_url=BASE_URL, store=store)
    ended: list[str] = []
    client.on_session_ended(lambda: ended.append("ended"))
    return client, ended


def accept_only(token: str):
    def _callback(request, context):
        if request.headers.get("Authorization") == f"Bearer {token}":
            context.status_code = 200
            return [{"id": "m1"}]
        context.status_code = 401
        return {"message": "token expired"}

    return _callback


def wait_for(predicate, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        time.sleep(0.005)


def test_expired_token_is_renewed_and_request_replayed(requests_mock):
    client, ended = build_client()
    protected = requests_mock.get(f"{BASE_URL}/materials", json=accept_only("new"))
    refresh = requests_mock.post(f"{BASE_URL}/auth/refresh", json={"accessToken": "new"})

    assert client.materials.list() == [{"id": "m1"}]

    assert refresh.call_count == 1
    assert protected.call_count == 2
    assert protected.request_history[1].headers["Authorization"] == "Bearer new"
    assert client.store.access_token == "new"
    assert ended == []
    assert client.activity.count == 0


class ExpiringApiAdapter(requests.adapters.BaseAdapter):
    """Serve /materials and /auth/refresh without the requests-mock send lock.

    Protected calls succeed only with ``Bearer new``. The renewal call runs
    ``before_refresh`` first so a test can hold the episode open.
    """

    def __init__(self) -> None:
        super().__init__()
        self._lock = threading.Lock()
        self.history: list[tuple[str, str | None]] = []
        self.before_refresh = lambda: None

    def send(self, request, **kwargs):
        path = urlparse(request.url).path
        authorization = request.headers.get("Authorization")
        with self._lock:
            self.history.append((path, authorization))
        if path.endswith("/auth/refresh"):
            self.before_refresh()
            return self._respond(request, 200, {"accessToken": "new", "refreshToken": "rt-2"})
        if authorization == "Bearer new":
            return self._respond(request, 200, [{"id": "m1"}])
        return self._respond(request, 401, {"message": "token expired"})

    def close(self) -> None:
        pass

    def calls_to(self, suffix: str) -> list[str | None]:
        with self._lock:
            return [auth for path, auth in self.history if path.endswith(suffix)]

    @staticmethod
    def _respond(request, status: int, payload) -> requests.Response:
        response = requests.Response()
        response.status_code = status
        response._content = json.dumps(payload).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
        response.url = request.url
        response.request = request
        return response


def test_five_simultaneous_expiries_share_one_renewal():
    adapter = ExpiringApiAdapter()
    session = requests.Session()
    session.mount("https://", adapter)
    store = MemoryCredentialStore({"access_token": "old", "refresh_token": "rt-1"})
    client = SteriTrackClient(base_url=BASE_URL, store=store, session=session)
    ended: list[str] = []
    client.on_session_ended(lambda: ended.append("ended"))
    # Hold the episode open until the other four callers have enrolled.
    adapter.before_refresh = lambda: wait_for(lambda: client.coordinator.pending_waiters == 4)

    with ThreadPoolExecutor(max_workers=5) as pool:
        results = list(pool.map(lambda _: client.materials.list(), range(5)))

    assert results == [[{"id": "m1"}]] * 5
    assert len(adapter.calls_to("/auth/refresh")) == 1
    protected = adapter.calls_to("/materials")
    assert protected.count("Bearer old") == 5
    assert protected.count("Bearer new") == 5
    assert client.store.refresh_token == "rt-2"
    assert ended == []
    assert client.activity.count == 0


def test_second_401_after_renewal_is_surfaced(requests_mock):
    client, _ = build_client()
    protected = requests_mock.get(
        f"{BASE_URL}/materials", status_code=401, json={"message": "still expired"}
    )
    refresh = requests_mock.post(f"{BASE_URL}/auth/refresh", json={"accessToken": "new"})

    with pytest.raises(AuthenticationError) as excinfo:
        client.materials.list()

    assert refresh.call_count == 1
    assert protected.call_count == 2
    assert excinfo.value.response.request.headers["Authorization"] == "Bearer new"


def test_missing_renewal_credential_ends_session(requests_mock):
    client, ended = build_client(tokens={"access_token": "old"})
    requests_mock.get(f"{BASE_URL}/materials", status_code=401, json={"message": "expired"})
    refresh = requests_mock.post(f"{BASE_URL}/auth/refresh", json={"accessToken": "new"})

    with pytest.raises(AuthenticationError) as excinfo:
        client.materials.list()

    assert refresh.call_count == 0
    assert client.store.access_token is None
    assert ended == ["ended"]
    assert excinfo.value.status_code == 401


def test_failed_renewal_rejects_with_original_error(requests_mock):
    client, ended = build_client()
    requests_mock.get(f"{BASE_URL}/materials", status_code=401, json={"message": "expired"})
    refresh = requests_mock.post(f"{BASE_URL}/auth/refresh", status_code=401, json={})

    with pytest.raises(AuthenticationError) as excinfo:
        client.materials.list()

    assert refresh.call_count == 1
    assert excinfo.value.response.request.headers["Authorization"] == "Bearer old"
    assert excinfo.value.response.json() == {"message": "expired"}
    assert client.store.access_token is None
    assert client.store.refresh_token is None
    assert ended == ["ended"]


def test_each_failed_episode_is_retried_on_next_expiry(requests_mock):
    client, ended = build_client()
    requests_mock.get(f"{BASE_URL}/materials", status_code=401, json={})
    refresh = requests_mock.post(f"{BASE_URL}/auth/refresh", status_code=503, json={})

    with pytest.raises(AuthenticationError):
        client.materials.list()
    client.sign_in("old", "rt-1")
    with pytest.raises(AuthenticationError):
        client.materials.list()

    assert refresh.call_count == 2
    assert ended == ["ended", "ended"]


def test_transport_failure_never_triggers_renewal(requests_mock):
    client, ended = build_client()
    requests_mock.get(f"{BASE_URL}/materials", exc=requests.exceptions.ConnectTimeout("slow"))
    refresh = requests_mock.post(f"{BASE_URL}/auth/refresh", json={"accessToken": "new"})

    with pytest.raises(TransportError) as excinfo:
        client.materials.list()

    assert excinfo.value.status_code is None
    assert refresh.call_count == 0
    assert client.store.access_token == "old"
    assert ended == []


def test_forbidden_is_not_renewal_eligible(requests_mock):
    client, _ = build_client()
    requests_mock.get(f"{BASE_URL}/users", status_code=403, json={"message": "forbidden"})
    refresh = requests_mock.post(f"{BASE_URL}/auth/refresh", json={"accessToken": "new"})

    with pytest.raises(RequestError) as excinfo:
        client.users.list()

    assert excinfo.value.status_code == 403
    assert refresh.call_count == 0


def test_401_on_auth_route_is_surfaced(requests_mock):
    client, ended = build_client()
    requests_mock.get(f"{BASE_URL}/auth/me", status_code=401, json={})
    refresh = requests_mock.post(f"{BASE_URL}/auth/refresh", json={"accessToken": "new"})

    with pytest.raises(AuthenticationError):
        client.request("GET", "/auth/me")

    assert refresh.call_count == 0
    assert ended == []


def test_eligibility_rules():
    expired = AuthenticationError("expired", status_code=401)
    protected = RequestContext("GET", "/materials")

    assert is_renewal_eligible(expired, protected)
    assert not is_renewal_eligible(expired, protected.mark_retried())
    assert not is_renewal_eligible(expired, RequestContext("POST", "/auth/login"))
    assert not is_renewal_eligible(RequestError("nope", status_code=403), protected)
    assert not is_renewal_eligible(TransportError("offline"), protected)
