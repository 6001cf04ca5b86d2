import json

from typer.testing import CliRunner

from steritrack_client.auth.store import FileCredentialStore
from steritrack_client.cli import app

runner = CliRunner()

BASE_URL = "https://steri.test/api"


def seed(tmp_path, **entries):
    path = tmp_path / "credentials.json"
    FileCredentialStore(path).update(entries)
    return path


def test_login_persists_tokens(requests_mock, tmp_path):
    path = tmp_path / "credentials.json"
    requests_mock.post(
        f"{BASE_URL}/auth/login",
        json={"accessToken": "acc", "refreshToken": "ref", "user": {"name": "Ana"}},
    )

    result = runner.invoke(
        app,
        [
            "login",
            "--email",
            "ana@example.org",
            "--password",
            "secret",
            "--base-url",
            BASE_URL,
            "--credentials",
            str(path),
        ],
    )

    assert result.exit_code == 0
    assert "Signed in as Ana" in result.stdout
    stored = FileCredentialStore(path)
    assert stored.access_token == "acc"
    assert stored.refresh_token == "ref"


def test_login_failure_is_reported(requests_mock, tmp_path):
    requests_mock.post(f"{BASE_URL}/auth/login", status_code=401, json={"message": "bad"})

    result = runner.invoke(
        app,
        [
            "login",
            "--email",
            "ana@example.org",
            "--password",
            "wrong",
            "--base-url",
            BASE_URL,
            "--credentials",
            str(tmp_path / "credentials.json"),
        ],
    )

    assert result.exit_code == 1
    assert "Request failed (status 401)" in result.stderr


def test_materials_list_renders_table(requests_mock, tmp_path):
    path = seed(tmp_path, access_token="acc", refresh_token="ref")
    requests_mock.get(
        f"{BASE_URL}/materials",
        json={"data": [{"id": "m1", "name": "Forceps", "code": "F-01"}], "total": 1},
    )

    result = runner.invoke(
        app, ["materials", "list", "--base-url", BASE_URL, "--credentials", str(path)]
    )

    assert result.exit_code == 0
    assert "Forceps" in result.stdout
    assert "Materials" in result.stdout


def test_users_list_json_output(requests_mock, tmp_path):
    path = seed(tmp_path, access_token="acc")
    requests_mock.get(f"{BASE_URL}/users", json=[{"name": "Ana", "role": "TECH"}])

    result = runner.invoke(
        app,
        [
            "users",
            "list",
            "--role",
            "tech",
            "--base-url",
            BASE_URL,
            "--credentials",
            str(path),
            "--json",
        ],
    )

    assert result.exit_code == 0
    assert json.loads(result.stdout)[0]["name"] == "Ana"
    assert requests_mock.last_request.qs == {"role": ["tech"]}


def test_expired_session_without_renewal_credential(requests_mock, tmp_path):
    path = seed(tmp_path, access_token="stale")
    requests_mock.get(f"{BASE_URL}/alerts", status_code=401, json={"message": "expired"})

    result = runner.invoke(
        app, ["alerts", "list", "--base-url", BASE_URL, "--credentials", str(path)]
    )

    assert result.exit_code == 1
    assert "Session ended" in result.stderr
    assert FileCredentialStore(path).access_token is None


def test_cli_renews_and_persists_rotated_tokens(requests_mock, tmp_path):
    path = seed(tmp_path, access_token="old", refresh_token="rt-1")

    def counts(request, context):
        if request.headers.get("Authorization") == "Bearer new":
            return {"open": 2, "critical": 1}
        context.status_code = 401
        return {}

    requests_mock.get(f"{BASE_URL}/alerts/counts", json=counts)
    requests_mock.post(
        f"{BASE_URL}/auth/refresh", json={"accessToken": "new", "refreshToken": "rt-2"}
    )

    result = runner.invoke(
        app, ["alerts", "counts", "--base-url", BASE_URL, "--credentials", str(path)]
    )

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"open": 2, "critical": 1}
    assert FileCredentialStore(path).refresh_token == "rt-2"


def test_whoami_requires_login(tmp_path):
    result = runner.invoke(
        app,
        ["whoami", "--base-url", BASE_URL, "--credentials", str(tmp_path / "none.json")],
    )

    assert result.exit_code == 1
    assert "Not signed in" in result.stderr


def test_logout_clears_credentials(requests_mock, tmp_path):
    path = seed(tmp_path, access_token="acc", refresh_token="ref", auth_user={"name": "Ana"})
    requests_mock.post(f"{BASE_URL}/auth/logout", status_code=204)

    result = runner.invoke(
        app, ["logout", "--base-url", BASE_URL, "--credentials", str(path)]
    )

    assert result.exit_code == 0
    assert json.loads(path.read_text()) == {}
