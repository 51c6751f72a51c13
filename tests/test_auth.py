import concurrent.futures
import socket
import threading
from typing import List
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from playlist_mixer.config import MixerConfig
from playlist_mixer.core import AuthError, AuthToken, Credentials
from playlist_mixer.spotify import (
    CallbackListener,
    authorize,
    build_spotify_auth_url,
    exchange_code_for_token,
    generate_state,
)

CREDENTIALS = Credentials(client_id="client-id", client_secret="client-secret")


class FakeResponse:
    def __init__(self, status_code: int, payload=None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text or str(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("not json")
        return self._payload


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def listener_factory(token: AuthToken):
    started: List[CallbackListener] = []

    def _make(exchange=None, expected_state: str = "expected-state") -> CallbackListener:
        listener = CallbackListener(
            "http://127.0.0.1:0/callback",
            expected_state,
            exchange or (lambda code: token),
        )
        listener.start()
        started.append(listener)
        return listener

    yield _make

    for listener in started:
        listener.close()


def _callback_url(listener: CallbackListener) -> str:
    return f"http://127.0.0.1:{listener.server_port}/callback"


def test_build_spotify_auth_url_is_deterministic() -> None:
    scopes = ["playlist-read-private", "playlist-modify-public"]

    first = build_spotify_auth_url("cid", "http://localhost:8888/callback", scopes, "nonce")
    second = build_spotify_auth_url("cid", "http://localhost:8888/callback", scopes, "nonce")

    assert first == second

    parsed = urlparse(first)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
        "https://accounts.spotify.com/authorize"
    )
    qs = parse_qs(parsed.query)
    assert qs["response_type"] == ["code"]
    assert qs["client_id"] == ["cid"]
    assert qs["redirect_uri"] == ["http://localhost:8888/callback"]
    assert qs["scope"] == ["playlist-read-private playlist-modify-public"]
    assert qs["state"] == ["nonce"]
    assert "show_dialog" not in qs


def test_generate_state_is_random() -> None:
    states = {generate_state() for _ in range(20)}

    assert len(states) == 20
    assert all(len(s) >= 16 for s in states)


def test_callback_delivers_token(listener_factory, token: AuthToken) -> None:
    codes = []

    def exchange(code: str) -> AuthToken:
        codes.append(code)
        return token

    listener = listener_factory(exchange)

    r = requests.get(
        _callback_url(listener),
        params={"code": "abc", "state": "expected-state"},
        timeout=5,
    )

    assert r.status_code == 200
    assert r.text == "Login Completed!"
    assert listener.wait(timeout=5) == token
    assert codes == ["abc"]


def test_state_mismatch_fails_without_exchanging_code(listener_factory) -> None:
    codes = []
    listener = listener_factory(lambda code: codes.append(code))

    r = requests.get(
        _callback_url(listener),
        params={"code": "abc", "state": "forged"},
        timeout=5,
    )

    assert r.status_code == 403
    with pytest.raises(AuthError) as excinfo:
        listener.wait(timeout=5)
    assert "State mismatch" in str(excinfo.value)
    assert codes == []


def test_missing_state_is_a_mismatch(listener_factory) -> None:
    listener = listener_factory()

    r = requests.get(_callback_url(listener), params={"code": "abc"}, timeout=5)

    assert r.status_code == 403
    with pytest.raises(AuthError):
        listener.wait(timeout=5)


def test_exchange_failure_returns_client_error(listener_factory) -> None:
    def exchange(code: str) -> AuthToken:
        raise AuthError("invalid_grant")

    listener = listener_factory(exchange)

    r = requests.get(
        _callback_url(listener),
        params={"code": "expired", "state": "expected-state"},
        timeout=5,
    )

    assert r.status_code == 400
    with pytest.raises(AuthError) as excinfo:
        listener.wait(timeout=5)
    assert "invalid_grant" in str(excinfo.value)


def test_denied_consent_is_auth_error(listener_factory) -> None:
    listener = listener_factory()

    r = requests.get(
        _callback_url(listener),
        params={"error": "access_denied", "state": "expected-state"},
        timeout=5,
    )

    assert r.status_code == 400
    with pytest.raises(AuthError) as excinfo:
        listener.wait(timeout=5)
    assert "access_denied" in str(excinfo.value)


def test_second_callback_is_dropped(listener_factory, token: AuthToken) -> None:
    listener = listener_factory()
    params = {"code": "abc", "state": "expected-state"}

    first = requests.get(_callback_url(listener), params=params, timeout=5)
    second = requests.get(_callback_url(listener), params=params, timeout=5)

    assert first.status_code == 200
    assert second.status_code == 410
    assert listener.wait(timeout=5) == token


def test_requests_without_parameters_do_not_settle(listener_factory) -> None:
    listener = listener_factory()

    bare = requests.get(_callback_url(listener), timeout=5)
    other_path = requests.get(
        f"http://127.0.0.1:{listener.server_port}/favicon.ico", timeout=5
    )

    assert bare.status_code == 400
    assert other_path.status_code == 404
    with pytest.raises(concurrent.futures.TimeoutError):
        listener.wait(timeout=0.2)


def test_exchange_code_for_token_posts_authorization_code(monkeypatch) -> None:
    calls = {}

    def fake_post(url, data=None, auth=None, timeout=None):
        calls.update(url=url, data=data, auth=auth)
        return FakeResponse(
            200,
            {
                "access_token": "access",
                "token_type": "Bearer",
                "expires_in": 3600,
                "refresh_token": "refresh",
                "scope": "playlist-read-private",
            },
        )

    monkeypatch.setattr("playlist_mixer.spotify.auth.requests.post", fake_post)

    token = exchange_code_for_token("the-code", CREDENTIALS, "http://localhost:8888/callback")

    assert calls["url"] == "https://accounts.spotify.com/api/token"
    assert calls["data"] == {
        "grant_type": "authorization_code",
        "code": "the-code",
        "redirect_uri": "http://localhost:8888/callback",
    }
    assert calls["auth"] == ("client-id", "client-secret")
    assert token.access_token == "access"
    assert token.refresh_token == "refresh"
    assert token.expires_at > 0


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(400, {"error": "invalid_grant", "error_description": "Invalid code"}),
        FakeResponse(502, None, text="<html>bad gateway</html>"),
        FakeResponse(200, {"token_type": "Bearer"}),
    ],
)
def test_exchange_code_for_token_failures_are_auth_errors(monkeypatch, response) -> None:
    monkeypatch.setattr(
        "playlist_mixer.spotify.auth.requests.post",
        lambda *args, **kwargs: response,
    )

    with pytest.raises(AuthError):
        exchange_code_for_token("bad", CREDENTIALS, "http://localhost:8888/callback")


def test_exchange_code_for_token_transport_error_is_auth_error(monkeypatch) -> None:
    def fake_post(*args, **kwargs):
        raise requests.ConnectionError("no route")

    monkeypatch.setattr("playlist_mixer.spotify.auth.requests.post", fake_post)

    with pytest.raises(AuthError) as excinfo:
        exchange_code_for_token("code", CREDENTIALS, "http://localhost:8888/callback")
    assert "no route" in str(excinfo.value)


def _config_on_free_port() -> MixerConfig:
    return MixerConfig.model_validate(
        {
            "spotify": {
                "client_id": "client-id",
                "client_secret": "client-secret",
                "redirect_uri": f"http://127.0.0.1:{_free_port()}/callback",
            }
        }
    )


def _run_authorize_with_browser(monkeypatch, answer_state) -> dict:
    """
    Run authorize() while a "browser" thread follows the printed URL.

    The browser only starts once the URL is printed, so a successful run also
    shows the listener was already accepting connections at that point.
    """
    outcome = {}
    browsers: List[threading.Thread] = []

    def fake_print_info(message: str) -> None:
        auth_url = message.splitlines()[-1]
        qs = parse_qs(urlparse(auth_url).query)
        state = answer_state(qs["state"][0])

        def browser() -> None:
            r = requests.get(
                qs["redirect_uri"][0],
                params={"code": "the-code", "state": state},
                timeout=5,
            )
            outcome["status"] = r.status_code

        thread = threading.Thread(target=browser)
        thread.start()
        browsers.append(thread)

    monkeypatch.setattr("playlist_mixer.spotify.auth.print_info", fake_print_info)
    try:
        outcome["token"] = authorize(_config_on_free_port(), open_browser=False)
    except AuthError as e:
        outcome["error"] = e
    for thread in browsers:
        thread.join(timeout=5)
    return outcome


def test_authorize_returns_token_after_callback(monkeypatch, token: AuthToken) -> None:
    monkeypatch.setattr(
        "playlist_mixer.spotify.auth.exchange_code_for_token",
        lambda code, credentials, redirect_uri: token,
    )

    outcome = _run_authorize_with_browser(monkeypatch, lambda issued: issued)

    assert outcome["token"] == token
    assert outcome["status"] == 200


def test_authorize_aborts_on_state_mismatch(monkeypatch) -> None:
    exchanged = []
    monkeypatch.setattr(
        "playlist_mixer.spotify.auth.exchange_code_for_token",
        lambda code, credentials, redirect_uri: exchanged.append(code),
    )

    outcome = _run_authorize_with_browser(monkeypatch, lambda issued: issued + "-forged")

    assert "token" not in outcome
    assert isinstance(outcome["error"], AuthError)
    assert outcome["status"] == 403
    assert exchanged == []


def test_authorize_reports_busy_port(monkeypatch) -> None:
    config = _config_on_free_port()
    port = urlparse(config.spotify.redirect_uri).port

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
        blocker.bind(("127.0.0.1", port))
        blocker.listen(1)

        with pytest.raises(AuthError) as excinfo:
            authorize(config, open_browser=False)

    assert str(port) in str(excinfo.value)


def test_listener_as_context_manager_serves_then_closes(token: AuthToken) -> None:
    listener = CallbackListener("http://127.0.0.1:0/callback", "expected-state", lambda code: token)

    with listener as entered:
        assert entered is listener
        port = listener.server_port
        r = requests.get(
            f"http://127.0.0.1:{port}/callback",
            params={"code": "abc", "state": "expected-state"},
            timeout=5,
        )
        assert r.status_code == 200
        assert listener.wait(timeout=5) == token

    with pytest.raises(requests.ConnectionError):
        requests.get(f"http://127.0.0.1:{port}/callback", timeout=2)


def test_listener_closes_when_the_block_raises(token: AuthToken) -> None:
    listener = CallbackListener("http://127.0.0.1:0/callback", "expected-state", lambda code: token)

    with pytest.raises(RuntimeError):
        with listener:
            port = listener.server_port
            raise RuntimeError("interrupted")

    with pytest.raises(requests.ConnectionError):
        requests.get(f"http://127.0.0.1:{port}/callback", timeout=2)


def test_listener_start_on_busy_port_is_auth_error(token: AuthToken) -> None:
    port = _free_port()
    listener = CallbackListener(f"http://127.0.0.1:{port}/callback", "s", lambda code: token)

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
        blocker.bind(("127.0.0.1", port))
        blocker.listen(1)

        with pytest.raises(AuthError):
            with listener:
                pass
