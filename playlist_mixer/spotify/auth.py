import secrets
import threading
import webbrowser
from concurrent.futures import Future
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from urllib.parse import parse_qs, urlencode, urlparse

import requests

from playlist_mixer.config import SCOPES, SPOTIFY_AUTH_URL, SPOTIFY_TOKEN_URL, MixerConfig
from playlist_mixer.core import (
    AuthError,
    AuthToken,
    Credentials,
    log_info,
    log_step,
    log_success,
    log_warning,
    print_info,
)


def generate_state() -> str:
    """Random anti-CSRF nonce echoed back by the authorization callback."""
    return secrets.token_urlsafe(16)


def build_spotify_auth_url(
    client_id: str,
    redirect_uri: str,
    scopes: Iterable[str],
    state: str,
    show_dialog: bool = False,
) -> str:
    params = {
        "response_type": "code",
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scope": " ".join(s.strip() for s in scopes if s.strip()),
        "state": state,
    }
    if show_dialog:
        params["show_dialog"] = "true"
    return f"{SPOTIFY_AUTH_URL}?{urlencode(params)}"


def exchange_code_for_token(
    code: str, credentials: Credentials, redirect_uri: str
) -> AuthToken:
    """
    Redeem an authorization code at the token endpoint.

    Any transport failure, HTTP error, or malformed payload is an AuthError.
    """
    token_data = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": redirect_uri,
    }
    try:
        r = requests.post(
            SPOTIFY_TOKEN_URL,
            data=token_data,
            auth=(credentials.client_id, credentials.client_secret),
            timeout=30,
        )
    except requests.RequestException as e:
        raise AuthError(f"Spotify token request failed: {e}") from e

    try:
        payload = r.json()
    except ValueError as e:
        raise AuthError(
            f"Spotify token response was not JSON (HTTP {r.status_code}): {r.text}"
        ) from e

    if r.status_code >= 400:
        detail = r.text
        if isinstance(payload, dict):
            detail = payload.get("error_description") or payload.get("error") or detail
        raise AuthError(f"Couldn't get token (HTTP {r.status_code}): {detail}")

    if not isinstance(payload, dict) or not payload.get("access_token"):
        raise AuthError(f"Spotify token response has no access_token: {payload}")

    return AuthToken.from_token_response(payload)


class _CallbackServer(HTTPServer):
    listener: "CallbackListener"


class _SpotifyAuthHandler(BaseHTTPRequestHandler):
    """
    Routes GET <callback path> to the owning CallbackListener and answers
    with a short plain-text body.
    """

    server: _CallbackServer

    def do_GET(self):
        listener = self.server.listener
        parsed = urlparse(self.path)

        if parsed.path != listener.callback_path:
            status, message = 404, "Not found."
        else:
            status, message = listener.handle_callback(parse_qs(parsed.query))

        body = message.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        # Silence default HTTP server logging in the console
        return


class CallbackListener:
    """
    Single-shot acceptor for the OAuth redirect.

    The HTTP server runs on a daemon thread; the first callback carrying a
    code, an error or a state settles a one-shot Future that the main flow
    waits on. Callbacks arriving after that are answered with 410 and
    ignored. The handler never aborts the process itself: failures are
    stored on the Future and re-raised by wait().
    """

    def __init__(
        self,
        redirect_uri: str,
        expected_state: str,
        exchange: Callable[[str], AuthToken],
    ):
        parsed = urlparse(redirect_uri)
        self.host = parsed.hostname or "localhost"
        self.port = parsed.port if parsed.port is not None else 80
        self.callback_path = parsed.path or "/"
        self.expected_state = expected_state
        self._exchange = exchange

        self._result: Future = Future()
        self._lock = threading.Lock()
        self._settled = False
        self._httpd: Optional[_CallbackServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def server_port(self) -> int:
        """Port actually bound (differs from self.port when 0 was requested)."""
        if self._httpd is None:
            return self.port
        return self._httpd.server_address[1]

    def start(self) -> None:
        """Bind the callback port and serve it; AuthError if the port is taken."""
        try:
            httpd = _CallbackServer((self.host, self.port), _SpotifyAuthHandler)
        except OSError as e:
            raise AuthError(
                f"Could not listen for the Spotify callback on {self.host}:{self.port}: {e}"
            ) from e
        httpd.listener = self
        self._httpd = httpd

        self._thread = threading.Thread(
            target=httpd.serve_forever, name="spotify-auth-callback", daemon=True
        )
        self._thread.start()
        log_info(f"Listening for the Spotify callback on {self.host}:{self.server_port}")

    def handle_callback(self, params: Dict[str, List[str]]) -> Tuple[int, str]:
        """
        Validate one redirect and settle the pending result.

        Returns the (HTTP status, body) pair to send back to the browser.
        """
        code = params.get("code", [None])[0]
        state = params.get("state", [None])[0]
        error = params.get("error", [None])[0]

        if code is None and state is None and error is None:
            return 400, "Missing 'code' parameter."

        with self._lock:
            if self._settled:
                log_warning("Ignoring an extra Spotify callback; authorization already handled.")
                return 410, "Authorization already handled."
            self._settled = True

        # Checked before the code is redeemed: a forged redirect never gets a token
        if state != self.expected_state:
            self._result.set_exception(
                AuthError(f"State mismatch: {state} != {self.expected_state}")
            )
            return 403, "State mismatch."

        if error:
            self._result.set_exception(AuthError(f"Spotify authorization failed: {error}"))
            return 400, f"Spotify authorization failed: {error}"

        if not code:
            self._result.set_exception(AuthError("Callback carried no authorization code."))
            return 400, "Missing 'code' parameter."

        try:
            token = self._exchange(code)
        except AuthError as e:
            self._result.set_exception(e)
            return 400, "Couldn't get token"
        except Exception as e:
            # Anything else still has to release the waiting flow
            self._result.set_exception(e)
            return 500, "Couldn't get token"

        self._result.set_result(token)
        return 200, "Login Completed!"

    def wait(self, timeout: Optional[float] = None) -> AuthToken:
        """Block until the callback settles; re-raises its AuthError."""
        return self._result.result(timeout=timeout)

    def close(self) -> None:
        if self._httpd is None:
            return
        self._httpd.shutdown()
        self._httpd.server_close()
        if self._thread is not None:
            self._thread.join()
        self._httpd = None
        self._thread = None

    def __enter__(self) -> "CallbackListener":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _try_open_browser(url: str) -> None:
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        log_warning(f"Could not open a browser ({e}); use the URL above.")
        return
    if not opened:
        log_warning("No browser available; use the URL above.")


def authorize(config: MixerConfig, *, open_browser: Optional[bool] = None) -> AuthToken:
    """
    Run the authorization-code handshake and return the access token.

    The callback listener is started before the URL is shown so a fast
    login cannot reach a closed port. Blocks until the callback delivers a
    token; raises AuthError on state mismatch, denied consent, or a failed
    code exchange.
    """
    credentials = config.credentials
    redirect_uri = config.spotify.redirect_uri
    state = generate_state()

    listener = CallbackListener(
        redirect_uri,
        state,
        lambda code: exchange_code_for_token(code, credentials, redirect_uri),
    )
    with listener:
        auth_url = build_spotify_auth_url(credentials.client_id, redirect_uri, SCOPES, state)
        print_info(
            "Please log in to Spotify by visiting the following page in your browser:\n"
            f"{auth_url}"
        )
        if open_browser is None:
            open_browser = config.mixer.open_browser
        if open_browser:
            _try_open_browser(auth_url)

        log_step("Waiting for Spotify authorization...")
        token = listener.wait()

    log_success("Spotify authorization complete.")
    return token
