"""Strategies for obtaining an OAuth authorization code from the operator.

Both implement ``obtain_code(auth_url, state) -> code``:
- ManualCodeAcquirer: print the URL, read the pasted code from stdin.
- LocalCallbackCodeAcquirer: run a one-shot HTTP listener on localhost and
  capture ``code`` from the browser redirect.
"""

from __future__ import annotations

import threading
import webbrowser
from collections.abc import Callable
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Protocol
from urllib.parse import parse_qs, urlsplit

import click

from mailsift.core.errors import AuthError
from mailsift.core.logging import get_logger

_CONNECTION_TIMEOUT = 10.0

_SUCCESS_PAGE = b"""<html>
  <body>
    <h1>Authentication Successful</h1>
    <p>You can close this window and return to the application.</p>
  </body>
</html>
"""

_FAILURE_PAGE = b"""<html>
  <body>
    <h1>Authentication Failed</h1>
    <p>No authorization code was received. Please try again.</p>
  </body>
</html>
"""


class CodeAcquirer(Protocol):
    def obtain_code(self, auth_url: str, state: str | None = None) -> str: ...


def code_from_pasted_value(value: str) -> str:
    """Accept either a bare code or the full redirect URL containing ``code=``."""
    value = value.strip()
    if "code=" in value:
        params = parse_qs(urlsplit(value).query)
        if params.get("code"):
            return params["code"][0]
    return value


class ManualCodeAcquirer:
    """Print the authorization URL and block on the operator pasting the code."""

    def __init__(
        self,
        prompt: Callable[[str], str] | None = None,
        echo: Callable[[str], None] = click.echo,
    ) -> None:
        self._prompt = prompt or (lambda text: click.prompt(text, type=str))
        self._echo = echo

    def obtain_code(self, auth_url: str, state: str | None = None) -> str:
        self._echo("Authorize this app by visiting this url:")
        self._echo(auth_url)
        pasted = self._prompt("Enter the code from that page here")
        code = code_from_pasted_value(pasted)
        if not code:
            raise AuthError("No authorization code was entered")
        # Only a pasted redirect URL carries a state to compare.
        pasted_state = parse_qs(urlsplit(pasted.strip()).query).get("state")
        if state is not None and pasted_state and pasted_state[0] != state:
            raise AuthError("Authorization failed: state mismatch")
        return code


class _CallbackOutcome:
    """Completion slot shared between the handler thread and the waiter.

    The first ``resolve``/``reject`` wins; later calls are ignored.
    """

    def __init__(self) -> None:
        self.done = threading.Event()
        self.code: str | None = None
        self.error: AuthError | None = None
        self._lock = threading.Lock()

    def resolve(self, code: str) -> None:
        with self._lock:
            if not self.done.is_set():
                self.code = code
                self.done.set()

    def reject(self, error: AuthError) -> None:
        with self._lock:
            if not self.done.is_set():
                self.error = error
                self.done.set()


def _make_handler(
    path: str, outcome: _CallbackOutcome, state: str | None = None
) -> type[BaseHTTPRequestHandler]:
    class CallbackHandler(BaseHTTPRequestHandler):
        """Answers the OAuth redirect and records its ``code`` parameter."""

        # Idle keep-alive connections from the browser are dropped after this.
        timeout = _CONNECTION_TIMEOUT

        def do_GET(self) -> None:
            url = urlsplit(self.path)
            if url.path != path:
                self.send_response(404)
                self.end_headers()
                return

            params = parse_qs(url.query)
            code = params.get("code", [""])[0]
            if state is not None and params.get("state", [""])[0] != state:
                self._respond(400, _FAILURE_PAGE)
                outcome.reject(AuthError("Authorization failed: state mismatch"))
            elif code and "error" not in params:
                self._respond(200, _SUCCESS_PAGE)
                outcome.resolve(code)
            else:
                self._respond(400, _FAILURE_PAGE)
                reason = params.get("error", ["no authorization code received"])[0]
                outcome.reject(AuthError(f"Authorization failed: {reason}"))

        def _respond(self, status: int, body: bytes) -> None:
            self.send_response(status)
            self.send_header("Content-Type", "text/html")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format: str, *args: object) -> None:
            """Suppress default access logs."""

    return CallbackHandler


class _CallbackServer(ThreadingHTTPServer):
    # server_close() must not wait on handler threads parked on idle connections.
    block_on_close = False


class LocalCallbackCodeAcquirer:
    """Capture the authorization code with a short-lived localhost listener.

    The listener handles requests until the first hit on ``path`` and is then
    shut down and closed exactly once, whichever way the attempt ends.
    Port 0 binds an ephemeral port, exposed as ``server_port`` once bound.
    When ``state`` is given, a redirect carrying any other state is rejected.
    Each connection is served on its own thread, so an idle browser
    connection cannot hold up the redirect.
    """

    def __init__(
        self,
        port: int = 3000,
        path: str = "/oauth2callback",
        host: str = "localhost",
        open_browser: Callable[[str], object] | None = webbrowser.open,
        timeout: float | None = None,
        echo: Callable[[str], None] = click.echo,
    ) -> None:
        self._port = port
        self._path = path
        self._host = host
        self._open_browser = open_browser
        self._timeout = timeout
        self._echo = echo
        self._server: _CallbackServer | None = None
        self._log = get_logger("oauth_callback")

    @property
    def server_port(self) -> int | None:
        """Bound port while the listener is running, else None."""
        if self._server is None:
            return None
        return self._server.server_address[1]

    def obtain_code(self, auth_url: str, state: str | None = None) -> str:
        outcome = _CallbackOutcome()
        try:
            server = _CallbackServer(
                (self._host, self._port), _make_handler(self._path, outcome, state)
            )
        except OSError as exc:
            raise AuthError(
                f"Cannot listen for the OAuth callback on {self._host}:{self._port}: {exc}"
            ) from exc

        self._server = server
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        try:
            self._log.info("callback_listener_started", port=self.server_port, path=self._path)
            self._launch_browser(auth_url)
            if not outcome.done.wait(self._timeout):
                raise AuthError(
                    f"No OAuth callback received within {self._timeout} seconds"
                )
        finally:
            self._stop(server)
            thread.join()

        if outcome.error is not None:
            raise outcome.error
        return outcome.code

    def _launch_browser(self, auth_url: str) -> None:
        self._echo(f"Opening browser for authentication: {auth_url}")
        if self._open_browser is None:
            self._echo("Please open this URL in your browser to continue.")
            return
        try:
            opened = self._open_browser(auth_url)
        except Exception:
            self._log.warning("browser_open_failed", exc_info=True)
            opened = False
        if opened is False:
            self._echo(
                f"Unable to open browser automatically. Please open this URL manually:\n{auth_url}"
            )

    def _stop(self, server: _CallbackServer) -> None:
        server.shutdown()
        server.server_close()
        self._server = None
        self._log.info("callback_listener_stopped")
