"""
OAuth Redirect Server for CloudFS gateway logins.

Starts a minimal HTTP server that receives provider redirects after the user
authorized the application in a browser. Pending logins are keyed by their
OAuth ``state`` so each redirect resolves only the login that started it.
"""

import asyncio
import logging
import socket
import threading
import time
import webbrowser
from typing import Callable, Dict, Optional, Tuple
from urllib.parse import parse_qs, urlparse

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse

from ..utils.constants import Parameters
from ..utils.errors import InvalidArgumentError
from .login_ui import LoginUI, parse_redirect_parameters
from .session import LoginRequest

logger = logging.getLogger(__name__)


_PAGE_TEMPLATE = """
    <!DOCTYPE html>
    <html>
    <head>
        <title>{title}</title>
        <style>
            body {{
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                display: flex;
                justify-content: center;
                align-items: center;
                min-height: 100vh;
                margin: 0;
                background: {background};
            }}
            .container {{
                background: white;
                padding: 40px;
                border-radius: 12px;
                box-shadow: 0 10px 40px rgba(0,0,0,0.2);
                text-align: center;
                max-width: 400px;
            }}
            h1 {{
                color: #333;
                margin-bottom: 10px;
            }}
            p {{
                color: #666;
                line-height: 1.6;
            }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1>{title}</h1>
            <p>{message}</p>
        </div>
    </body>
    </html>
    """


def _create_success_html() -> str:
    """Create a success HTML page after the redirect was received."""
    return _PAGE_TEMPLATE.format(
        title="Authentication Received",
        background="linear-gradient(135deg, #667eea 0%, #764ba2 100%)",
        message="You can close this window and return to your application.",
    )


def _create_error_html(error_message: str) -> str:
    """Create an error HTML page."""
    return _PAGE_TEMPLATE.format(
        title="Authentication Failed",
        background="linear-gradient(135deg, #ff6b6b 0%, #ee5a5a 100%)",
        message=error_message,
    )


class RedirectServer:
    """
    Minimal HTTP server for OAuth redirects.
    Only starts when needed and runs in a background thread.
    """

    def __init__(self, port: int, base_uri: str = "http://localhost") -> None:
        self.port = port
        self.base_uri = base_uri
        self.app = FastAPI()
        self.server: Optional[uvicorn.Server] = None
        self.server_thread: Optional[threading.Thread] = None
        self.is_running = False
        self._pending: Dict[str, Callable[[Dict[str, str]], None]] = {}
        self._pending_lock = threading.Lock()
        # Serializes start/stop so a port is only ever bound once
        self._lifecycle_lock = threading.Lock()

        self._setup_callback_route()

    def register(self, state: str, deliver: Callable[[Dict[str, str]], None]) -> None:
        """Register the receiver of the redirect carrying ``state``."""
        with self._pending_lock:
            if state in self._pending:
                raise InvalidArgumentError("state", "A login with this state is already pending")
            self._pending[state] = deliver

    def unregister(self, state: str) -> None:
        with self._pending_lock:
            self._pending.pop(state, None)

    def deliver(self, parameters: Dict[str, str]) -> bool:
        """Hand redirect parameters to the pending login with the matching state."""
        state = parameters.get(Parameters.STATE)
        if not state:
            return False
        with self._pending_lock:
            receiver = self._pending.pop(state, None)
        if receiver is None:
            logger.warning("Redirect received for unknown state %s...", state[:8])
            return False
        receiver(parameters)
        return True

    def _setup_callback_route(self) -> None:
        """Setup the catch-all redirect route."""

        @self.app.get("/{path:path}")
        async def oauth_redirect(request: Request, path: str) -> HTMLResponse:
            """Handle a redirect from a provider's authorization endpoint."""
            parameters = parse_redirect_parameters(str(request.url))

            if not self.deliver(parameters):
                error_message = "No pending login matches this redirect"
                logger.error(error_message)
                return HTMLResponse(
                    content=_create_error_html(error_message), status_code=400
                )

            error = parameters.get(Parameters.ERROR)
            if error:
                error_message = f"The provider returned an error: {error}"
                logger.error(error_message)
                return HTMLResponse(
                    content=_create_error_html(error_message), status_code=400
                )

            logger.info(f"Redirect received on /{path}")
            return HTMLResponse(content=_create_success_html())

    def start(self) -> Tuple[bool, str]:
        """
        Start the redirect server.

        Returns:
            Tuple of (success: bool, error_message: str)
        """
        with self._lifecycle_lock:
            return self._start_locked()

    def _start_locked(self) -> Tuple[bool, str]:
        """Start the server. Caller must hold the lifecycle lock."""
        if self.is_running:
            return True, ""

        hostname = urlparse(self.base_uri).hostname or "localhost"

        # Check if port is available
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind((hostname, self.port))
        except OSError:
            error_msg = f"Port {self.port} is already in use"
            logger.error(error_msg)
            return False, error_msg

        def run_server() -> None:
            """Run the server in a separate thread."""
            try:
                config = uvicorn.Config(
                    self.app,
                    host=hostname,
                    port=self.port,
                    log_level="warning",
                    access_log=False,
                )
                self.server = uvicorn.Server(config)
                asyncio.run(self.server.serve())
            except (Exception, SystemExit) as e:
                # uvicorn exits on startup failures
                logger.error(f"Redirect server error: {e!r}", exc_info=True)
                self.is_running = False

        self.server_thread = threading.Thread(target=run_server, daemon=True)
        self.server_thread.start()

        # Wait for server to start
        max_wait = 3.0
        start_time = time.time()
        while time.time() - start_time < max_wait:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                if s.connect_ex((hostname, self.port)) == 0:
                    self.is_running = True
                    logger.info(f"Redirect server started on {hostname}:{self.port}")
                    return True, ""
            time.sleep(0.1)

        error_msg = f"Failed to start redirect server on {hostname}:{self.port}"
        logger.error(error_msg)
        return False, error_msg

    def stop(self) -> None:
        """Stop the redirect server."""
        with self._lifecycle_lock:
            if not self.is_running:
                return

            if self.server is not None:
                self.server.should_exit = True
            if self.server_thread and self.server_thread.is_alive():
                self.server_thread.join(timeout=3.0)

            self.is_running = False
            logger.info("Redirect server stopped")


# Global redirect servers, one per port
_redirect_servers: Dict[int, RedirectServer] = {}
_redirect_servers_lock = threading.Lock()


def get_redirect_server(port: int, base_uri: str = "http://localhost") -> RedirectServer:
    """Get the process-wide redirect server for a port."""
    with _redirect_servers_lock:
        server = _redirect_servers.get(port)
        if server is None:
            logger.info(f"Creating redirect server on {base_uri}:{port}")
            server = RedirectServer(port, base_uri)
            _redirect_servers[port] = server
        return server


def cleanup_redirect_servers() -> None:
    """Stop all redirect servers that were started."""
    with _redirect_servers_lock:
        servers = list(_redirect_servers.values())
        _redirect_servers.clear()
    for server in servers:
        server.stop()


class BrowserLogOn(LoginUI):
    """Browser login resolved by a redirect to the local redirect server."""

    def __init__(
        self,
        server: RedirectServer,
        timeout: Optional[float] = None,
        open_browser: Callable[[str], bool] = webbrowser.open,
    ) -> None:
        self.server = server
        self.timeout = timeout
        self._open_browser = open_browser

    @staticmethod
    def _state_of(request: LoginRequest) -> Optional[str]:
        if request.state:
            return request.state
        if request.authorization_uri:
            values = parse_qs(urlparse(request.authorization_uri).query).get(Parameters.STATE)
            if values:
                return values[0]
        return None

    async def authenticate(self, request: LoginRequest) -> Dict[str, str]:
        if not request.authorization_uri:
            raise InvalidArgumentError("authorization_uri")
        state = self._state_of(request)
        if not state:
            raise InvalidArgumentError("state", "Browser logins require an OAuth state parameter")

        success, error_msg = await asyncio.to_thread(self.server.start)
        if not success:
            logger.error(f"Cannot present browser login: {error_msg}")
            return {}

        loop = asyncio.get_running_loop()
        result: "asyncio.Future[Dict[str, str]]" = loop.create_future()

        def deliver(parameters: Dict[str, str]) -> None:
            loop.call_soon_threadsafe(
                lambda: result.done() or result.set_result(dict(parameters))
            )

        self.server.register(state, deliver)
        try:
            logger.info(f"Presenting browser login: {request.title} (state: {state[:8]}...)")
            opened = await asyncio.to_thread(self._open_browser, request.authorization_uri)
            if not opened:
                logger.warning("Could not open a browser, visit the authorization URI manually")
            return await asyncio.wait_for(result, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Browser login for %s timed out", request.account)
            return {}
        finally:
            self.server.unregister(state)
