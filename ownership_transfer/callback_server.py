# ownership_transfer/callback_server.py
import logging
import threading
from concurrent.futures import Future
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import parse_qs, urlparse

from ownership_transfer.errors import ErrorKind, TransferError

SUCCESS_PAGE = (
    b"<!DOCTYPE html><html><head><title>Authorization complete</title></head>"
    b"<body><h1>Authentication successful!</h1>"
    b"<p>The token has been saved. You can close this window and return to the terminal.</p>"
    b"</body></html>"
)


class _CallbackHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        # Parse the URL to extract the authorization code
        query = parse_qs(urlparse(self.path).query)

        if self.server.result.done():
            self._respond(410, b"Authorization already completed.")
            return

        expected_state = self.server.expected_state
        if expected_state is not None and query.get('state', [None])[0] != expected_state:
            logging.warning("Ignoring callback request whose state does not match the authorization request.")
            self._respond(400, b"State mismatch.")
            return

        if 'error' in query:
            error = TransferError(ErrorKind.AUTHENTICATION, f"Authorization was refused in the browser: {query['error'][0]}")
            self._respond(400, b"Authorization was refused. You can close this window.")
            self.server.resolve(exception=error)
            return

        if 'code' not in query:
            logging.debug(f"Ignoring callback request without a code: {self.path}")
            self._respond(400, b"Missing authorization code.")
            return

        try:
            result = self.server.on_code(query['code'][0])
        except Exception as e:
            # Handed to the waiting thread through the future.
            self._respond(500, b"Authorization failed. Check the terminal for details.")
            self.server.resolve(exception=e)
            return

        self._respond(200, SUCCESS_PAGE, content_type='text/html')
        self.server.resolve(result=result)

    def _respond(self, status, body, content_type='text/plain'):
        self.send_response(status)
        self.send_header('Content-Type', f"{content_type}; charset=utf-8")
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        logging.debug(f"Callback listener: {format % args}")


class OAuthCallbackServer(HTTPServer):
    """
    Single-use loopback listener for the OAuth redirect.

    `result` is a one-shot future created before the listener starts. The request
    handler passes the authorization code to `on_code`, answers the browser, then
    resolves the future with `on_code`'s return value and stops the listener.
    Once `expected_state` is set, requests carrying any other `state` are refused
    and the listener keeps waiting.
    """

    def __init__(self, port, on_code, host='localhost', expected_state=None):
        super().__init__((host, port), _CallbackHandler)
        self.on_code = on_code
        self.expected_state = expected_state
        self.result = Future()
        self._thread = None

    @property
    def port(self):
        return self.server_address[1]

    def start(self):
        self._thread = threading.Thread(target=self.serve_forever, name='oauth-callback', daemon=True)
        self._thread.start()
        logging.info(f"Listening on port {self.port} for the OAuth response...")

    def resolve(self, result=None, exception=None):
        if exception is not None:
            self.result.set_exception(exception)
        else:
            self.result.set_result(result)
        # shutdown() blocks until serve_forever returns, so it cannot run on the serving thread.
        threading.Thread(target=self.shutdown, daemon=True).start()

    def wait(self):
        """Blocks until the callback arrives. There is no timeout."""
        return self.result.result()

    def close(self):
        if self._thread is not None:
            self.shutdown()
            self._thread.join()
            self._thread = None
        self.server_close()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc_info):
        self.close()
