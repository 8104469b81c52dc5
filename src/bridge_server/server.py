import json
import logging
import threading
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Self
from urllib.parse import parse_qsl, urlsplit

from src.bridge_server.pages import cancel_page, success_page
from src.errors import (
    AuthenticityError,
    BridgeError,
    UpstreamTimeout,
    ValidationError,
    VerificationMismatch,
)
from src.reconciliation.engine import ReconciliationEngine

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-SBPay-Signature"


class _BridgeHandler(BaseHTTPRequestHandler):
    """HTTP request handler for origin and processor gateway traffic."""

    def do_POST(self):
        self._dispatch({
            "/api/payment": self._handle_payment,
            "/api/webhook/payment": self._handle_webhook,
        })

    def do_GET(self):
        self._dispatch({
            "/api/yaad-callback": self._handle_callback,
            "/api/payment-success": self._handle_success_page,
            "/api/payment-cancelled": self._handle_cancel_page,
            "/health": self._handle_health,
        })

    def _dispatch(self, routes: dict) -> None:
        parts = urlsplit(self.path)
        handler = routes.get(parts.path)
        if handler is None:
            self._send_json(404, {"error": "Not found"})
            return
        query = dict(parse_qsl(parts.query, keep_blank_values=True))
        try:
            handler(query)
        except Exception:
            logger.exception("Unhandled error on %s %s", self.command, parts.path)
            self._send_json(500, {"error": "Internal server error"})

    @property
    def _engine(self) -> ReconciliationEngine:
        return self.server.config["engine"]  # type: ignore[attr-defined]

    @property
    def _production(self) -> bool:
        return self.server.config["production"]  # type: ignore[attr-defined]

    # Routes

    def _handle_payment(self, query: dict[str, str]) -> None:
        try:
            body = self._read_json()
            payment_url = self._engine.issue_payment_url(
                body, self.headers.get(SIGNATURE_HEADER),
            )
        except AuthenticityError as exc:
            self._send_json(401, {"error": str(exc)})
            return
        except UpstreamTimeout as exc:
            self._send_indeterminate(exc)
            return
        except BridgeError as exc:
            logger.error("Payment processing failed: %s", exc)
            self._send_failure("Payment processing failed", exc)
            return

        if self._production:
            self.send_response(302)
            self.send_header("Location", payment_url.url)
            self.send_header("Content-Length", "0")
            self.end_headers()
            return

        self._send_json(200, {
            "status": "success",
            "payment_url": payment_url.url,
            "transaction_id": payment_url.transaction_id,
        })

    def _handle_webhook(self, query: dict[str, str]) -> None:
        signature = self.headers.get(SIGNATURE_HEADER) or query.get("signature")
        try:
            body = self._read_json()
            result = self._engine.handle_webhook(body, signature)
        except AuthenticityError as exc:
            self._send_json(401, {"error": str(exc)})
            return
        except UpstreamTimeout as exc:
            self._send_indeterminate(exc)
            return
        except BridgeError as exc:
            logger.error("Webhook processing failed: %s", exc)
            self._send_failure("Webhook processing failed", exc)
            return

        self._send_json(200, {"status": "ignored" if result is None else "success"})

    def _handle_callback(self, query: dict[str, str]) -> None:
        try:
            self._engine.handle_redirect(query)
        except VerificationMismatch as exc:
            self._send_json(400, {
                "error": "Payment verification failed",
                "code": exc.code,
                "message": exc.message,
            })
            return
        except ValidationError as exc:
            self._send_json(400, {"error": "Invalid callback", "message": str(exc)})
            return
        except UpstreamTimeout as exc:
            self._send_indeterminate(exc)
            return
        except BridgeError as exc:
            logger.error("Redirect callback processing failed: %s", exc)
            self._send_failure("Webhook processing failed", exc)
            return

        self._send_json(200, {"status": "success"})

    def _handle_success_page(self, query: dict[str, str]) -> None:
        self._send_html(200, success_page(query.get("Order"), query.get("Amount")))

    def _handle_cancel_page(self, query: dict[str, str]) -> None:
        self._send_html(200, cancel_page())

    def _handle_health(self, query: dict[str, str]) -> None:
        self._send_json(200, {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    # Helpers

    def _read_json(self) -> dict:
        content_length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(content_length)
        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, ValueError) as exc:
            raise ValidationError("invalid JSON body") from exc
        if not isinstance(payload, dict):
            raise ValidationError("request body must be a JSON object")
        return payload

    def _send_failure(self, message: str, exc: Exception) -> None:
        body = {"error": message}
        if not self._production:
            body["details"] = str(exc)
        self._send_json(500, body)

    def _send_indeterminate(self, exc: UpstreamTimeout) -> None:
        logger.error("Upstream %s timed out: %s", exc.service, exc)
        self._send_json(504, {
            "error": "Upstream gateway timed out",
            "status": "indeterminate",
        })

    def _send_json(self, code: int, body: dict) -> None:
        data = json.dumps(body).encode()
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _send_html(self, code: int, html: str) -> None:
        data = html.encode("utf-8")
        self.send_response(code)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def log_message(self, format, *args):
        logger.info("%s %s", self.address_string(), format % args)


class BridgeServer:
    """Threaded HTTP front end for the reconciliation engine."""

    def __init__(
        self,
        engine: ReconciliationEngine,
        host: str = "127.0.0.1",
        port: int = 0,
        production: bool = False,
    ):
        self._host = host
        self._port = port
        self._config = {
            "engine": engine,
            "production": production,
        }
        self._server: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    def set_production(self, production: bool) -> Self:
        self._config["production"] = production
        return self

    def _bind(self) -> ThreadingHTTPServer:
        server = ThreadingHTTPServer((self._host, self._port), _BridgeHandler)
        server.config = self._config  # type: ignore[attr-defined]
        # Get the actual port (useful when port=0)
        self._port = server.server_address[1]
        return server

    def start(self) -> None:
        self._server = self._bind()
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()

    def serve_forever(self) -> None:
        """Serve in the calling thread until interrupted."""
        self._server = self._bind()
        logger.info("Bridge listening on %s", self.url)
        try:
            self._server.serve_forever()
        finally:
            self._server.server_close()
            self._server = None

    def stop(self) -> None:
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

    @property
    def url(self) -> str:
        return f"http://{self._host}:{self._port}"

    @property
    def port(self) -> int:
        return self._port

    @property
    def engine(self) -> ReconciliationEngine:
        return self._config["engine"]
