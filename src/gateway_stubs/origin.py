import json
import re
import time
from urllib.parse import unquote, urlsplit

from src.gateway_stubs.base import StubGatewayServer, StubHandler
from src.utils.crypto import sign_body

_APPROVE_PATH = re.compile(r"/orders/([^/]+)/approve$")


class _OriginHandler(StubHandler):
    """Accepts signed order approvals and records each one."""

    def do_POST(self):
        config = self.config
        content_length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(content_length).decode("utf-8")

        # Simulate slow response
        if config["response_delay"] > 0:
            time.sleep(config["response_delay"])

        match = _APPROVE_PATH.search(urlsplit(self.path).path)
        if match is None:
            self.send_body(404, json.dumps({"error": "not found"}), "application/json")
            return

        authorized = (
            self.headers.get("X-Auth-Token") == config["api_key"]
            and self.headers.get("X-Merchant") == config["merchant_id"]
            and self.headers.get("X-Signature") == sign_body(body, config["secret"])
        )
        if not authorized:
            self.send_body(401, json.dumps({"error": "unauthorized"}), "application/json")
            return

        order_id = unquote(match.group(1))
        with config["lock"]:
            config["approvals"].append({
                "order_id": order_id,
                "body": body,
                "headers": dict(self.headers),
            })

        code = config["response_code"]
        if 200 <= code < 300:
            response = {"status": "approved", "order_id": order_id}
        else:
            response = {"error": "approval failed", "order_id": order_id}
        self.send_body(code, json.dumps(response), "application/json")


class OriginGatewayStub(StubGatewayServer):
    """Local stand-in for the origin gateway's order approval API."""

    handler_class = _OriginHandler

    def __init__(
        self,
        api_key: str,
        merchant_id: str,
        secret: str,
        host: str = "127.0.0.1",
        port: int = 0,
    ):
        super().__init__(
            host,
            port,
            api_key=api_key,
            merchant_id=merchant_id,
            secret=secret,
            approvals=[],
        )

    @property
    def url(self) -> str:
        return f"{self.base_url}/api"

    def get_approvals(self, order_id: str | None = None) -> list[dict]:
        with self._config["lock"]:
            return [
                a for a in self._config["approvals"]
                if order_id is None or a["order_id"] == order_id
            ]

    def approval_count(self, order_id: str | None = None) -> int:
        return len(self.get_approvals(order_id))

    def clear_approvals(self) -> None:
        with self._config["lock"]:
            self._config["approvals"].clear()
