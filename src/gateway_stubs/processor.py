import hashlib
import time
from typing import Self
from urllib.parse import parse_qsl, urlencode, urlsplit

from src.gateway_stubs.base import StubGatewayServer, StubHandler


class _ProcessorHandler(StubHandler):
    """Mimics the processor's APISign SIGN and VERIFY actions."""

    def do_GET(self):
        config = self.config

        # Simulate slow response
        if config["response_delay"] > 0:
            time.sleep(config["response_delay"])

        params = dict(parse_qsl(urlsplit(self.path).query, keep_blank_values=True))
        with config["lock"]:
            config["requests"].append(params)
            config["call_count"] += 1
            call_number = config["call_count"]

        code = config["response_code"]
        if not 200 <= code < 300:
            self.send_body(code, "error")
            return

        credentials_ok = (
            params.get("KEY") == config["key"]
            and params.get("PassP") == config["passphrase"]
            and params.get("Masof") == config["merchant_code"]
        )
        what = params.get("What")

        if what == "SIGN":
            if not credentials_ok:
                self.send_body(200, "CCode=901")
                return
            # A fresh token per call, like the real processor
            token = hashlib.sha256(
                f"{call_number}:{urlencode(params)}".encode()
            ).hexdigest()
            fragment = urlencode({
                "Masof": params["Masof"],
                "Order": params.get("Order", ""),
                "Amount": params.get("Amount", ""),
                "ClientName": params.get("ClientName", ""),
                "Currency": params.get("Currency", ""),
                "signature": token,
            })
            self.send_body(200, fragment)
        elif what == "VERIFY":
            self.send_body(200, config["verify_response"] if credentials_ok else "CCode=902")
        else:
            self.send_body(200, "CCode=999")


class ProcessorGatewayStub(StubGatewayServer):
    """Local stand-in for the processor gateway."""

    handler_class = _ProcessorHandler

    def __init__(
        self,
        key: str,
        passphrase: str,
        merchant_code: str,
        host: str = "127.0.0.1",
        port: int = 0,
    ):
        super().__init__(
            host,
            port,
            key=key,
            passphrase=passphrase,
            merchant_code=merchant_code,
            verify_response="CCode=0",
            requests=[],
            call_count=0,
        )

    def set_verify_response(self, body: str) -> Self:
        self._config["verify_response"] = body
        return self

    @property
    def url(self) -> str:
        return f"{self.base_url}/p/"

    def get_requests(self, what: str | None = None) -> list[dict]:
        with self._config["lock"]:
            return [
                r for r in self._config["requests"]
                if what is None or r.get("What") == what
            ]

    def request_count(self, what: str | None = None) -> int:
        return len(self.get_requests(what))

    def clear_requests(self) -> None:
        with self._config["lock"]:
            self._config["requests"].clear()
