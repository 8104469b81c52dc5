from src.utils.crypto import generate_signature, sign_body, verify_signature


class SignatureCodec:
    """Signs and verifies gateway payloads using HMAC-SHA256."""

    def __init__(self, secret: str):
        self.secret = secret

    def sign(self, payload: dict) -> str:
        return generate_signature(payload, self.secret)

    def sign_body(self, body: str) -> str:
        return sign_body(body, self.secret)

    def verify(self, payload: dict, signature: str) -> bool:
        return verify_signature(payload, self.secret, signature)
