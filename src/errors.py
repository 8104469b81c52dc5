class BridgeError(Exception):
    """Base class for every failure the bridge reports to its callers."""


class AuthenticityError(BridgeError):
    """Signature missing or invalid. Nothing in the message is trusted."""


class ValidationError(BridgeError):
    """Request body is malformed or violates the payment request schema."""


class UpstreamError(BridgeError):
    """A gateway returned a non-success response or could not be reached."""

    def __init__(
        self,
        message: str,
        service: str,
        status_code: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.service = service
        self.status_code = status_code
        self.body = body


class UpstreamTimeout(UpstreamError):
    """A gateway call timed out. Its outcome on the remote side is unknown."""


class UpstreamApprovalError(UpstreamError):
    """The origin gateway refused or failed the order approval call."""

    def __init__(
        self,
        order_id: str,
        status_code: int | None = None,
        body: str | None = None,
        message: str | None = None,
    ):
        super().__init__(
            message or f"Failed to approve order {order_id}: status={status_code}",
            service="origin",
            status_code=status_code,
            body=body,
        )
        self.order_id = order_id


class VerificationMismatch(BridgeError):
    """Redirect callback claims an outcome the processor does not confirm."""

    def __init__(self, order_id: str, code: str | None, message: str | None = None):
        super().__init__(f"Payment verification failed for order {order_id}: code={code}")
        self.order_id = order_id
        self.code = code
        self.message = message


class ApprovalPending(BridgeError):
    """Order was paid but its approval failed earlier and awaits operator replay."""

    def __init__(self, order_id: str, last_error: str | None = None):
        super().__init__(f"Approval for order {order_id} is pending operator replay")
        self.order_id = order_id
        self.last_error = last_error
