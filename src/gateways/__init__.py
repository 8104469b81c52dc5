from .call_log import UpstreamCallLog
from .origin import OriginClient
from .processor import ProcessorClient
from .retry import RetryManager
from .signer import SignatureCodec

__all__ = [
    "OriginClient",
    "ProcessorClient",
    "RetryManager",
    "SignatureCodec",
    "UpstreamCallLog",
]
