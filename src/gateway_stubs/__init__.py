from .origin import OriginGatewayStub
from .processor import ProcessorGatewayStub

__all__ = [
    "OriginGatewayStub",
    "ProcessorGatewayStub",
]
