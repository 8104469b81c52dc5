import pytest

from src.bridge_server.server import BridgeServer
from src.gateway_stubs.origin import OriginGatewayStub
from src.gateway_stubs.processor import ProcessorGatewayStub
from src.gateways.call_log import UpstreamCallLog
from src.gateways.origin import OriginClient
from src.gateways.processor import ProcessorClient
from src.gateways.retry import RetryManager
from src.gateways.signer import SignatureCodec
from src.observability.alerting import AlertManager
from src.observability.metrics import MetricsCollector
from src.reconciliation.engine import ReconciliationEngine
from src.reconciliation.ledger import TransactionLedger
from src.reconciliation.replay import ApprovalReplayManager
from src.utils.factories import CallbackFactory, PaymentRequestFactory, WebhookFactory


INBOUND_SECRET = "test-origin-secret-for-hmac"
OUTBOUND_SECRET = "test-origin-outbound-secret"
PROCESSOR_KEY = "test-processor-key"
PROCESSOR_PASSPHRASE = "test-passp"
PROCESSOR_MASOF = "0010000000"
ORIGIN_API_KEY = "test-origin-api-key"
ORIGIN_MERCHANT_ID = "merchant-001"


@pytest.fixture
def inbound_secret():
    return INBOUND_SECRET


@pytest.fixture
def outbound_secret():
    return OUTBOUND_SECRET


@pytest.fixture
def signer():
    return SignatureCodec(INBOUND_SECRET)


@pytest.fixture
def retry_manager():
    return RetryManager()


@pytest.fixture
def call_log():
    return UpstreamCallLog()


@pytest.fixture
def processor_stub():
    server = ProcessorGatewayStub(
        key=PROCESSOR_KEY,
        passphrase=PROCESSOR_PASSPHRASE,
        merchant_code=PROCESSOR_MASOF,
    )
    server.start()
    yield server
    server.stop()


@pytest.fixture
def origin_stub():
    server = OriginGatewayStub(
        api_key=ORIGIN_API_KEY,
        merchant_id=ORIGIN_MERCHANT_ID,
        secret=OUTBOUND_SECRET,
    )
    server.start()
    yield server
    server.stop()


@pytest.fixture
def processor_client(processor_stub, call_log):
    return ProcessorClient(
        base_url=processor_stub.url,
        key=PROCESSOR_KEY,
        passphrase=PROCESSOR_PASSPHRASE,
        merchant_code=PROCESSOR_MASOF,
        retry_manager=RetryManager(max_retries=0),
        call_log=call_log,
        timeout_seconds=5,
    )


@pytest.fixture
def origin_client(origin_stub, call_log):
    return OriginClient(
        api_url=origin_stub.url,
        api_key=ORIGIN_API_KEY,
        merchant_id=ORIGIN_MERCHANT_ID,
        signer=SignatureCodec(OUTBOUND_SECRET),
        call_log=call_log,
        timeout_seconds=5,
    )


@pytest.fixture
def ledger():
    return TransactionLedger()


@pytest.fixture
def metrics():
    return MetricsCollector(window_seconds=300)


@pytest.fixture
def alert_manager(metrics):
    return AlertManager(metrics=metrics, threshold=0.0)


@pytest.fixture
def engine(signer, processor_client, origin_client, ledger, metrics, alert_manager):
    return ReconciliationEngine(
        signer=signer,
        processor=processor_client,
        origin=origin_client,
        ledger=ledger,
        metrics=metrics,
        alert_manager=alert_manager,
    )


@pytest.fixture
def bridge_server(engine):
    server = BridgeServer(engine)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def replay_manager(engine):
    return ApprovalReplayManager(engine)


@pytest.fixture
def payment_factory():
    return PaymentRequestFactory


@pytest.fixture
def webhook_factory():
    return WebhookFactory


@pytest.fixture
def callback_factory():
    return CallbackFactory
