import logging
import signal
import sys

from src.bridge_server.server import BridgeServer
from src.config import Settings, get_settings
from src.gateways.call_log import UpstreamCallLog
from src.gateways.origin import OriginClient
from src.gateways.processor import ProcessorClient
from src.gateways.retry import RetryManager
from src.gateways.signer import SignatureCodec
from src.observability.alerting import AlertManager
from src.observability.log_config import configure_logging
from src.observability.metrics import MetricsCollector
from src.reconciliation.engine import ReconciliationEngine
from src.reconciliation.ledger import TransactionLedger

logger = logging.getLogger(__name__)


def _log_alert(alert: dict) -> None:
    logger.critical("ALERT %s: %s", alert["type"], alert["message"])


def build_engine(settings: Settings) -> ReconciliationEngine:
    """Construct the one set of gateway collaborators used by this process."""
    call_log = UpstreamCallLog(max_calls=settings.call_log_size)
    processor = ProcessorClient(
        base_url=settings.processor_base_url,
        key=settings.processor_key,
        passphrase=settings.processor_passphrase,
        merchant_code=settings.processor_merchant_code,
        retry_manager=RetryManager(max_retries=settings.processor_max_retries),
        call_log=call_log,
        timeout_seconds=settings.processor_timeout,
        return_base_url=settings.public_url,
    )
    origin = OriginClient(
        api_url=settings.origin_api_url,
        api_key=settings.origin_api_key,
        merchant_id=settings.origin_merchant_id,
        signer=SignatureCodec(settings.outbound_secret),
        call_log=call_log,
        timeout_seconds=settings.origin_timeout,
    )
    metrics = MetricsCollector(window_seconds=settings.metrics_window_seconds)
    return ReconciliationEngine(
        signer=SignatureCodec(settings.origin_secret),
        processor=processor,
        origin=origin,
        ledger=TransactionLedger(),
        metrics=metrics,
        alert_manager=AlertManager(
            metrics, threshold=settings.alert_failure_threshold, callback=_log_alert,
        ),
    )


def build_server(settings: Settings) -> BridgeServer:
    return BridgeServer(
        build_engine(settings),
        host=settings.host,
        port=settings.port,
        production=settings.is_production,
    )


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    server = build_server(settings)

    def _terminate(signum, frame):
        logger.info("SIGTERM received. Shutting down gracefully...")
        sys.exit(0)

    signal.signal(signal.SIGTERM, _terminate)
    logger.info("Starting payment bridge in %s mode", settings.app_env)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    logger.info("Server closed")


if __name__ == "__main__":
    main()
