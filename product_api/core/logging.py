import logging
from typing import Optional

import structlog
from structlog.processors import CallsiteParameter

from product_api.core.config import Settings
from product_api.core.log_sink import ElasticsearchLogSink


def setup_logging(settings: Settings, sink: Optional[ElasticsearchLogSink] = None):
    """
    Setup structured logging with flat, readable console output.
    When a sink is given, entries are also shipped to Elasticsearch.
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.CallsiteParameterAdder(
            [CallsiteParameter.PATHNAME, CallsiteParameter.FUNC_NAME]
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if sink is not None:
        processors.append(sink)
    processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # capture_logs in tests needs uncached loggers
        cache_logger_on_first_use=settings.environment != "test",
    )

    formatter = logging.Formatter(
        '%(asctime)s | %(name)s | %(levelname)s | %(message)s'
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    if not any(getattr(h, "_product_api", False) for h in root_logger.handlers):
        handler._product_api = True
        root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.log_level, logging.INFO))

    uvicorn_logger = logging.getLogger("uvicorn")
    uvicorn_logger.setLevel(getattr(logging, settings.log_level, logging.INFO))
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    # Quiet the Elasticsearch transport; its request logs would echo every sink write
    for logger_name in ("elastic_transport", "elastic_transport.transport", "elasticsearch"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    return structlog.get_logger()
