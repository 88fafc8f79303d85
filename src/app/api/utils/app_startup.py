import logging
import sys
from pathlib import Path

from loguru import logger

from src.app.runtime.config.config_data import LoggingConfig
from src.app.runtime.context import get_config

SERVICE_NAME = "book-registry"

# Third-party loggers that are too chatty at the application level
_QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "uvicorn.access": logging.CRITICAL,
}

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "[<cyan>{extra[request_id]}</cyan>] | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Forward records from the standard ``logging`` module to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Access logs are written by the request middleware
        if record.name == "uvicorn.access":
            return

        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.opt(depth=2, exception=record.exc_info).bind(
            logger_name=record.name
        ).log(level, record.getMessage())


def _add_file_sink(cfg: LoggingConfig, verbose: bool) -> None:
    path = Path(cfg.file)
    path.parent.mkdir(parents=True, exist_ok=True)
    as_json = cfg.format == "json"
    logger.add(
        str(path),
        level=cfg.level,
        format="{message}" if as_json else _CONSOLE_FORMAT,
        serialize=as_json,
        rotation=f"{cfg.max_size_mb} MB",
        retention=cfg.backup_count,
        compression="zip",
        enqueue=True,
        backtrace=verbose,
        diagnose=verbose,
    )


def _route_stdlib_logging() -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in list(logging.root.manager.loggerDict):
        stdlog = logging.getLogger(name)
        stdlog.handlers = []
        stdlog.propagate = True

    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def configure_logging() -> None:
    """Install the registry's loguru sinks from the ``logging`` config section.

    Every record carries ``service`` and a ``request_id`` (``-`` outside of
    a request). The console sink is colourised text, or JSON lines when
    ``logging.format`` is ``json``; ``logging.file`` adds a rotating file sink.
    """
    config = get_config()
    cfg = config.logging
    verbose = config.app.environment != "production"

    logger.remove()
    logger.configure(extra={"request_id": "-", "service": SERVICE_NAME})

    if cfg.format == "json":
        logger.add(sys.stderr, level=cfg.level, serialize=True, backtrace=verbose, diagnose=verbose)
    else:
        logger.add(
            sys.stderr,
            level=cfg.level,
            format=_CONSOLE_FORMAT,
            colorize=True,
            backtrace=verbose,
            diagnose=verbose,
        )

    if cfg.file:
        _add_file_sink(cfg, verbose)

    _route_stdlib_logging()

    logger.bind(
        level=cfg.level, format=cfg.format, file=cfg.file, environment=config.app.environment
    ).info("Logging configured for {}", SERVICE_NAME)
