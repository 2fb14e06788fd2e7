"""Console logging for the refresh job, the API and the CLI."""

import logging
import sys

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Chatty at DEBUG; only shown when the service itself runs at TRACE.
NOISY_LOGGERS = ("web3", "urllib3", "substrateinterface", "aiohttp.access")

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class CycleFormatter(logging.Formatter):
    """Formats records with a level color and any ``extra=`` context.

    ``log.error("Refresh cycle timed out", extra={"timeout_seconds": 300})``
    renders as ``... ERROR - Refresh cycle timed out [timeout_seconds=300]``.
    """

    LEVEL_COLORS = {
        "TRACE": "\033[90m",
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def __init__(self, fmt: str, datefmt: str | None = None, color: bool = True):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.color = color

    @staticmethod
    def context(record: logging.LogRecord) -> dict[str, object]:
        return {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if self.color and levelname in self.LEVEL_COLORS:
            record.levelname = (
                f"{self.LEVEL_COLORS[levelname]}{self.BOLD}{levelname}{self.RESET}"
            )
        try:
            line = super().format(record)
        finally:
            record.levelname = levelname

        context = self.context(record)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
            line = f"{line} [{pairs}]"
        return line


def setup_logging(log_level: str = "INFO") -> None:
    """Install one console handler on the root logger.

    ``log_level`` accepts the stdlib names plus ``TRACE``; unknown names fall
    back to INFO. Colors are used only when stdout is a terminal.
    """
    log_level = log_level.upper()
    level = TRACE if log_level == "TRACE" else getattr(logging, log_level, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        CycleFormatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            color=sys.stdout.isatty(),
        )
    )
    logging.basicConfig(level=level, handlers=[handler], force=True)

    noisy_level = TRACE if level == TRACE else max(level, logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
