"""
component_15_logging_config.py

Zentrales Logging-System für LPP
Bietet strukturiertes Logging mit verschiedenen Log-Levels und Formatierungen.

Features:
- Konsolen- und Datei-basiertes Logging
- Unterschiedliche Log-Levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- Strukturierte Formatierung mit Timestamps und Komponenten-Namen
- Performance-Tracking für die Ableitungskette
- Kontextuelle Logging-Informationen (extra={...})

Verwendung:
    from component_15_logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Fakt abgeleitet", extra={"fact_id": "D6", "rule": "Elimination"})
    logger.error("Ableitung abgebrochen", extra={"fact_id": "D8"})
"""

import logging
import logging.handlers
import sys
import traceback
from datetime import datetime
from pathlib import Path
from types import TracebackType
from typing import Any, Dict, Literal, MutableMapping, Optional, Tuple, Type

from common.constants import (
    CONSOLE_LOG_LEVEL_NAME,
    FILE_LOG_LEVEL_NAME,
    LOG_DIR_NAME,
    LOG_TO_FILE,
)

# Globale Logging-Konfiguration
LOG_DIR: Path = Path(LOG_DIR_NAME)

DEFAULT_LOG_FILE: Path = LOG_DIR / "lpp.log"
ERROR_LOG_FILE: Path = LOG_DIR / "lpp_errors.log"
PERFORMANCE_LOG_FILE: Path = LOG_DIR / "lpp_performance.log"

PERFORMANCE_LOGGER_NAME: str = "lpp.performance"

CONSOLE_LOG_LEVEL: int = logging.getLevelName(CONSOLE_LOG_LEVEL_NAME)
FILE_LOG_LEVEL: int = logging.getLevelName(FILE_LOG_LEVEL_NAME)


class LPPLogFormatter(logging.Formatter):
    """
    Benutzerdefinierter Formatter für strukturierte Log-Ausgaben.
    Hängt extra_info als "key=value | key=value" an, optional farbig.
    """

    COLORS: Dict[str, str] = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def __init__(self, use_colors: bool = False, include_extra: bool = True) -> None:
        self.use_colors: bool = use_colors
        self.include_extra: bool = include_extra

        # Format: [TIMESTAMP] [LEVEL] [COMPONENT] MESSAGE
        fmt = "[%(asctime)s] [%(levelname)-8s] [%(name)s] %(message)s"
        super().__init__(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        log_message = super().format(record)

        if self.include_extra and hasattr(record, "extra_info"):
            extra_str = " | ".join(f"{k}={v}" for k, v in record.extra_info.items())
            if extra_str:
                log_message += f" | {extra_str}"

        if self.use_colors:
            color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
            reset = self.COLORS["RESET"]
            log_message = f"{color}{log_message}{reset}"

        return log_message


class PerformanceLogger:
    """
    Kontext-Manager für Performance-Tracking kritischer Operationen.

    Verwendung:
        with PerformanceLogger(logger, "Ableitungskette", steps=17):
            engine.solve()
    """

    def __init__(
        self, logger: logging.Logger, operation_name: str, **context: Any
    ) -> None:
        self.logger: logging.Logger = logger
        self.operation_name: str = operation_name
        self.context: Dict[str, Any] = context
        self.start_time: Optional[datetime] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self) -> "PerformanceLogger":
        self.start_time = datetime.now()
        self.logger.debug(
            f"START: {self.operation_name}", extra={"extra_info": self.context}
        )
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> Literal[False]:
        assert (
            self.start_time is not None
        ), "PerformanceLogger wurde nicht korrekt initialisiert"
        self.duration_ms = (datetime.now() - self.start_time).total_seconds() * 1000

        if exc_type is None:
            self.logger.debug(
                f"END: {self.operation_name} (duration: {self.duration_ms:.2f}ms)",
                extra={
                    "extra_info": {**self.context, "duration_ms": self.duration_ms}
                },
            )

            perf_logger = logging.getLogger(PERFORMANCE_LOGGER_NAME)
            perf_logger.info(
                f"{self.operation_name}: {self.duration_ms:.2f}ms",
                extra={
                    "extra_info": {**self.context, "duration_ms": self.duration_ms}
                },
            )
        else:
            self.logger.error(
                f"FAILED: {self.operation_name} (duration: {self.duration_ms:.2f}ms)",
                extra={
                    "extra_info": {
                        **self.context,
                        "duration_ms": self.duration_ms,
                        "error": str(exc_val),
                    }
                },
            )

        # Exception wird weitergereicht
        return False


class StructuredLogger(logging.LoggerAdapter):
    """
    Erweiterter Logger, der strukturierte Extra-Informationen unterstützt.
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> Tuple[str, MutableMapping[str, Any]]:
        # 'extra' wird als 'extra_info' im LogRecord abgelegt
        extra = kwargs.get("extra", {})
        if extra:
            kwargs["extra"] = {"extra_info": extra}
        return msg, kwargs

    def log_exception(self, exc: Exception, message: str = "", **context: Any) -> None:
        """
        Loggt eine Exception mit vollständigem Traceback und Kontext.
        """
        tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

        self.error(
            f"{message}: {type(exc).__name__}: {str(exc)}\n{tb_str}", extra=context
        )


def _rotating_file_handler(
    path: Path, max_bytes: int, backup_count: int
) -> logging.handlers.RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )


def setup_logging(
    console_level: int = CONSOLE_LOG_LEVEL,
    file_level: int = FILE_LOG_LEVEL,
    log_file: Optional[Path] = None,
    enable_performance_logging: bool = True,
    log_to_file: bool = LOG_TO_FILE,
) -> None:
    """
    Konfiguriert das globale Logging-System für LPP.

    Args:
        console_level: Log-Level für Konsolen-Output
        file_level: Log-Level für Datei-Output
        log_file: Pfad zur Haupt-Log-Datei (Standard: logs/lpp.log)
        enable_performance_logging: Aktiviert separates Performance-Logging
        log_to_file: Ohne Datei-Handler nur auf die Konsole loggen
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Filter auf Handler-Ebene

    # Verhindert Duplikate bei mehrfachem Setup
    root_logger.handlers.clear()

    # === Konsolen-Handler ===
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(LPPLogFormatter(use_colors=True, include_extra=True))
    root_logger.addHandler(console_handler)

    file_path = log_file or DEFAULT_LOG_FILE

    if log_to_file:
        # === Haupt-Log-Datei (10 MB) ===
        file_handler = _rotating_file_handler(file_path, 10 * 1024 * 1024, 5)
        file_handler.setLevel(file_level)
        file_handler.setFormatter(
            LPPLogFormatter(use_colors=False, include_extra=True)
        )
        root_logger.addHandler(file_handler)

        # === Error-Only Log-Datei (5 MB) ===
        error_handler = _rotating_file_handler(ERROR_LOG_FILE, 5 * 1024 * 1024, 3)
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(
            LPPLogFormatter(use_colors=False, include_extra=True)
        )
        root_logger.addHandler(error_handler)

    # === Performance-Logger ===
    perf_logger = logging.getLogger(PERFORMANCE_LOGGER_NAME)
    perf_logger.handlers.clear()
    if enable_performance_logging and log_to_file:
        perf_logger.setLevel(logging.INFO)
        perf_logger.propagate = False

        perf_handler = _rotating_file_handler(
            PERFORMANCE_LOG_FILE, 5 * 1024 * 1024, 3
        )
        perf_handler.setFormatter(LPPLogFormatter(use_colors=False, include_extra=True))
        perf_logger.addHandler(perf_handler)
    else:
        perf_logger.propagate = enable_performance_logging

    logger = logging.getLogger("lpp.logging_config")
    logger.info(
        "Logging-System initialisiert",
        extra={
            "extra_info": {
                "console_level": logging.getLevelName(console_level),
                "file_level": logging.getLevelName(file_level),
                "log_file": str(file_path) if log_to_file else "-",
                "performance_logging": enable_performance_logging,
            }
        },
    )


def get_logger(name: str) -> StructuredLogger:
    """
    Erstellt einen strukturierten Logger für eine Komponente.

    Args:
        name: Name der Komponente (üblicherweise __name__)

    Returns:
        StructuredLogger-Instanz

    Beispiel:
        logger = get_logger(__name__)
        logger.info("Zustand geprüft", extra={"violated": 0})
    """
    base_logger = logging.getLogger(name)
    return StructuredLogger(base_logger, {})


# === Convenience-Funktionen ===


def log_component_start(
    logger: StructuredLogger, component_name: str, **context: Any
) -> None:
    """Loggt den Start einer Komponenten-Operation."""
    logger.info(f"START: {component_name}", extra=context)


def log_component_end(
    logger: StructuredLogger, component_name: str, **context: Any
) -> None:
    """Loggt das erfolgreiche Ende einer Komponenten-Operation."""
    logger.info(f"END: {component_name}", extra=context)


def log_component_error(
    logger: StructuredLogger, component_name: str, error: Exception, **context: Any
) -> None:
    """Loggt einen Fehler in einer Komponente mit vollem Traceback."""
    logger.log_exception(error, message=f"ERROR in {component_name}", **context)


# Automatische Initialisierung beim Import
# Kann durch expliziten setup_logging()-Aufruf überschrieben werden
if not logging.getLogger().handlers:
    setup_logging()
