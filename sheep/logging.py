from __future__ import annotations

import sys
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")
DEFAULT_LOG_LEVEL = "INFO"


def normalize_level(level: str | None) -> str:
    """Map a user supplied level name onto a loguru level, falling back to INFO."""
    if not level:
        return DEFAULT_LOG_LEVEL
    candidate = str(level).strip().upper()
    if candidate == "WARN":
        candidate = "WARNING"
    if candidate not in LOG_LEVELS:
        return DEFAULT_LOG_LEVEL
    return candidate


def setup_logging(
    level: str | None = None,
    *,
    log_file: Path | None = None,
) -> Logger:
    """
    Setup console and file logging at the same severity gate.

    Every record that passes the level threshold is written to both sinks so
    the console of the live system and the log file carry the same history.

    Args:
        level: Minimum level (TRACE, DEBUG, INFO, WARNING, ERROR)
        log_file: Log file path; the file sink is skipped when None
    """
    resolved_level = normalize_level(level)

    logger.remove()
    logger.configure(extra={"job_id": "-", "tags": [], "source": "sheep"})

    # SINK 1: Console (stderr)
    logger.add(
        sys.stderr,
        level=resolved_level,
        backtrace=False,
        diagnose=False,
        colorize=True,
        format=(
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[source]: <10}</cyan> | "
            "<blue>{extra[job_id]: <20}</blue> | "
            "{message}"
        ),
    )

    # SINK 2: Log file on the live system
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=resolved_level,
            backtrace=False,
            diagnose=False,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{extra[source]: <10} | "
                "{extra[job_id]: <20} | "
                "{message}"
            ),
        )

    return logger


def get_logger(
    *,
    job_id: str | None = None,
    tags: Iterable[str] | None = None,
    source: str | None = None,
) -> Logger:
    """
    Get a logger with bound context.

    Args:
        job_id: Job identifier for tracking operations
        tags: Tags for filtering (e.g., ["disk", "storage"])
        source: Source component (e.g., "disk", "image")

    Returns:
        Logger with bound context
    """
    extras: dict[str, object] = {}
    if job_id is not None:
        extras["job_id"] = job_id
    if tags is not None:
        extras["tags"] = list(tags)
    if source is not None:
        extras["source"] = source
    return logger.bind(**extras)


@contextmanager
def operation_context(operation: str, **details):
    """
    Context manager for tracking a provisioning step with automatic timing.

    Logs the step start, its completion with duration, or its failure with the
    error type before re-raising.

    Example:
        with operation_context("partition", device="/dev/sda") as log:
            log.debug("Writing GPT")
    """
    job_id = f"{operation}-{uuid.uuid4().hex[:8]}"

    with logger.contextualize(job_id=job_id, operation=operation, **details):
        start_time = time.time()
        log = get_logger(job_id=job_id, tags=[operation], source=operation)

        log.info(f"{operation.capitalize()} started")

        try:
            yield log
            duration = time.time() - start_time
            log.success(
                f"{operation.capitalize()} completed in {round(duration, 2)}s"
            )
        except Exception as e:
            duration = time.time() - start_time
            log.error(
                f"{operation.capitalize()} failed after {round(duration, 2)}s: "
                f"{type(e).__name__}: {e}"
            )
            raise


class LoggerFactory:
    """
    Factory for creating component loggers with automatic context.

    Each factory method returns a logger pre-configured with the source and
    tags of the component.
    """

    @staticmethod
    def for_config() -> Logger:
        """Logger for parameter resolution."""
        return get_logger(source="config", tags=["config"])

    @staticmethod
    def for_plan() -> Logger:
        """Logger for plan building and validation."""
        return get_logger(source="plan", tags=["plan", "config"])

    @staticmethod
    def for_disk() -> Logger:
        """Logger for partitioning, formatting and mounting."""
        return get_logger(source="disk", tags=["disk", "storage"])

    @staticmethod
    def for_image() -> Logger:
        """Logger for downloads and image installation."""
        return get_logger(source="image", tags=["image", "storage"])

    @staticmethod
    def for_bootloader() -> Logger:
        """Logger for bootloader installation and GRUB configuration."""
        return get_logger(source="bootloader", tags=["bootloader"])

    @staticmethod
    def for_system() -> Logger:
        """Logger for target system configuration and live system actions."""
        return get_logger(source="system", tags=["system"])

    @staticmethod
    def for_cloudinit() -> Logger:
        """Logger for cloud-init seed generation."""
        return get_logger(source="cloudinit", tags=["cloudinit"])

    @staticmethod
    def for_notify(job_id: str | None = None) -> Logger:
        """Logger for fleet service notification."""
        if job_id is None:
            job_id = f"notify-{uuid.uuid4().hex[:8]}"
        return get_logger(job_id=job_id, source="notify", tags=["notify", "network"])

    @staticmethod
    def for_pipeline() -> Logger:
        """Logger for the provisioning run as a whole."""
        return get_logger(source="pipeline", tags=["pipeline"])
