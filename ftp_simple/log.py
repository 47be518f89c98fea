"""
Logging setup for the FTP client.

The package logs through loguru's shared ``logger``. Applications call
``setup_logging`` once to install console and rotating file sinks.
"""

import sys
from dataclasses import dataclass
from pathlib import Path

from loguru import logger


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_directory: str = "logs"
    max_file_size: str = "10 MB"
    retention: str = "10 days"
    console_enabled: bool = True
    file_enabled: bool = False


def setup_logging(config: LoggingConfig) -> None:
    """
    Setup logging with the given configuration.

    Args:
        config: Logging configuration
    """
    # Remove default handler
    logger.remove()

    if config.console_enabled:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
                   "<level>{level: <8}</level> | "
                   "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
                   "<level>{message}</level>",
            level=config.level,
            colorize=True,
        )

    if config.file_enabled:
        log_dir = Path(config.log_directory)
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "ftp_client.log",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
                   "{name}:{function}:{line} - {message}",
            level=config.level,
            rotation=config.max_file_size,
            retention=config.retention,
            compression="zip",
            enqueue=True,
        )


def mask_command(command: str) -> str:
    """Hide the argument of a PASS command for logging"""
    if command[:4].upper() == "PASS":
        return "PASS ****"
    return command
