"""
Centralized logging configuration for the impact engine
"""
import logging
import os
from datetime import datetime

LOG_LEVEL_ENV = 'IMPACT_ENGINE_LOG_LEVEL'


def _resolve_level(level: int) -> int:
    """Environment override wins over the caller's level"""
    override = os.environ.get(LOG_LEVEL_ENV)
    if not override:
        return level
    resolved = logging.getLevelName(override.upper())
    return resolved if isinstance(resolved, int) else level


def setup_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Create a configured logger instance.

    Args:
        name: Logger name (typically __name__ from calling module)
        level: Logging level (default INFO, overridable via IMPACT_ENGINE_LOG_LEVEL)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    level = _resolve_level(level)
    logger.setLevel(level)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Daily debug file, only when the host created data/logs
    log_dir = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'data', 'logs')
    if os.path.isdir(log_dir):
        file_handler = logging.FileHandler(
            os.path.join(log_dir, f'impact_engine_{datetime.now().strftime("%Y%m%d")}.log')
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


class LogContext:
    """Context manager for logging operation timing"""

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time = None
        self.duration = 0.0

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.info(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = (datetime.now() - self.start_time).total_seconds()
        if exc_type:
            self.logger.error(f"Failed: {self.operation} after {self.duration:.2f}s - {exc_val}")
        else:
            self.logger.info(f"Completed: {self.operation} in {self.duration:.2f}s")
        return False
