import logging
import os
import sys

LOG_LEVEL = os.getenv("ROLLOVER_LOG_LEVEL", "INFO").upper()

if LOG_LEVEL not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
    print(f"Warning: Invalid ROLLOVER_LOG_LEVEL '{LOG_LEVEL}'. Defaulting to INFO.", file=sys.stderr)
    LOG_LEVEL = "INFO"


class ColoredFormatter(logging.Formatter):
    """Console formatter colouring the level and the logger name."""

    LOG_COLORS = {
        logging.DEBUG: '\x1b[40;1m',
        logging.INFO: '\x1b[34;1m',
        logging.WARNING: '\x1b[33;1m',
        logging.ERROR: '\x1b[31m',
        logging.CRITICAL: '\x1b[41m',
    }

    NAME_COLORS = {
        "Rollover": '\x1b[35m',
        "Pipeline": '\x1b[32m',
        "Docker": '\x1b[36m',
        "SSH": '\x1b[33m',
        "Config": '\x1b[34m',
        "API": '\x1b[37m',
    }

    RESET = '\x1b[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.LOG_COLORS.get(record.levelno, '')
        name_color = self.NAME_COLORS.get(record.name, self.RESET)

        asctime = self.formatTime(record, datefmt="%H:%M:%S")
        levelname = f"{color}{record.levelname:<8}{self.RESET}"
        name = f"{name_color}{record.name:<8}{self.RESET}"
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        return f"\x1b[30;1m{asctime}{self.RESET} {levelname} {name} {message}"


def setup_logger(name: str, level: str | None = None) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level or LOG_LEVEL)
    logger.propagate = False

    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(ColoredFormatter())
        logger.addHandler(console_handler)

    return logger


rollover_logger = setup_logger("Rollover")
pipeline_logger = setup_logger("Pipeline")
docker_logger = setup_logger("Docker")
ssh_logger = setup_logger("SSH")
config_logger = setup_logger("Config")
api_logger = setup_logger("API")


def set_level(level: str) -> None:
    """Apply a level to every logger of the package after startup."""
    level = level.upper()
    if level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        config_logger.warning(f"Invalid log level '{level}'. Keeping {LOG_LEVEL}.")
        return
    for logger in (rollover_logger, pipeline_logger, docker_logger, ssh_logger, config_logger, api_logger):
        logger.setLevel(level)
