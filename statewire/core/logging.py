# statewire/core/logging.py
import logging
import sys
from datetime import datetime

# Module-level default log level, can be changed by set_default_level()
_default_level: int = logging.INFO

# Loggers created by the package; the formatter columns are sized to fit them
COMPONENTS = ('client', 'registry', 'codec', 'transport', 'config')

_COMPONENT_WIDTH = max(len(name) for name in COMPONENTS) + 3
_LEVEL_WIDTH = len('[CRITICAL]') + 1


def _tag(text: str, width: int) -> str:
    return f'[{text}]'.ljust(width)


class ColoredFormatter(logging.Formatter):
    """Colored tabular formatter for statewire loggers"""

    COLORS = {
        'RESET': '\033[0m',
        'LIGHT_BLUE': '\033[94m',
        'WHITE': '\033[97m',
        'GRAY': '\033[90m',
        'GREEN': '\033[92m',
        'YELLOW': '\033[93m',
        'RED': '\033[91m',
        'BRIGHT_RED': '\033[1;91m',
    }

    LEVEL_COLORS = {
        'DEBUG': COLORS['GRAY'],
        'INFO': COLORS['GREEN'],
        'WARNING': COLORS['YELLOW'],
        'ERROR': COLORS['RED'],
        'CRITICAL': COLORS['BRIGHT_RED'],
    }

    def format(self, record: logging.LogRecord) -> str:
        c = self.COLORS
        time_str = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')
        component = record.name.rpartition('.')[2]
        level_color = self.LEVEL_COLORS.get(record.levelname, c['WHITE'])

        formatted = (
            f"{c['LIGHT_BLUE']}[{time_str}]{c['RESET']} "
            f"{c['WHITE']}{_tag(component, _COMPONENT_WIDTH)}{c['RESET']}"
            f"{level_color}{_tag(record.levelname, _LEVEL_WIDTH)}{c['RESET']}"
            f"{c['WHITE']}{record.getMessage()}{c['RESET']}"
        )

        if record.exc_info:
            formatted += '\n' + self.formatException(record.exc_info)

        return formatted


def set_default_level(level: int) -> None:
    """Set the default log level for new loggers."""
    global _default_level
    _default_level = level


def get_logger(component_name: str) -> logging.Logger:
    """Get a logger for the specified component."""
    logger = logging.getLogger(f'statewire.{component_name}')

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ColoredFormatter())
        handler.setLevel(_default_level)
        logger.addHandler(handler)
        logger.setLevel(_default_level)

        # Prevent duplicate logs from parent loggers
        logger.propagate = False

    return logger
