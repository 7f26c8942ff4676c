import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler

from colorama import Fore, Style, init

init(autoreset=True)

LOG_FORMAT = '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

class ColoredFormatter(logging.Formatter):
    """Custom formatter with color support for console output."""
    COLORS = {
        'DEBUG': Fore.WHITE + Style.DIM,
        'INFO': Fore.CYAN,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.RED + Style.BRIGHT
    }
    RESET = Style.RESET_ALL

    def format(self, record):
        # Colour a copy so file handlers sharing the record stay plain.
        record = logging.makeLogRecord(record.__dict__)
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"
        return super().format(record)

class LoggingConfigurator:
    """Configures system-wide logging with UTF-8 file output."""

    def __init__(self, config: dict):
        self.config = config.get('logging', {})
        self.log_level = getattr(logging, self.config.get('level', 'INFO').upper())
        self.log_dir = Path(self.config.get('log_dir', 'logs'))
        self.log_file = self.config.get('log_file', 'hyperband.log')

    def setup(self) -> None:
        """Setup root logger handlers."""
        root_logger = logging.getLogger()
        root_logger.setLevel(self.log_level)
        root_logger.handlers = []  # Clear existing

        if self.config.get('log_to_console', True):
            if sys.platform == 'win32':
                sys.stdout.reconfigure(encoding='utf-8')

            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(self.log_level)

            if self.config.get('colorful_console', True):
                formatter = ColoredFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)
            else:
                formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

            console_handler.setFormatter(formatter)
            root_logger.addHandler(console_handler)

        # File Handler (always UTF-8)
        if self.config.get('log_to_file', True):
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self._add_file_handler(root_logger, self.log_file)

    def _add_file_handler(self, logger: logging.Logger, filename: str):
        file_path = self.log_dir / filename
        handler = RotatingFileHandler(
            file_path,
            maxBytes=10*1024*1024,
            backupCount=5,
            encoding='utf-8'
        )
        handler.setLevel(logging.DEBUG)
        formatter = logging.Formatter('[%(asctime)s] [%(levelname)s] [%(name)s] [%(funcName)s] %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    def get_logger(self, name: str) -> logging.Logger:
        return logging.getLogger(name)
