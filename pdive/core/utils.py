import json
import os
import logging
from logging.handlers import RotatingFileHandler

from rich.logging import RichHandler

DEFAULT_CONFIG = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "config", "settings.json")


def load_config(config_path=DEFAULT_CONFIG):
    """Loads configuration from JSON file."""
    try:
        if config_path and os.path.exists(config_path):
            with open(config_path, 'r') as f:
                data = json.load(f)
            if isinstance(data, dict):
                return data
            logging.getLogger("pdive.config").warning(f"Ignoring {config_path}: top level is not an object")
        return {}
    except (OSError, ValueError) as e:
        logging.getLogger("pdive.config").error(f"Config Load Error ({config_path}): {e}")
        return {}


def setup_logging(log_file="pdive.log", verbose=False, console=None):
    """
    Configures system-wide logging.

    The file handler always records the full trail. Component loggers only
    reach the terminal in verbose mode, through a RichHandler bound to the
    same console the DisplayManager prints on.
    """
    logger = logging.getLogger()
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    if log_file:
        file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        file_handler = RotatingFileHandler(log_file, maxBytes=10*1024*1024, backupCount=5)
        file_handler.setFormatter(file_formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    if verbose and console is not None:
        logger.addHandler(RichHandler(
            console=console,
            show_time=False,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        ))

    return logger


def save_json(data, filename):
    try:
        with open(filename, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=4, default=str)
        return True
    except (OSError, TypeError, ValueError) as e:
        logging.getLogger("pdive.report").error(f"JSON Save Error ({filename}): {e}")
        return False
