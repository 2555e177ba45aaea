import os
import logging
import sys
from datetime import datetime

LOG_DIR = 'logs'
LOG_FORMAT = '%(asctime)s [%(levelname)s] [%(name)s:%(lineno)d] %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(name, log_prefix='cptrash', console_level=logging.WARNING, log_dir=LOG_DIR):
    """
    Set up a logger with file and console handlers.
    File: logs/{prefix}_{timestamp}.log (DEBUG level)
    Console: stdout (WARNING by default so the progress line stays readable)

    Module loggers are children of `name` ("cptrash.engine", ...) and
    propagate to these handlers.
    """
    os.makedirs(log_dir, exist_ok=True)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    log_filename = os.path.join(log_dir, f"{log_prefix}_{timestamp}.log")

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Avoid duplicate handlers if already setup
    if not logger.handlers:
        try:
            file_handler = logging.FileHandler(log_filename, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
            logger.addHandler(file_handler)
        except OSError as e:
            print(f"Warning: Could not create log file {log_filename}: {e}")
            log_filename = None

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
        logger.addHandler(console_handler)

    return logger, log_filename


def format_browser_error(e):
    """
    Format a Playwright error for logging.
    Playwright messages carry a multi-line call log; only the first line is
    useful on the console.
    """
    message = str(e).strip()
    first_line = message.splitlines()[0] if message else ""
    error_msg = f"{type(e).__name__}: {first_line}"
    name = getattr(e, 'name', None)
    if name and name != type(e).__name__:
        error_msg += f" ({name})"
    return error_msg
