"""
Logging Configuration
Sets up the 'mlpviz' logger for the GUI and for command-line runs.

Training runs for a long time on a background thread, so progress is only
visible through the log. Warnings raised by numpy (overflow in a diverging
run, for example) are routed into the same handlers.
"""
import logging
import os
import sys
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("h5py", "PIL", "pyqtgraph")


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the 'mlpviz' namespace logger.

    Args:
        level: Logging level, as a number or a name such as "DEBUG".
        log_file: Optional path to also write the log to. Parent directories are created.

    Returns:
        The configured 'mlpviz' logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown logging level: {level}")

    logger = logging.getLogger("mlpviz")
    logger.setLevel(level)

    # Restarting the app in the same process must not duplicate output
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logging.captureWarnings(True)
    warnings_logger = logging.getLogger("py.warnings")
    warnings_logger.handlers = list(logger.handlers)
    warnings_logger.propagate = False

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger.info(f"Logging initialized at level {logging.getLevelName(level)}.")
    return logger
