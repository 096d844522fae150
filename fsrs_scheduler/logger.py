import logging
from logging.handlers import RotatingFileHandler


def setup_logging(level=logging.INFO, log_file=None):
    """Attach a formatted stream handler (and optionally a rotating file) to the package logger."""
    log_formatter = logging.Formatter('%(asctime)s:%(levelname)s:%(name)s: %(message)s')

    package_logger = logging.getLogger("fsrs_scheduler")
    package_logger.setLevel(level)

    # Stream Handler
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(log_formatter)
    stream_handler.setLevel(level)
    package_logger.addHandler(stream_handler)

    # File Handler
    if log_file:
        file_handler = RotatingFileHandler(log_file, maxBytes=5*1024*1024, backupCount=2)
        file_handler.setFormatter(log_formatter)
        file_handler.setLevel(level)
        package_logger.addHandler(file_handler)

    return package_logger
