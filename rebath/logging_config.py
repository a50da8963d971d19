"""
Centralized logging configuration: console output plus an optional
rotating log file.
"""
import logging
import logging.handlers
from pathlib import Path


def setup_logging(app):
    """
    Configure the root logger from LOG_LEVEL / LOG_FORMAT / LOG_FILE.

    Safe to call once per app instance; handlers installed by a previous
    call are replaced rather than stacked.
    """
    log_level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    log_format = app.config.get('LOG_FORMAT') or '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
    log_file = app.config.get('LOG_FILE')

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in list(root_logger.handlers):
        if getattr(handler, '_rebath_handler', False):
            root_logger.removeHandler(handler)

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler._rebath_handler = True
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        file_handler._rebath_handler = True
        root_logger.addHandler(file_handler)

    # Third-party noise
    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    app.logger.info(f"Logging initialized at {logging.getLevelName(log_level)} level")
    return root_logger
