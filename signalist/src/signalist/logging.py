import logging
import sys

def configure_logging(level=logging.INFO, *, verbose: bool = False):
    """Send log records to stderr so stdout stays a clean JSON envelope."""
    if verbose:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if root_logger.handlers:
        root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # urllib3 logs every connection at DEBUG, including the token query string
    logging.getLogger("urllib3").setLevel(logging.WARNING)
