import logging
import sys


logger = logging.getLogger("extver")


def configure_logging(debug: bool):
    """
    Route the ``extver`` logger to stdout, plain messages, INFO or DEBUG.

    The handler follows the current ``sys.stdout`` so that progress and the
    run summary end up on the same stream.
    """
    log_level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(log_level)

    for handler in logger.handlers:
        if getattr(handler, "_extver_stdout", False):
            handler.setStream(sys.stdout)
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler._extver_stdout = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
