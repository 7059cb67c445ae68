import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging"""
    root = logging.getLogger()
    root.setLevel(level.upper())

    # Remove existing handlers
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(console_handler)

    # Silence noisy libraries; requests are logged by our own middleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
