"""
Process-wide logging setup.

Stdout only; gunicorn / the container runtime capture it. Service modules
just call logging.getLogger(__name__).
"""
import logging
import sys

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
