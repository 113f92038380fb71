"""Logging setup for the Wakeful backend."""

import logging

from wakeful.logging_config import setup_logging


def get_logger(name: str = "wakeful.api") -> logging.Logger:
    return logging.getLogger(name)


def configure(level: str = "INFO", debug: bool = False) -> None:
    """Configure the root logger from service settings; ``debug`` forces DEBUG."""
    setup_logging("DEBUG" if debug else level)
    # uvicorn's access log duplicates our request summaries at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
