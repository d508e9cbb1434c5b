# -*- coding: utf-8 -*-
"""
Logging setup (loguru sinks) for scripts, the CLI and tests.
"""

import os
import pathlib
import sys

from loguru import logger

from .defaults import DEFAULT_LOGLEVEL


def start_client_log(
    log_to_file=True,
    log_to_stdout=False,
    log_path=None,
    clear_prev=True,
    log_level=DEFAULT_LOGLEVEL,
):
    if log_path is None or log_path == "":
        log_path = log_default_path_client()
    else:
        log_path = os.path.abspath(log_path)

    if clear_prev:
        clear_log(log_path)

    # first remove (default) stderr output
    logger.remove()

    if log_to_file:
        logger.add(log_path, level=log_level, enqueue=True, colorize=False)
    if log_to_stdout:
        logger.add(sys.stderr, level=log_level, enqueue=True, colorize=True)
    if log_to_file:
        logger.info("Client log started at {}", log_path)
    else:
        logger.info("Client log started.")


def log_default_path_client() -> str:
    return str(pathlib.Path.home().joinpath(".lasersweep/client.log"))


def clear_log(log_path: str):
    """
    Clear the logger file at the given path.

    Arguments
    ---------
    log_path : str
        The path to the logger file. Can get logger default path with
        log_default_path_client().
    """
    if os.path.exists(log_path):
        try:
            os.remove(log_path)
        except PermissionError:
            logger.error(
                f"Could not clear log file {log_path}. Permission denied. Continuing."
            )


def shutdown_client_log():
    try:
        logger.info("Closing down client log.")
        logger.remove()
    except Exception:
        logger.exception("Error shutting down client log - skipping.")
