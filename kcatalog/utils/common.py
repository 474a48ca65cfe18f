#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional


class IndentFormatter(logging.Formatter):
    """
    Formatter honouring an optional ``indent`` field passed via ``extra``.

    Multiline messages are indented on every line. A ``location`` field
    (module path plus function name) is always populated so format strings
    can reference it.
    """

    def format(self, record):
        original_msg = record.msg
        indent_spaces = " " * getattr(record, "indent", 0)
        record.msg = indent_spaces + str(record.msg).replace("\n", "\n" + indent_spaces)

        location = f"{record.module}.{record.funcName}"
        record.location = f"{f'[{location}]':<48}"
        try:
            return super().format(record)
        finally:
            # shared between handlers
            record.msg = original_msg


def setup_logging(log_level: str = "warning", log_file_path: Optional[str] = None) -> None:
    """
    Set up global logging configuration for the application.

    This function configures:
    - Console output on stderr, leaving stdout to the catalog listing
    - Optional rotating file logging
    - Module/function location in every line (DEBUG only)
    - Suppression of noisy urllib3 logs

    Parameters:
        log_level (str): Logging level as string ("debug", "info", "warning", etc.).
                         If invalid, falls back to WARNING.
        log_file_path (str): Path of the log file. No file logging when empty.
    """
    log_level = getattr(logging, str(log_level).upper(), logging.WARNING)

    if log_level == logging.DEBUG:
        formatter = IndentFormatter("%(asctime)s %(levelname)-8s %(location)s %(message)s")
    else:
        formatter = IndentFormatter("%(levelname)s: %(message)s")

    logger = logging.getLogger()
    logger.setLevel(log_level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file_path:
        log_file_path = os.path.expanduser(log_file_path)
        log_dir = os.path.dirname(log_file_path)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file_path,
            maxBytes=(20 * 1024 * 1024) if log_level == logging.DEBUG else (5 * 1024 * 1024),
            backupCount=(20 if log_level == logging.DEBUG else 10),
        )
        file_handler.setFormatter(
            IndentFormatter("%(asctime)s %(levelname)-8s %(location)s %(message)s")
        )
        logger.addHandler(file_handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)
