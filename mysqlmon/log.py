#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

import logging
import sys
from typing import IO

# The checks talk to the monitoring core via stdout and the exit code. Log
# messages therefore always go to stderr and are silent unless -v is given:
#
# verbosity    Python
# ---------------------------
# 0            WARNING 30      <= default
# 1            VERBOSE 15
# 2            DEBUG   10

# We need an additional log level between INFO and DEBUG to show the
# resolved connection without dumping every statement.
VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("mysqlmon")


def get_formatter(format_str: str = "%(asctime)s [%(levelno)s] [%(name)s] %(message)s") -> logging.Formatter:
    """Returns a new message formater instance that uses the standard
    log format by default. You can also set another format if you like."""
    return logging.Formatter(format_str)


def clear_console_logging() -> None:
    logger.handlers[:] = []
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.WARNING)


# Set default logging handler to avoid "No handler found" warnings.
clear_console_logging()


def setup_console_logging(verbosity: int = 0, stream: IO[str] | None = None) -> None:
    """Write log messages to stderr (or `stream`), prefixed with the level name

    Nothing of this ends up on stdout, which is reserved for the check
    output or the metric samples.
    """
    setup_logging_handler(
        sys.stderr if stream is None else stream,
        get_formatter("%(levelname)s %(name)s: %(message)s"),
    )
    logger.setLevel(verbosity_to_log_level(verbosity))


def setup_logging_handler(stream: IO[str], formatter: logging.Formatter | None = None) -> None:
    """This method enables all log messages to be written to the given
    stream file object."""
    if formatter is None:
        formatter = get_formatter()

    handler = logging.StreamHandler(stream=stream)
    handler.setFormatter(formatter)

    del logger.handlers[:]  # Remove all previously existing handlers
    logger.addHandler(handler)


def verbosity_to_log_level(verbosity: int) -> int:
    """Values for "verbosity":

      0: enables WARNING and above
      1: enables VERBOSE and above
      2: enables DEBUG and above (ALL messages)

    >>> verbosity_to_log_level(5) == logging.DEBUG
    True
    """
    if verbosity < 0:
        raise ValueError(verbosity)
    if verbosity == 0:
        return logging.WARNING
    if verbosity == 1:
        return VERBOSE
    return logging.DEBUG
