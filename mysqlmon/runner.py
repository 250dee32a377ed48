#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Execution frame of the MySQL checks

Every check opens exactly one connection, runs its statements and writes
one result. Errors of the database client are CRIT, everything else is
UNKNOWN. The connection is closed before anything is written.
"""

from __future__ import annotations

import logging
import sys
import traceback
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

import pymysql

from mysqlmon.argument_parsing import ConnectionArgs
from mysqlmon.connection import connect
from mysqlmon.levels import Metric, render_perfdata
from mysqlmon.log import setup_console_logging
from mysqlmon.state import short_state_name, State

logger = logging.getLogger(__name__)

_T = TypeVar("_T")
_TArgs = TypeVar("_TArgs", bound=ConnectionArgs)


@dataclass(frozen=True)
class CheckResult:
    state: State
    summary: str
    metrics: Sequence[Metric] = ()
    details: str = ""


def output_check_result(result: CheckResult) -> None:
    line = result.summary
    if result.metrics:
        line += " | " + render_perfdata(result.metrics)
    sys.stdout.write("%s\n" % line)
    if result.details:
        sys.stdout.write("%s\n" % result.details.rstrip("\n"))


def render_mysql_error(exc: pymysql.MySQLError) -> str:
    """
    >>> render_mysql_error(pymysql.err.OperationalError(1045, "Access denied for user 'x'@'localhost'"))
    "Error code: 1045 Error message: Access denied for user 'x'@'localhost'"
    >>> render_mysql_error(pymysql.err.InterfaceError("(0, '')"))
    "(0, '')"
    """
    if len(exc.args) == 2 and isinstance(exc.args[0], int):
        return "Error code: %d Error message: %s" % exc.args
    return str(exc)


def run_with_connection(
    name: str,
    args: ConnectionArgs,
    function: Callable[[pymysql.connections.Connection], _T],
) -> _T | CheckResult:
    """Call `function` with an open connection, or turn its failure into a CheckResult"""
    try:
        with connect(args.connection_config()) as connection:
            return function(connection)
    except pymysql.MySQLError as e:
        if args.debug:
            raise
        return CheckResult(State.CRIT, f"{name} failed: {render_mysql_error(e)}")
    except Exception as e:
        if args.debug:
            raise
        return CheckResult(
            State.UNKNOWN,
            f"{name} unknown error: {e}",
            details=traceback.format_exc(),
        )


def active_check_main(
    name: str,
    argv: Sequence[str],
    parse_arguments: Callable[[Sequence[str]], _TArgs],
    check: Callable[[pymysql.connections.Connection, _TArgs], CheckResult],
) -> int:
    args = parse_arguments(argv)
    setup_console_logging(args.verbose)

    result = run_with_connection(name, args, lambda connection: check(connection, args))
    logger.debug("Result: %s", short_state_name(result.state))

    output_check_result(result)
    return int(result.state)
