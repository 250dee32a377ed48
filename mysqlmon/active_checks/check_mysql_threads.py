#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""check_mysql_threads - Monitor the number of running MySQL threads"""

import sys
from collections.abc import Sequence

import pymysql

from mysqlmon.argument_parsing import ConnectionArgs, create_default_argument_parser
from mysqlmon.connection import query_value
from mysqlmon.levels import check_levels, Levels, Metric
from mysqlmon.runner import active_check_main, CheckResult
from mysqlmon.state import State

NAME = "check_mysql_threads"


class Args(ConnectionArgs):
    warnnum: int
    critnum: int


def parse_arguments(argv: Sequence[str]) -> Args:
    parser = create_default_argument_parser(NAME, __doc__)
    parser.add_argument(
        "-w",
        "--warnnum",
        metavar="NUMBER",
        type=int,
        default=20,
        help="Number of running threads upon which we'll issue a warning (Default: 20)",
    )
    parser.add_argument(
        "-c",
        "--critnum",
        metavar="NUMBER",
        type=int,
        default=25,
        help="Number of running threads upon which we'll issue an alert (Default: 25)",
    )
    return Args.model_validate(vars(parser.parse_args(argv)))


def evaluate_threads(threads_running: int, levels: Levels) -> CheckResult:
    state, levelstext = check_levels(threads_running, levels)
    metrics = [Metric("threads_running", threads_running, levels, (0, None))]
    if state is State.OK:
        return CheckResult(
            state, f"Currently running threads are under limit in MySQL: {threads_running}", metrics
        )
    return CheckResult(state, f"MySQL currently running threads: {threads_running}{levelstext}", metrics)


def check_mysql_threads(connection: pymysql.connections.Connection, args: Args) -> CheckResult:
    threads_running = int(query_value(connection, "SHOW GLOBAL STATUS LIKE 'Threads_running'"))
    return evaluate_threads(threads_running, Levels(args.warnnum, args.critnum))


def main(argv: Sequence[str] | None = None) -> int:
    return active_check_main(
        NAME,
        sys.argv[1:] if argv is None else argv,
        parse_arguments,
        check_mysql_threads,
    )


if __name__ == "__main__":
    sys.exit(main())
