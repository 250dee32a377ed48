#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""check_mysql_connections - Compare the connected threads of MySQL to its max_connections"""

import sys
from collections.abc import Sequence

import pymysql

from mysqlmon.argument_parsing import ConnectionArgs, create_default_argument_parser
from mysqlmon.connection import query_value
from mysqlmon.levels import check_levels, Levels, Metric, percent, render_percent
from mysqlmon.runner import active_check_main, CheckResult
from mysqlmon.state import State

NAME = "check_mysql_connections"


class Args(ConnectionArgs):
    warnnum: int
    critnum: int
    percentage: bool


def parse_arguments(argv: Sequence[str]) -> Args:
    parser = create_default_argument_parser(NAME, __doc__)
    parser.add_argument(
        "-w",
        "--warnnum",
        metavar="NUMBER",
        type=int,
        default=100,
        help="Number of connections upon which we'll issue a warning (Default: 100)",
    )
    parser.add_argument(
        "-c",
        "--critnum",
        metavar="NUMBER",
        type=int,
        default=128,
        help="Number of connections upon which we'll issue an alert (Default: 128)",
    )
    parser.add_argument(
        "-a",
        "--percentage",
        action="store_true",
        help="Use percentage of defined max connections instead of absolute number",
    )
    return Args.model_validate(vars(parser.parse_args(argv)))


def evaluate_connections(
    used_connections: int, max_connections: int, levels: Levels, use_percentage: bool
) -> CheckResult:
    """
    >>> evaluate_connections(95, 100, Levels(80, 100), False).state
    <State.WARN: 1>
    >>> evaluate_connections(150, 100, Levels(80, 95), True).state
    <State.CRIT: 2>
    """
    if use_percentage:
        value = percent(used_connections, max_connections)
        metric = Metric("connections_perc", value, levels, (0, 100))
        state, levelstext = check_levels(value, levels, render_func=render_percent)
        usage = f"{used_connections} out of {max_connections} ({render_percent(value)})"
    else:
        metric = Metric("connections", used_connections, levels, (0, max_connections))
        state, levelstext = check_levels(used_connections, levels)
        usage = f"{used_connections} out of {max_connections}"

    if state is State.OK:
        return CheckResult(state, f"Max connections is under limit in MySQL: {usage}", [metric])
    return CheckResult(state, f"Max connections reached in MySQL: {usage}{levelstext}", [metric])


def check_mysql_connections(connection: pymysql.connections.Connection, args: Args) -> CheckResult:
    max_connections = int(query_value(connection, "SHOW VARIABLES LIKE 'max_connections'"))
    used_connections = int(query_value(connection, "SHOW GLOBAL STATUS LIKE 'Threads_connected'"))
    return evaluate_connections(
        used_connections,
        max_connections,
        Levels(args.warnnum, args.critnum),
        args.percentage,
    )


def main(argv: Sequence[str] | None = None) -> int:
    return active_check_main(
        NAME,
        sys.argv[1:] if argv is None else argv,
        parse_arguments,
        check_mysql_connections,
    )


if __name__ == "__main__":
    sys.exit(main())
