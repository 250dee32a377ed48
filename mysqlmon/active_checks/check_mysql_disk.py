#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""check_mysql_disk - Compare the size of all schemas to the size of the database disk"""

import logging
import sys
from collections.abc import Iterable, Sequence

import pymysql

from mysqlmon.argument_parsing import ConnectionArgs, create_default_argument_parser, positive_float
from mysqlmon.connection import query, Row
from mysqlmon.levels import check_levels, Levels, Metric, percent, render_percent
from mysqlmon.runner import active_check_main, CheckResult
from mysqlmon.state import State

NAME = "check_mysql_disk"

logger = logging.getLogger(__name__)

# Sizes are reported in GB, rounded to two decimals per schema
SCHEMA_SIZES_QUERY = """
    SELECT table_schema,
           COUNT(*) AS tables,
           ROUND(SUM(data_length + index_length) / (1024 * 1024 * 1024), 2) AS total_size
    FROM information_schema.TABLES
    GROUP BY table_schema
"""


class Args(ConnectionArgs):
    size: float
    warning: float
    critical: float


def parse_arguments(argv: Sequence[str]) -> Args:
    parser = create_default_argument_parser(NAME, __doc__)
    parser.add_argument(
        "--size",
        metavar="GB",
        type=positive_float,
        required=True,
        help="Size of the disk holding the databases in GB",
    )
    parser.add_argument(
        "-w",
        "--warning",
        metavar="PERCENT",
        type=float,
        default=85.0,
        help="Percentage of used disk space at which a warning will be generated (Default: 85)",
    )
    parser.add_argument(
        "-c",
        "--critical",
        metavar="PERCENT",
        type=float,
        default=95.0,
        help="Percentage of used disk space at which a critical will be generated (Default: 95)",
    )
    return Args.model_validate(vars(parser.parse_args(argv)))


def total_schema_size(rows: Iterable[Row]) -> float:
    """Sum up the per schema sizes, schemas without tables count as 0

    >>> total_schema_size([{"total_size": 1.5}, {"total_size": None}, {"total_size": "2.25"}])
    3.75
    """
    total = 0.0
    for row in rows:
        logger.debug(
            "Schema %s: %s table(s), %s GB", row.get("table_schema"), row.get("tables"), row["total_size"]
        )
        total += float(row["total_size"] or 0)
    return total


def evaluate_disk_usage(total_size: float, disk_size: float, levels: Levels) -> CheckResult:
    """
    >>> result = evaluate_disk_usage(90.0, 100.0, Levels(85, 95))
    >>> result.state
    <State.WARN: 1>
    >>> result.summary
    'Database size exceeds warning threshold: DB size: 90.00 GB, disk use: 90% (warn/crit at 85%/95%)'
    """
    usage = percent(total_size, disk_size)
    state, levelstext = check_levels(usage, levels, render_func=render_percent)
    diskstr = f"DB size: {total_size:.2f} GB, disk use: {render_percent(usage)}"
    metrics = [Metric("db_size_perc", usage, levels, (0, 100))]

    if state is State.CRIT:
        return CheckResult(state, f"Database size exceeds critical threshold: {diskstr}{levelstext}", metrics)
    if state is State.WARN:
        return CheckResult(state, f"Database size exceeds warning threshold: {diskstr}{levelstext}", metrics)
    return CheckResult(state, diskstr, metrics)


def check_mysql_disk(connection: pymysql.connections.Connection, args: Args) -> CheckResult:
    return evaluate_disk_usage(
        total_schema_size(query(connection, SCHEMA_SIZES_QUERY)),
        args.size,
        Levels(args.warning, args.critical),
    )


def main(argv: Sequence[str] | None = None) -> int:
    return active_check_main(
        NAME,
        sys.argv[1:] if argv is None else argv,
        parse_arguments,
        check_mysql_disk,
    )


if __name__ == "__main__":
    sys.exit(main())
