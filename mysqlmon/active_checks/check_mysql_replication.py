#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""check_mysql_replication - Monitor the replication threads and lag of a MySQL replica

The connecting user needs the REPLICATION CLIENT (or SUPER) privilege to
run SHOW SLAVE STATUS.
"""

import logging
import sys
from collections.abc import Sequence

import pymysql

from mysqlmon.argument_parsing import ConnectionArgs, create_default_argument_parser
from mysqlmon.connection import query, Row
from mysqlmon.levels import check_levels, Levels, Metric
from mysqlmon.runner import active_check_main, CheckResult
from mysqlmon.state import State

NAME = "check_mysql_replication"

logger = logging.getLogger(__name__)

REPLICATION_STATUS_KEYS = (
    "Slave_IO_State",
    "Slave_IO_Running",
    "Slave_SQL_Running",
    "Last_IO_Error",
    "Last_SQL_Error",
    "Seconds_Behind_Master",
)


class Args(ConnectionArgs):
    warning: int
    critical: int


def parse_arguments(argv: Sequence[str]) -> Args:
    parser = create_default_argument_parser(NAME, __doc__)
    parser.add_argument(
        "-w",
        "--warning",
        metavar="SECONDS",
        type=int,
        default=900,
        help="Warning threshold for replication lag (Default: 900)",
    )
    parser.add_argument(
        "-c",
        "--critical",
        metavar="SECONDS",
        type=int,
        default=1800,
        help="Critical threshold for replication lag (Default: 1800)",
    )
    return Args.model_validate(vars(parser.parse_args(argv)))


def _threads_running(row: Row) -> bool:
    return all(row.get(key) == "Yes" for key in ("Slave_IO_Running", "Slave_SQL_Running"))


def evaluate_replication_row(row: Row, levels: Levels) -> CheckResult:
    if missing := [key for key in REPLICATION_STATUS_KEYS if key not in row]:
        logger.warning("Could not detect replication status, missing: %s", ", ".join(missing))

    if not _threads_running(row):
        return CheckResult(
            State.CRIT,
            "Slave not running! STATES: Slave_IO_Running=%s, Slave_SQL_Running=%s, LAST ERROR: %s"
            % (row.get("Slave_IO_Running"), row.get("Slave_SQL_Running"), row.get("Last_SQL_Error")),
        )

    # NULL while both threads run only happens right after a restart
    lag = int(row.get("Seconds_Behind_Master") or 0)
    state, levelstext = check_levels(lag, levels, strict_warn=True)
    metrics = [Metric("replication_lag", lag, levels, (0, None))]
    if state is State.OK:
        return CheckResult(state, f"Slave running, replication delayed by {lag} seconds", metrics)
    return CheckResult(state, f"Replication delayed by {lag} seconds{levelstext}", metrics)


def evaluate_replication(rows: Sequence[Row], levels: Levels) -> CheckResult:
    """Evaluate every replication channel, the worst one determines the state

    >>> evaluate_replication([], Levels(900, 1800)).summary
    'SHOW SLAVE STATUS returned no rows. This server is not a replica.'
    """
    if not rows:
        return CheckResult(State.OK, "SHOW SLAVE STATUS returned no rows. This server is not a replica.")

    if len(rows) == 1:
        return evaluate_replication_row(rows[0], levels)

    results = []
    for row in rows:
        result = evaluate_replication_row(row, levels)
        if channel := row.get("Channel_Name"):
            result = CheckResult(result.state, f"Channel {channel}: {result.summary}", result.metrics)
        results.append(result)

    lag_metrics = [m for r in results for m in r.metrics]
    return CheckResult(
        State.worst(*(r.state for r in results)),
        ", ".join(r.summary for r in results),
        # one lag metric per channel would collide, report the largest
        [max(lag_metrics, key=lambda m: m.value)] if lag_metrics else [],
    )


def check_mysql_replication(connection: pymysql.connections.Connection, args: Args) -> CheckResult:
    return evaluate_replication(
        query(connection, "SHOW SLAVE STATUS"),
        Levels(args.warning, args.critical),
    )


def main(argv: Sequence[str] | None = None) -> int:
    return active_check_main(
        NAME,
        sys.argv[1:] if argv is None else argv,
        parse_arguments,
        check_mysql_replication,
    )


if __name__ == "__main__":
    sys.exit(main())
