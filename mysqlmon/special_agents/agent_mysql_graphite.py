#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""agent_mysql_graphite - Write MySQL status counters in the Graphite plaintext format

Every known variable of SHOW GLOBAL STATUS, SHOW SLAVE STATUS and
SHOW GLOBAL VARIABLES is written as one line

  <scheme>.<scheme-append>.<category>.<metric> <value> <timestamp>

Replica metrics need the REPLICATION CLIENT (or SUPER) privilege. Without it
SHOW SLAVE STATUS fails and the whole run is CRIT; use --no-slave to
skip the replica metrics.
"""

from __future__ import annotations

import logging
import socket
import sys
import time
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any, Final, NamedTuple

import pymysql

from mysqlmon.argument_parsing import ConnectionArgs, create_default_argument_parser
from mysqlmon.connection import query, Row
from mysqlmon.log import setup_console_logging
from mysqlmon.runner import CheckResult, output_check_result, run_with_connection

NAME = "agent_mysql_graphite"

logger = logging.getLogger(__name__)

# Status/variable name -> metric name, per category.
# props to https://github.com/coredump/hoardd/blob/master/scripts-available/mysql.coffee
MYSQL_METRICS: Final[Mapping[str, Mapping[str, str]]] = {
    "general": {
        "Bytes_received": "rxBytes",
        "Bytes_sent": "txBytes",
        "Key_read_requests": "keyRead_requests",
        "Key_reads": "keyReads",
        "Key_write_requests": "keyWrite_requests",
        "Key_writes": "keyWrites",
        "Binlog_cache_use": "binlogCacheUse",
        "Binlog_cache_disk_use": "binlogCacheDiskUse",
        "Max_used_connections": "maxUsedConnections",
        "Aborted_clients": "abortedClients",
        "Aborted_connects": "abortedConnects",
        "Threads_connected": "threadsConnected",
        "Open_files": "openFiles",
        "Open_tables": "openTables",
        "Opened_tables": "openedTables",
        "Prepared_stmt_count": "preparedStmtCount",
        "Seconds_Behind_Master": "slaveLag",
        "Select_full_join": "fullJoins",
        "Select_full_range_join": "fullRangeJoins",
        "Select_range": "selectRange",
        "Select_range_check": "selectRange_check",
        "Select_scan": "selectScan",
        "Slow_queries": "slowQueries",
    },
    "querycache": {
        "Qcache_queries_in_cache": "queriesInCache",
        "Qcache_hits": "cacheHits",
        "Qcache_inserts": "inserts",
        "Qcache_not_cached": "notCached",
        "Qcache_lowmem_prunes": "lowMemPrunes",
    },
    "commands": {
        "Com_admin_commands": "admin_commands",
        "Com_begin": "begin",
        "Com_change_db": "change_db",
        "Com_commit": "commit",
        "Com_create_table": "create_table",
        "Com_drop_table": "drop_table",
        "Com_show_keys": "show_keys",
        "Com_delete": "delete",
        "Com_create_db": "create_db",
        "Com_grant": "grant",
        "Com_show_processlist": "show_processlist",
        "Com_flush": "flush",
        "Com_insert": "insert",
        "Com_purge": "purge",
        "Com_replace": "replace",
        "Com_rollback": "rollback",
        "Com_select": "select",
        "Com_set_option": "set_option",
        "Com_show_binlogs": "show_binlogs",
        "Com_show_databases": "show_databases",
        "Com_show_fields": "show_fields",
        "Com_show_status": "show_status",
        "Com_show_tables": "show_tables",
        "Com_show_variables": "show_variables",
        "Com_update": "update",
        "Com_drop_db": "drop_db",
        "Com_revoke": "revoke",
        "Com_drop_user": "drop_user",
        "Com_show_grants": "show_grants",
        "Com_lock_tables": "lock_tables",
        "Com_show_create_table": "show_create_table",
        "Com_unlock_tables": "unlock_tables",
        "Com_alter_table": "alter_table",
    },
    "counters": {
        "Handler_write": "handlerWrite",
        "Handler_update": "handlerUpdate",
        "Handler_delete": "handlerDelete",
        "Handler_read_first": "handlerRead_first",
        "Handler_read_key": "handlerRead_key",
        "Handler_read_next": "handlerRead_next",
        "Handler_read_prev": "handlerRead_prev",
        "Handler_read_rnd": "handlerRead_rnd",
        "Handler_read_rnd_next": "handlerRead_rnd_next",
        "Handler_commit": "handlerCommit",
        "Handler_rollback": "handlerRollback",
        "Handler_savepoint": "handlerSavepoint",
        "Handler_savepoint_rollback": "handlerSavepointRollback",
    },
    "innodb": {
        "Innodb_buffer_pool_pages_total": "bufferTotal_pages",
        "Innodb_buffer_pool_pages_free": "bufferFree_pages",
        "Innodb_buffer_pool_pages_dirty": "bufferDirty_pages",
        "Innodb_buffer_pool_pages_data": "bufferUsed_pages",
        "Innodb_page_size": "pageSize",
        "Innodb_pages_created": "pagesCreated",
        "Innodb_pages_read": "pagesRead",
        "Innodb_pages_written": "pagesWritten",
        "Innodb_row_lock_current_waits": "currentLockWaits",
        "Innodb_row_lock_waits": "lockWaitTimes",
        "Innodb_row_lock_time": "rowLockTime",
        "Innodb_data_reads": "fileReads",
        "Innodb_data_writes": "fileWrites",
        "Innodb_data_fsyncs": "fileFsyncs",
        "Innodb_log_writes": "logWrites",
        "Innodb_rows_updated": "rowsUpdated",
        "Innodb_rows_read": "rowsRead",
        "Innodb_rows_deleted": "rowsDeleted",
        "Innodb_rows_inserted": "rowsInserted",
    },
    "configuration": {
        "max_connections": "MaxConnections",
        "Max_prepared_stmt_count": "MaxPreparedStmtCount",
    },
}


class Args(ConnectionArgs):
    scheme: str
    scheme_append: None | str
    no_slave: bool


class Sample(NamedTuple):
    path: str
    value: Any


def parse_arguments(argv: Sequence[str]) -> Args:
    parser = create_default_argument_parser(NAME, __doc__)
    parser.add_argument(
        "-S",
        "--scheme",
        default=f"{socket.gethostname()}.mysql",
        help="Metric naming scheme, text to prepend to metric (Default: <hostname>.mysql)",
    )
    parser.add_argument(
        "-A",
        "--scheme-append",
        metavar="APPEND_STRING",
        default=None,
        help="Metric naming scheme addendum, placed right after the prepend to distinguish "
        "different targets (Default: the MySQL host)",
    )
    parser.add_argument(
        "-n",
        "--no-slave",
        action="store_true",
        help="Skip replica metrics, might be necessary due to missing permissions",
    )
    return Args.model_validate(vars(parser.parse_args(argv)))


def status_samples(prefix: str, rows: Iterable[Row]) -> Iterator[Sample]:
    """Map SHOW GLOBAL STATUS rows, names match exactly

    >>> list(status_samples("db.mysql.db01", [{"Variable_name": "Slow_queries", "Value": "3"}]))
    [Sample(path='db.mysql.db01.general.slowQueries', value='3')]
    """
    for row in rows:
        for category, var_mapping in MYSQL_METRICS.items():
            if (metric := var_mapping.get(row["Variable_name"])) is not None:
                yield Sample(f"{prefix}.{category}.{metric}", row["Value"])


def slave_samples(prefix: str, rows: Sequence[Row]) -> Iterator[Sample]:
    """Map the (single) SHOW SLAVE STATUS row to 'general' metrics

    Replication lag being NULL is bad, very bad, so it is reported as -1
    instead of disappearing.

    >>> list(slave_samples("p", [{"Slave_IO_Running": "No", "Seconds_Behind_Master": None}]))
    [Sample(path='p.general.slaveLag', value=-1)]
    """
    if not rows:
        return
    general = MYSQL_METRICS["general"]
    for key, value in rows[0].items():
        if key not in general:
            continue
        if key == "Seconds_Behind_Master" and value is None:
            value = -1
        yield Sample(f"{prefix}.general.{general[key]}", value)


def configuration_samples(prefix: str, rows: Iterable[Row]) -> Iterator[Sample]:
    """Map SHOW GLOBAL VARIABLES rows, names match case insensitively

    >>> list(configuration_samples("p", [{"Variable_name": "max_prepared_stmt_count", "Value": "16382"}]))
    [Sample(path='p.configuration.MaxPreparedStmtCount', value='16382')]
    """
    configuration = {
        name.casefold(): metric for name, metric in MYSQL_METRICS["configuration"].items()
    }
    for row in rows:
        if (metric := configuration.get(row["Variable_name"].casefold())) is not None:
            yield Sample(f"{prefix}.configuration.{metric}", row["Value"])


def collect_samples(
    connection: pymysql.connections.Connection, prefix: str, no_slave: bool
) -> list[Sample]:
    samples = list(status_samples(prefix, query(connection, "SHOW GLOBAL STATUS")))
    if not no_slave:
        samples.extend(slave_samples(prefix, query(connection, "SHOW SLAVE STATUS")))
    samples.extend(configuration_samples(prefix, query(connection, "SHOW GLOBAL VARIABLES")))
    logger.debug("Collected %d sample(s)", len(samples))
    return samples


def write_samples(samples: Iterable[Sample], timestamp: int) -> None:
    for sample in samples:
        sys.stdout.write(f"{sample.path} {sample.value} {timestamp}\n")


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_arguments(sys.argv[1:] if argv is None else argv)
    setup_console_logging(args.verbose)

    timestamp = int(time.time())
    outcome = run_with_connection(
        NAME,
        args,
        lambda connection: collect_samples(
            connection,
            f"{args.scheme}.{args.scheme_append or connection.host}",
            args.no_slave,
        ),
    )
    if isinstance(outcome, CheckResult):
        output_check_result(outcome)
        return int(outcome.state)

    write_samples(outcome, timestamp)
    return 0


if __name__ == "__main__":
    sys.exit(main())
