#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Connection handling of the MySQL checks

Credentials can be given on the command line or, to keep them out of the
process list, in a my.cnf style file:

  [client]
  user=monitoring
  password="abcd1234"

Every value found in the [client] section of that file overrides the
corresponding command line option. Options missing in the file keep their
command line value, options given nowhere are left to the client library.
"""

from __future__ import annotations

import configparser
import logging
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import pymysql
import pymysql.cursors
from pydantic import BaseModel

from mysqlmon.exceptions import MySQLMonConfigError, MySQLMonQueryError
from mysqlmon.log import VERBOSE

logger = logging.getLogger(__name__)

CONNECTION_FIELDS = ("host", "user", "password", "database", "port", "socket")

Row = Mapping[str, Any]


class ConnectionConfig(BaseModel):
    host: None | str = None
    user: None | str = None
    password: None | str = None
    database: None | str = None
    port: None | int = None
    socket: None | str = None

    def connect_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for pymysql.connect, omitting everything unset"""
        kwargs = {
            "host": self.host,
            "user": self.user,
            "password": self.password,
            "database": self.database,
            "port": self.port,
            "unix_socket": self.socket,
        }
        return {k: v for k, v in kwargs.items() if v is not None}

    def describe(self) -> str:
        """
        >>> ConnectionConfig(host="db01", user="sensu", password="secret").describe()
        "host='db01' user='sensu' password=*** database=None port=None socket=None"
        """
        return " ".join(
            f"{field}=***" if field == "password" and self.password else f"{field}={getattr(self, field)!r}"
            for field in CONNECTION_FIELDS
        )


def _unquote(value: str) -> str:
    """
    >>> _unquote('"abcd1234"')
    'abcd1234'
    >>> _unquote("'it''s'")
    "it''s"
    >>> _unquote('"')
    '"'
    """
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def load_client_section(ini_file: Path) -> dict[str, str]:
    """Read the [client] section of a my.cnf style file

    Keys without a value (like 'skip-ssl') are dropped, '!include' and
    '!includedir' directives are not followed. Like the MySQL client we
    ignore leading whitespace and comments after a value:

      password = secret   # monitoring

    reads as 'secret', while a '#' inside the value ('password="a#b"') is kept.
    """
    parser = configparser.ConfigParser(
        allow_no_value=True,
        interpolation=None,
        strict=False,
        comment_prefixes=("#", ";", "!"),
        inline_comment_prefixes=("#", ";"),
    )
    try:
        # indented lines would otherwise continue the previous value
        parser.read_string(
            "\n".join(line.lstrip() for line in ini_file.read_text(encoding="utf-8").splitlines()),
            source=str(ini_file),
        )
    except OSError as e:
        raise MySQLMonConfigError(f"Cannot read ini file {ini_file}: {e}") from e
    except configparser.Error as e:
        raise MySQLMonConfigError(f"Cannot parse ini file {ini_file}: {e}") from e

    if not parser.has_section("client"):
        logger.warning("No [client] section in %s", ini_file)
        return {}

    return {
        key: _unquote(value.strip())
        for key, value in parser.items("client")
        if value is not None
    }


def resolve_connection_config(
    command_line: ConnectionConfig, ini_file: None | Path = None
) -> ConnectionConfig:
    section = {} if ini_file is None else load_client_section(ini_file)
    config = ConnectionConfig.model_validate(
        {field: section.get(field) or getattr(command_line, field) for field in CONNECTION_FIELDS}
    )
    logger.log(VERBOSE, "Connection: %s", config.describe())
    return config


@contextmanager
def connect(config: ConnectionConfig) -> Iterator[pymysql.connections.Connection]:
    connection = pymysql.connect(cursorclass=pymysql.cursors.DictCursor, **config.connect_kwargs())
    try:
        yield connection
    finally:
        if connection.open:
            connection.close()
            logger.debug("Connection closed")


def query(connection: pymysql.connections.Connection, statement: str) -> Sequence[Row]:
    logger.debug("Executing: %s", " ".join(statement.split()))
    with connection.cursor() as cursor:
        cursor.execute(statement)
        rows = list(cursor.fetchall())
    logger.debug("Got %d row(s)", len(rows))
    return rows


def query_value(connection: pymysql.connections.Connection, statement: str) -> str:
    """Return the 'Value' column of the first row of a SHOW VARIABLES/STATUS statement"""
    rows = query(connection, statement)
    if not rows:
        raise MySQLMonQueryError(f"{statement} returned no rows")
    try:
        return rows[0]["Value"]
    except KeyError as e:
        raise MySQLMonQueryError(f"{statement} returned no 'Value' column") from e
