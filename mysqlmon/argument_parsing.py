#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Command line options shared by all MySQL checks and the metrics agent"""

from __future__ import annotations

import argparse
from pathlib import Path

from pydantic import BaseModel

from mysqlmon.connection import ConnectionConfig, resolve_connection_config


class ConnectionArgs(BaseModel):
    hostname: None | str
    user: None | str
    password: None | str
    port: int
    database: None | str
    ini: None | Path
    socket: None | str
    verbose: int
    debug: bool

    def connection_config(self) -> ConnectionConfig:
        return resolve_connection_config(
            ConnectionConfig(
                host=self.hostname,
                user=self.user,
                password=self.password,
                database=self.database,
                port=self.port,
                socket=self.socket,
            ),
            self.ini,
        )


def positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than zero: {value}")
    return number


def create_default_argument_parser(prog: str, description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description=description)

    parser.add_argument(
        "-H",
        "--hostname",
        metavar="HOST",
        default=None,
        help="Hostname to login to",
    )
    parser.add_argument("-u", "--user", metavar="USER", default=None, help="MySQL user")
    parser.add_argument(
        "-p",
        "--password",
        metavar="PASSWORD",
        default=None,
        help="MySQL password",
    )
    parser.add_argument(
        "-P",
        "--port",
        metavar="PORT",
        type=int,
        default=3306,
        help="Port to connect to (Default: 3306)",
    )
    parser.add_argument(
        "-d",
        "--database",
        metavar="DATABASE",
        default=None,
        help="Database schema to connect to",
    )
    parser.add_argument(
        "-i",
        "--ini",
        metavar="FILE",
        default=None,
        help="my.cnf style file. Values of its [client] section (host, user, password, "
        "database, port, socket) override the corresponding options.",
    )
    parser.add_argument("-s", "--socket", metavar="SOCKET", default=None, help="Socket to use")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Verbose mode, log to stderr (for even more output use -vv)",
    )
    parser.add_argument("--debug", action="store_true", help="Raise python exceptions.")

    return parser
