#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""User-defined exceptions of the MySQL checks.

Errors raised by the database client itself are not wrapped: they are
reported as CRIT by the check runner. Everything below ends up as UNKNOWN.
"""

__all__ = [
    "MySQLMonConfigError",
    "MySQLMonException",
    "MySQLMonQueryError",
]


class MySQLMonException(Exception):
    """Base of the errors raised by mysqlmon itself, not by PyMySQL"""


class MySQLMonConfigError(MySQLMonException):
    """The credentials file could not be used"""


class MySQLMonQueryError(MySQLMonException):
    """A statement returned no rows or rows of an unexpected shape"""
