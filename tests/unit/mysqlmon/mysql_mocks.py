#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Scripted stand-ins for pymysql connections using a DictCursor"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

Rows = Sequence[Mapping[str, Any]]


def _normalize(statement: str) -> str:
    return " ".join(statement.split())


class FakeCursor:
    def __init__(self, connection: FakeConnection) -> None:
        self._connection = connection
        self._rows: Rows = []

    def __enter__(self) -> FakeCursor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        pass

    def execute(self, statement: str) -> None:
        assert self._connection.open, "statement on a closed connection"
        self._connection.statements.append(_normalize(statement))
        response = self._connection.responses[_normalize(statement)]
        if isinstance(response, BaseException):
            raise response
        self._rows = response

    def fetchall(self) -> Rows:
        return self._rows


class FakeConnection:
    """Answers every statement with the rows (or the exception) given for it"""

    def __init__(
        self, responses: Mapping[str, Rows | BaseException], host: str = "localhost"
    ) -> None:
        self.responses = {_normalize(k): v for k, v in responses.items()}
        self.host = host
        self.statements: list[str] = []
        self.open = True

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def close(self) -> None:
        assert self.open, "connection closed twice"
        self.open = False


class FakeConnect:
    def __init__(self, connection: FakeConnection | BaseException) -> None:
        self._connection = connection
        self.calls: list[dict[str, Any]] = []

    @property
    def connection(self) -> FakeConnection:
        assert isinstance(self._connection, FakeConnection)
        return self._connection

    def __call__(self, **kwargs: Any) -> FakeConnection:
        self.calls.append(kwargs)
        if isinstance(self._connection, BaseException):
            raise self._connection
        return self._connection
