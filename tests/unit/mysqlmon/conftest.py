#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping

import pytest

from tests.unit.mysqlmon.mysql_mocks import FakeConnect, FakeConnection, Rows

from mysqlmon.log import clear_console_logging


@pytest.fixture(name="fake_mysql")
def fixture_fake_mysql(
    monkeypatch: pytest.MonkeyPatch,
) -> Callable[..., FakeConnect]:
    """Patch pymysql.connect to hand out a FakeConnection answering `responses`"""

    def install(
        responses: Mapping[str, Rows | BaseException] | None = None,
        *,
        host: str = "localhost",
        connect_error: BaseException | None = None,
    ) -> FakeConnect:
        fake_connect = FakeConnect(
            connect_error if connect_error is not None else FakeConnection(responses or {}, host)
        )
        monkeypatch.setattr("pymysql.connect", fake_connect)
        return fake_connect

    return install


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    yield
    clear_console_logging()
