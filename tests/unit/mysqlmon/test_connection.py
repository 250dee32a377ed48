#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

from collections.abc import Callable
from pathlib import Path

import pymysql
import pymysql.cursors
import pytest

from tests.unit.mysqlmon.mysql_mocks import FakeConnect

from mysqlmon.connection import (
    connect,
    CONNECTION_FIELDS,
    ConnectionConfig,
    load_client_section,
    query,
    query_value,
    resolve_connection_config,
)
from mysqlmon.exceptions import MySQLMonConfigError, MySQLMonException, MySQLMonQueryError


@pytest.fixture(name="write_ini")
def fixture_write_ini(tmp_path: Path) -> Callable[[str], Path]:
    def write(content: str) -> Path:
        path = tmp_path / "my.cnf"
        path.write_text(content)
        return path

    return write


def test_load_client_section(write_ini: Callable[[str], Path]) -> None:
    ini = write_ini(
        "# monitoring credentials\n"
        "!includedir /etc/mysql/conf.d/\n"
        "[mysqld]\n"
        "user=mysql\n"
        "[client]\n"
        "user = sensu\n"
        'password="abcd1234"\n'
        "socket='/run/mysqld/mysqld.sock'\n"
        "skip-ssl\n"
    )
    assert load_client_section(ini) == {
        "user": "sensu",
        "password": "abcd1234",
        "socket": "/run/mysqld/mysqld.sock",
    }


def test_load_client_section_without_client_section(write_ini: Callable[[str], Path]) -> None:
    assert load_client_section(write_ini("[mysqld]\nport=3307\n")) == {}


def test_load_client_section_missing_file(tmp_path: Path) -> None:
    with pytest.raises(MySQLMonConfigError, match="Cannot read ini file"):
        load_client_section(tmp_path / "nonexisting.cnf")


def test_load_client_section_garbage(write_ini: Callable[[str], Path]) -> None:
    with pytest.raises(MySQLMonConfigError, match="Cannot parse ini file"):
        load_client_section(write_ini("user=sensu\n"))


def test_load_client_section_inline_comments(write_ini: Callable[[str], Path]) -> None:
    ini = write_ini(
        "[client]\n"
        "user = sensu ; monitoring only\n"
        "password = secret   # monitoring\n"
        'host="db#01"\n'
    )
    assert load_client_section(ini) == {"user": "sensu", "password": "secret", "host": "db#01"}


def test_load_client_section_indented_lines(write_ini: Callable[[str], Path]) -> None:
    ini = write_ini("[client]\n  user=sensu\n  password=x\n")
    assert load_client_section(ini) == {"user": "sensu", "password": "x"}


def test_config_errors_share_the_base_exception(tmp_path: Path) -> None:
    with pytest.raises(MySQLMonException):
        load_client_section(tmp_path / "nonexisting.cnf")


def test_resolve_file_value_wins_over_flag(write_ini: Callable[[str], Path]) -> None:
    ini = write_ini("[client]\nhost=db02\nuser=sensu\nport=3307\n")
    config = resolve_connection_config(
        ConnectionConfig(host="db01", user="root", password="flag-secret", port=3306),
        ini,
    )
    assert config == ConnectionConfig(
        host="db02",
        user="sensu",
        password="flag-secret",
        port=3307,
    )


FLAG_VALUES = ConnectionConfig(
    host="db01",
    user="root",
    password="flag-secret",
    database="flagdb",
    port=3306,
    socket="/run/mysqld/flag.sock",
)

FILE_VALUES = {
    "host": "db02",
    "user": "sensu",
    "password": "file-secret",
    "database": "filedb",
    "port": "3307",
    "socket": "/run/mysqld/file.sock",
}


@pytest.mark.parametrize("field", CONNECTION_FIELDS)
def test_resolve_single_file_value(write_ini: Callable[[str], Path], field: str) -> None:
    ini = write_ini(f"[client]\n{field}={FILE_VALUES[field]}\n")
    assert resolve_connection_config(FLAG_VALUES, ini) == ConnectionConfig.model_validate(
        {**FLAG_VALUES.model_dump(), field: FILE_VALUES[field]}
    )


def test_resolve_empty_file_value_keeps_flag(write_ini: Callable[[str], Path]) -> None:
    ini = write_ini("[client]\nuser=\npassword=file-secret\n")
    config = resolve_connection_config(ConnectionConfig(user="root"), ini)
    assert config.user == "root"
    assert config.password == "file-secret"


def test_resolve_without_ini_file() -> None:
    assert resolve_connection_config(ConnectionConfig(user="root", port=3306)) == ConnectionConfig(
        user="root", port=3306
    )


def test_resolve_neither_leaves_field_unset(write_ini: Callable[[str], Path]) -> None:
    config = resolve_connection_config(ConnectionConfig(), write_ini("[client]\nuser=sensu\n"))
    assert config.host is None
    assert config.database is None
    assert config.socket is None
    assert config.connect_kwargs() == {"user": "sensu"}


def test_connect_kwargs() -> None:
    assert ConnectionConfig(
        host="db01", user="sensu", password="", database="test", port=3306, socket="/tmp/mysql.sock"
    ).connect_kwargs() == {
        "host": "db01",
        "user": "sensu",
        "password": "",
        "database": "test",
        "port": 3306,
        "unix_socket": "/tmp/mysql.sock",
    }


def test_describe_hides_password() -> None:
    assert "secret" not in ConnectionConfig(password="secret").describe()


def test_connect_closes_connection(fake_mysql: Callable[..., FakeConnect]) -> None:
    fake_connect = fake_mysql({})
    with connect(ConnectionConfig(host="db01", port=3306)) as connection:
        assert connection.open
    assert not fake_connect.connection.open
    assert fake_connect.calls == [
        {"cursorclass": pymysql.cursors.DictCursor, "host": "db01", "port": 3306}
    ]


def test_connect_closes_connection_on_error(fake_mysql: Callable[..., FakeConnect]) -> None:
    fake_connect = fake_mysql({})
    with pytest.raises(RuntimeError):
        with connect(ConnectionConfig()):
            raise RuntimeError("boom")
    assert not fake_connect.connection.open


def test_query(fake_mysql: Callable[..., FakeConnect]) -> None:
    fake_connect = fake_mysql({"SHOW SLAVE STATUS": []})
    with connect(ConnectionConfig()) as connection:
        assert query(connection, "SHOW SLAVE STATUS") == []
    assert fake_connect.connection.statements == ["SHOW SLAVE STATUS"]


def test_query_value(fake_mysql: Callable[..., FakeConnect]) -> None:
    fake_mysql(
        {"SHOW VARIABLES LIKE 'max_connections'": [{"Variable_name": "max_connections", "Value": "151"}]}
    )
    with connect(ConnectionConfig()) as connection:
        assert query_value(connection, "SHOW VARIABLES LIKE 'max_connections'") == "151"


def test_query_value_no_rows(fake_mysql: Callable[..., FakeConnect]) -> None:
    fake_mysql({"SHOW GLOBAL STATUS LIKE 'Threads_running'": []})
    with connect(ConnectionConfig()) as connection:
        with pytest.raises(MySQLMonQueryError, match="returned no rows"):
            query_value(connection, "SHOW GLOBAL STATUS LIKE 'Threads_running'")


def test_query_propagates_mysql_errors(fake_mysql: Callable[..., FakeConnect]) -> None:
    fake_mysql({"SHOW SLAVE STATUS": pymysql.err.OperationalError(1227, "Access denied")})
    with connect(ConnectionConfig()) as connection:
        with pytest.raises(pymysql.MySQLError):
            query(connection, "SHOW SLAVE STATUS")
