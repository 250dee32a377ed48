#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

from __future__ import annotations

import enum


class State(enum.IntEnum):
    """Monitoring states, valued as the exit codes of the monitoring plug-in API"""

    OK = 0
    WARN = 1
    CRIT = 2
    UNKNOWN = 3

    @classmethod
    def worst(cls, *states: State) -> State:
        """Return the 'worst' aggregation of all states

        The order of severity, or "badness", is

            OK -> WARN -> UNKNOWN -> CRIT

        That's why this function is just not quite `max`.

        >>> State.worst(State.OK, State.WARN)
        <State.WARN: 1>
        >>> State.worst(State.UNKNOWN, State.CRIT)
        <State.CRIT: 2>
        >>> State.worst()
        <State.OK: 0>
        """
        if cls.CRIT in states:
            return cls.CRIT
        return max(states, default=cls.OK)


def short_state_name(state: State) -> str:
    return {
        State.OK: "OK",
        State.WARN: "WARN",
        State.CRIT: "CRIT",
        State.UNKNOWN: "UNKN",
    }[state]
