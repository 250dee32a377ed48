#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Upper level checking and performance data shared by all MySQL checks"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import NamedTuple

from mysqlmon.state import State


class Levels(NamedTuple):
    warn: float
    crit: float


class Metric(NamedTuple):
    name: str
    value: float
    levels: Levels | None = None
    boundaries: tuple[float | None, float | None] = (None, None)


def _render_number(x: float) -> str:
    """
    >>> _render_number(80)
    '80'
    >>> _render_number(80.0)
    '80'
    >>> _render_number(66.666666)
    '66.67'
    """
    if float(x).is_integer():
        return "%d" % x
    return "%.2f" % x


def render_percent(x: float) -> str:
    """
    >>> render_percent(150.0)
    '150%'
    """
    return "%s%%" % _render_number(x)


def percent(used: float, total: float) -> float:
    """
    >>> percent(95, 100)
    95.0
    >>> percent(150, 100)
    150.0
    """
    if total <= 0:
        raise ValueError("Cannot compute a percentage of a total of %s" % total)
    return used / total * 100


def check_levels(
    value: float,
    levels: Levels,
    *,
    strict_warn: bool = False,
    render_func: Callable[[float], str] = _render_number,
) -> tuple[State, str]:
    """Check `value` against upper levels, critical first

    The value is CRIT if it reaches the critical level, WARN if it reaches
    the warning level (or exceeds it, for `strict_warn`) and OK otherwise.
    The second element is the levels text for the plug-in output, empty for OK.

    >>> check_levels(95, Levels(80, 100))
    (<State.WARN: 1>, ' (warn/crit at 80/100)')
    >>> check_levels(900, Levels(900, 1800), strict_warn=True)
    (<State.OK: 0>, '')
    """
    levelstext = " (warn/crit at %s/%s)" % (render_func(levels.warn), render_func(levels.crit))
    if value >= levels.crit:
        return State.CRIT, levelstext
    if value > levels.warn or (not strict_warn and value == levels.warn):
        return State.WARN, levelstext
    return State.OK, ""


def render_perfdata(metrics: Sequence[Metric]) -> str:
    """Render metrics in the performance data format of the monitoring plug-in API

    >>> render_perfdata([Metric("connections", 95, Levels(80, 100), (0, 100))])
    'connections=95;80;100;0;100'
    >>> render_perfdata([Metric("threads_running", 3, Levels(20, 25), (0, None))])
    'threads_running=3;20;25;0;'
    """
    return " ".join(_render_metric(m) for m in metrics)


def _render_metric(metric: Metric) -> str:
    fields = [_render_number(metric.value)]
    fields += ["", ""] if metric.levels is None else [_render_number(l) for l in metric.levels]
    fields += ["" if b is None else _render_number(b) for b in metric.boundaries]
    return "%s=%s" % (metric.name, ";".join(fields))
