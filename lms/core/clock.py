"""Current time as integer epoch seconds, the unit every model stores."""

from __future__ import annotations

import datetime


def epoch_now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())
