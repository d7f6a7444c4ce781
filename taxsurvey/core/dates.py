# taxsurvey/core/dates.py
from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)

_DMY = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")


def coerce_date(value: Any) -> Optional[date]:
    """
    Lenient date parsing for survey forms.

    Accepts DD/MM/YYYY, DD-MM-YYYY (1 or 2 digit day/month) and ISO-8601
    (date or datetime). Anything unparseable becomes None and is logged,
    never rejected.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        logger.warning("[dates] unsupported value type %s, coerced to null", type(value).__name__)
        return None

    raw = value.strip()
    if not raw:
        return None

    m = _DMY.match(raw)
    try:
        if m:
            day, month, year = (int(g) for g in m.groups())
            return date(year, month, day)
        if len(raw) == 10:
            return date.fromisoformat(raw)
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    except ValueError:
        logger.warning("[dates] invalid date %r coerced to null", raw)
        return None
