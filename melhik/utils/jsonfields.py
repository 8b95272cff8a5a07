# melhik/utils/jsonfields.py
from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

logger = logging.getLogger(__name__)


def encode_list(values: Optional[List[Any]]) -> Optional[str]:
    if values is None:
        return None
    return json.dumps(values, ensure_ascii=False)


def decode_list(raw: Optional[str], *, field: str = "value", row_id: Any = None) -> List[Any]:
    """
    JSON text column -> list. Empty/NULL is [].
    A row that does not hold a JSON list is logged and sent as [] so one bad
    row cannot break the whole feed.
    """
    if raw is None or str(raw).strip() == "":
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        logger.warning("Unreadable JSON in %s of row %s", field, row_id)
        return []
    if not isinstance(value, list):
        logger.warning("Expected a JSON list in %s of row %s, got %s", field, row_id, type(value).__name__)
        return []
    return value
