"""Encode/decode the JSON text columns of the progress tables."""

import json
import logging
from typing import Any, List, Sequence

from pydantic import ValidationError

from app.schemas.progressSchema import RiskReason

logger = logging.getLogger(__name__)


def encode_risk_reasons(reasons: Sequence[RiskReason]) -> str:
    return json.dumps([reason.model_dump() for reason in reasons])


def encode_recommendations(recommendations: Sequence[str]) -> str:
    return json.dumps(list(recommendations))


def _load_list(raw: Any, label: str) -> List[Any]:
    if raw is None or raw == "":
        return []
    if isinstance(raw, list):
        return raw
    if not isinstance(raw, (str, bytes)):
        logger.warning(f"⚠️ Unexpected {label} payload type: {type(raw).__name__}")
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"⚠️ Could not parse {label}: {e}")
        return []
    if not isinstance(parsed, list):
        logger.warning(f"⚠️ Stored {label} is not a list")
        return []
    return parsed


def decode_risk_reasons(raw: Any) -> List[RiskReason]:
    """Decode stored risk reasons; malformed input yields an empty list."""
    items = _load_list(raw, "risk_reasons")
    try:
        return [RiskReason.model_validate(item) for item in items]
    except ValidationError as e:
        logger.warning(f"⚠️ Invalid risk reason entry: {e.error_count()} error(s)")
        return []


def decode_recommendations(raw: Any) -> List[str]:
    """Decode stored recommendations; malformed input yields an empty list."""
    items = _load_list(raw, "recommendations")
    if not all(isinstance(item, str) for item in items):
        logger.warning("⚠️ Stored recommendations contain non-string entries")
        return []
    return items
