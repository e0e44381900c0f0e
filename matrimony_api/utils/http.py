import hashlib
import json
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder

__all__ = ["etag_matches", "weak_etag"]


def weak_etag(payload: Any) -> str:
    """Return a deterministic weak ETag for a JSON-serializable payload or string.
    Models, ObjectIds and other values FastAPI can encode are normalized first;
    dict/list payloads become a compact JSON string with sorted keys.
    """
    if isinstance(payload, (bytes, bytearray)):
        raw = bytes(payload).decode("utf-8", errors="ignore")
    elif isinstance(payload, str):
        raw = payload
    else:
        raw = json.dumps(jsonable_encoder(payload), separators=(",", ":"), sort_keys=True)
    return 'W/"' + hashlib.md5(raw.encode("utf-8")).hexdigest() + '"'


def etag_matches(if_none_match: Optional[str], etag: str) -> bool:
    if not if_none_match:
        return False
    candidates = [tag.strip() for tag in if_none_match.split(",")]
    return "*" in candidates or etag in candidates
