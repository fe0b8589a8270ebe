"""Shaping and sanitizing link records for public read endpoints."""

from typing import Any, Dict, Mapping

from .models import PRIVATE_META_KEYS


def sanitize_link(record: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Strip submitter identity and room id from a link record.

    Works on a shallow copy; a nested ``meta`` mapping is copied as well,
    so the caller's record is never mutated. Room comments are kept.
    """
    out = dict(record)
    for key in PRIVATE_META_KEYS:
        out.pop(key, None)

    meta = out.get("meta")
    if isinstance(meta, Mapping):
        meta = dict(meta)
        for key in PRIVATE_META_KEYS:
            meta.pop(key, None)
        out["meta"] = meta
    return out


def to_public_record(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Flatten a feed row into ``{**meta, id, ts, count, domain}``.

    Row fields win over meta keys of the same name.
    """
    record: Dict[str, Any] = dict(row.get("meta") or {})
    record["id"] = row["id"]
    record["ts"] = row["ts"]
    record["count"] = row.get("count")
    if row.get("domain"):
        record["domain"] = row["domain"]
    if row.get("submitted_by"):
        record["submitted_by"] = row["submitted_by"]
    return record
