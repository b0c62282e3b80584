from __future__ import annotations

import io
import logging
import os
import uuid
import zipfile
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from promptsite.generator import GeneratedSite
from promptsite.llm_parsing import compute_stats
from promptsite.store import EVENT_TYPES, ProjectStore, utc_now_iso

log = logging.getLogger(__name__)

try:
    MAX_CONTENT_BYTES = int(os.getenv("MAX_CONTENT_BYTES", str(5 * 1024 * 1024)))
except ValueError:
    MAX_CONTENT_BYTES = 5 * 1024 * 1024

DATE_FIELDS = ("createdAt", "updatedAt")


def content_size(record: Dict[str, Any]) -> int:
    size = record.get("contentSize")
    if isinstance(size, int) and size > 0:
        return size
    content = record.get("content") or ""
    return len(content.encode("utf-8"))


def _parse_ts(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def new_project(site: GeneratedSite, prompt: str) -> Dict[str, Any]:
    """Record for a freshly generated site."""
    now = utc_now_iso()
    return {
        "id": str(uuid.uuid4()),
        "content": site.html,
        "prompt": prompt,
        "createdAt": now,
        "updatedAt": now,
        "generatedWith": site.generated_with,
        "stats": dict(site.stats),
    }


def upsert_project(store: ProjectStore, project_id: str, html: str) -> Tuple[Dict[str, Any], str, int]:
    """Save manual HTML under ``project_id``.

    Returns ``(record, operation, status_code)``: an existing record keeps its
    other fields and reports ``updated``/200, an absent id becomes a new
    record reporting ``created``/201. Oversized content is logged, not refused.
    """
    size = len(html.encode("utf-8"))
    if size > MAX_CONTENT_BYTES:
        log.warning(
            "project %s content size (%d bytes) exceeds recommended limit of %d bytes",
            project_id, size, MAX_CONTENT_BYTES,
        )
    now = utc_now_iso()
    existing = store.get(project_id)
    if existing is not None:
        record = dict(existing)
        record.update({
            "content": html,
            "updatedAt": now,
            "contentSize": size,
            "stats": compute_stats(html),
        })
        operation, status_code = "updated", 200
    else:
        record = {
            "id": project_id,
            "name": f"Project {project_id}",
            "content": html,
            "createdAt": now,
            "updatedAt": now,
            "contentSize": size,
            "version": 1,
            "stats": compute_stats(html),
        }
        operation, status_code = "created", 201
    stored = store.save(project_id, record)
    log.info("project %s %s (%.2fKB)", project_id, operation, size / 1024)
    return stored, operation, status_code


def _sort_key(record: Dict[str, Any], sort_by: str) -> Tuple[int, Any]:
    if sort_by == "contentSize":
        return (0, content_size(record))
    value = record.get(sort_by)
    if sort_by in DATE_FIELDS:
        parsed = _parse_ts(value)
        if parsed is not None:
            return (0, parsed.timestamp())
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value)
    return (1, str(value))


def _has_value(record: Dict[str, Any], sort_by: str) -> bool:
    if sort_by == "contentSize":
        return True
    return record.get(sort_by) not in (None, "", 0)


def query_projects(
    records: Iterable[Dict[str, Any]],
    search: str = "",
    sort_by: str = "createdAt",
    sort_order: str = "desc",
    offset: int = 0,
    limit: int = 100,
) -> Dict[str, Any]:
    """Search, sort and paginate project records.

    ``search`` is a case-insensitive substring matched against id, name and
    content. Records lacking the sort field go first for ascending order and
    last for descending order.
    """
    needle = (search or "").strip().lower()
    items = list(records)
    if needle:
        items = [
            r for r in items
            if any(needle in str(r.get(f) or "").lower() for f in ("id", "name", "content"))
        ]

    descending = sort_order != "asc"
    present = [r for r in items if _has_value(r, sort_by)]
    missing = [r for r in items if not _has_value(r, sort_by)]
    present.sort(key=lambda r: _sort_key(r, sort_by), reverse=descending)
    ordered = present + missing if descending else missing + present

    offset = max(0, offset)
    limit = max(0, limit)
    page = ordered[offset:offset + limit]
    return {
        "projects": page,
        "pagination": {
            "total": len(ordered),
            "filtered": len(page),
            "offset": offset,
            "limit": limit,
            "hasMore": offset + limit < len(ordered),
        },
        "filters": {
            "sortBy": sort_by,
            "sortOrder": "desc" if descending else "asc",
            "search": needle or None,
        },
    }


def _size_entry(record_id: str, size: int) -> Dict[str, Any]:
    return {"id": record_id, "sizeBytes": size, "sizeKB": round(size / 1024, 2)}


def project_stats(records: Iterable[Dict[str, Any]], now: Optional[datetime] = None) -> Dict[str, Any]:
    items = list(records)
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(hours=24)

    total_size = 0
    largest: Optional[Tuple[str, int]] = None
    smallest: Optional[Tuple[str, int]] = None
    total_updates = 0
    recent = 0
    for record in items:
        size = content_size(record)
        total_size += size
        rid = str(record.get("id", ""))
        if largest is None or size > largest[1]:
            largest = (rid, size)
        if smallest is None or size < smallest[1]:
            smallest = (rid, size)
        if record.get("updatedAt"):
            total_updates += 1
            updated = _parse_ts(record.get("updatedAt"))
            if updated is not None and updated >= cutoff:
                recent += 1

    count = len(items)
    largest = largest or ("", 0)
    smallest = smallest or ("", 0)
    return {
        "totalProjects": count,
        "totalContentSizeBytes": total_size,
        "totalContentSizeMB": round(total_size / (1024 * 1024), 2),
        "averageProjectSizeBytes": round(total_size / count) if count else 0,
        "largestProject": _size_entry(*largest),
        "smallestProject": _size_entry(*smallest),
        "updateStats": {
            "totalUpdates": total_updates,
            "projectsUpdatedLast24Hours": recent,
            "percentUpdatedLast24Hours": round(recent / count * 100, 1) if count else 0,
        },
    }


def activity_view(
    store: ProjectStore,
    limit: int = 50,
    project_id: Optional[str] = None,
    event_type: Optional[str] = None,
) -> Dict[str, Any]:
    """Most-recent-first event log; filters apply after the limit is taken."""
    events = [e.to_dict() for e in store.events(limit)]
    if project_id:
        events = [e for e in events if e["id"] == project_id]
    if event_type in EVENT_TYPES:
        events = [e for e in events if e["type"] == event_type]
    by_type = {t: sum(1 for e in events if e["type"] == t) for t in EVENT_TYPES}
    return {
        "events": events,
        "stats": {"total": len(events), "byType": by_type},
        "filters": {"projectId": project_id, "eventType": event_type, "limit": limit},
    }


def bulk_operation(
    store: ProjectStore, operation: str, project_ids: List[str], data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Run a bulk tag/archive request.

    Matching projects are reported as successful and the request is logged;
    stored records are left untouched.
    """
    results: Dict[str, Any] = {"successful": [], "failed": []}
    tags = (data or {}).get("tags") or []
    for pid in project_ids:
        if not store.exists(pid):
            results["failed"].append({"id": pid, "reason": "Project not found"})
            continue
        if operation == "tag":
            log.info("bulk tag %s on project %s (not applied)", ", ".join(map(str, tags)), pid)
        else:
            log.info("bulk archive on project %s (not applied)", pid)
        results["successful"].append(pid)
    return results


def export_zip(record: Dict[str, Any]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("index.html", record.get("content") or "")
    return buf.getvalue()
