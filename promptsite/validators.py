from __future__ import annotations
from typing import Any, Dict, List, Optional

BULK_OPERATIONS = ("tag", "archive")


def validate_project_id(value: Any) -> Optional[str]:
    """
    Return an error message for a bad project id, or None when it is usable.
    """
    if value is None or value == "":
        return "Project ID is required"
    if not isinstance(value, str) or not value.strip():
        return "Project ID must be a non-empty string"
    return None


def require_text(value: Any, name: str) -> Optional[str]:
    if value is None:
        return f"required property '{name}' is missing"
    if not isinstance(value, str) or not value.strip():
        return f"required property '{name}' must be a non-empty string"
    return None


def collect_bulk_errors(body: Dict[str, Any]) -> List[Dict[str, str]]:
    """
    Return a list of {"path": "...", "message": "..."} error dicts for a bulk
    PATCH body. Unknown operations are reported separately by the caller.
    """
    errors: List[Dict[str, str]] = []

    operation = body.get("operation")
    if not isinstance(operation, str) or not operation.strip():
        errors.append({"path": "operation", "message": "required property 'operation' is missing"})

    ids = body.get("projectIds")
    if not isinstance(ids, list) or not ids:
        errors.append({
            "path": "projectIds",
            "message": "required property 'projectIds' must be a non-empty array",
        })
        return errors  # can't go deeper safely

    for idx, pid in enumerate(ids):
        msg = validate_project_id(pid)
        if msg:
            errors.append({"path": f"projectIds[{idx}]", "message": msg})

    if operation == "tag":
        data = body.get("data")
        tags = data.get("tags") if isinstance(data, dict) else None
        if not isinstance(tags, list):
            errors.append({"path": "data.tags", "message": "Tags array is required for 'tag' operation"})

    return errors
