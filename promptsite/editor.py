from __future__ import annotations

import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

import requests

from promptsite import llm_client
from promptsite.llm_parsing import compute_stats, ensure_doctype, strip_code_fences
from promptsite.llm_prompts import build_edit_prompt
from promptsite.store import ProjectStore, utc_now_iso

log = logging.getLogger(__name__)

PEXELS_IMAGE_RE = re.compile(r"https://images\.pexels\.com/photos/\d+/pexels-photo-\d+\.jpeg")
FALLBACK_IMAGE_URL = "https://images.pexels.com/photos/1181244/pexels-photo-1181244.jpeg"

try:
    IMAGE_CHECK_TIMEOUT_SECS = float(os.getenv("IMAGE_CHECK_TIMEOUT_SECS", "2"))
except ValueError:
    IMAGE_CHECK_TIMEOUT_SECS = 2.0
try:
    IMAGE_CHECK_MAX_WORKERS = max(1, int(os.getenv("IMAGE_CHECK_MAX_WORKERS", "8")))
except ValueError:
    IMAGE_CHECK_MAX_WORKERS = 8
try:
    EDIT_MAX_CHARS = int(os.getenv("EDIT_MAX_CHARS", "500000"))
except ValueError:
    EDIT_MAX_CHARS = 500000


class EditFailed(Exception):
    """The model could not produce an edited document."""


def _image_exists(url: str) -> bool:
    try:
        resp = requests.head(url, timeout=IMAGE_CHECK_TIMEOUT_SECS, allow_redirects=True)
    except requests.RequestException as e:
        log.debug("image check failed url=%s err=%r", url, e)
        return False
    return resp.status_code < 400


def verify_images(html: str) -> str:
    """Replace hosted image links that do not resolve with a known-good placeholder.

    Checks run concurrently; an unreachable check counts as a missing image.
    """
    urls: List[str] = list(dict.fromkeys(PEXELS_IMAGE_RE.findall(html)))
    if not urls:
        return html
    workers = min(IMAGE_CHECK_MAX_WORKERS, len(urls))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        results: Dict[str, bool] = dict(zip(urls, executor.map(_image_exists, urls)))
    invalid = [u for u, ok in results.items() if not ok and u != FALLBACK_IMAGE_URL]
    for url in invalid:
        html = html.replace(url, FALLBACK_IMAGE_URL)
    if invalid:
        log.info("replaced %d of %d unreachable images", len(invalid), len(urls))
    return html


def _describe_failure(outcome: llm_client.Outcome) -> str:
    if isinstance(outcome, llm_client.Timeout):
        return f"Gemini API request timed out after {outcome.seconds:.0f} seconds"
    if isinstance(outcome, llm_client.Empty):
        return "Gemini API returned an empty response"
    return f"Gemini API request failed: {getattr(outcome, 'message', outcome)}"


def edit_site(
    existing_html: str,
    instruction: str,
    project_id: Optional[str] = None,
    store: Optional[ProjectStore] = None,
) -> str:
    """Apply a free-text edit instruction to a document through the model.

    Unlike creation there is no fallback: a failed model call raises
    ``EditFailed``. When ``project_id`` names a stored project the revised
    document is saved as an update.
    """
    outcome = llm_client.edit_site_html(build_edit_prompt(instruction, existing_html))
    if not isinstance(outcome, llm_client.Generated):
        raise EditFailed(_describe_failure(outcome))

    site = outcome.text
    if len(site) > EDIT_MAX_CHARS:
        log.warning("edited site truncated from %d to %d chars", len(site), EDIT_MAX_CHARS)
        site = site[:EDIT_MAX_CHARS]

    site = strip_code_fences(site)
    if not site:
        raise EditFailed("Gemini API returned an empty response")
    site = ensure_doctype(site)
    site = verify_images(site)

    if project_id and store is not None:
        existing = store.get(project_id)
        if existing is not None:
            existing.update(
                {
                    "content": site,
                    "updatedAt": utc_now_iso(),
                    "lastEditPrompt": instruction,
                    "stats": compute_stats(site),
                }
            )
            store.save(project_id, existing)
            log.info("saved AI edit for project %s (%d bytes)", project_id, len(site))
        else:
            log.info("AI edit for unknown project %s not persisted", project_id)
    return site
