from __future__ import annotations

import re
from typing import Any, Dict, List

DOCTYPE = "<!DOCTYPE html>"
TAILWIND_CDN = "https://cdn.tailwindcss.com"
SECTION_TAGS = ("section", "header", "footer", "main", "article", "aside")

_FENCE_RE = re.compile(r"```(?:[A-Za-z0-9_-]*[ \t]*\r?\n)?")
_DOCTYPE_RE = re.compile(r"<!doctype\s+html", re.IGNORECASE)
_DOCUMENT_TAG_RE = re.compile(r"<\s*(?:html|body)\b", re.IGNORECASE)
_IMG_RE = re.compile(r"<img\b", re.IGNORECASE)
_SECTION_RE = re.compile(r"<(?:%s)\b" % "|".join(SECTION_TAGS), re.IGNORECASE)
_FORM_RE = re.compile(r"<form\b", re.IGNORECASE)
_HTML_TAG_RE = re.compile(r"<html\b[^>]*>", re.IGNORECASE)
_HEAD_TAG_RE = re.compile(r"<head\b[^>]*>", re.IGNORECASE)
_BODY_TAG_RE = re.compile(r"<body\b[^>]*>", re.IGNORECASE)
_TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_VIEWPORT_RE = re.compile(r"viewport[^>]*width=device-width", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences (```html ... ```) a model may wrap around its output."""
    return _FENCE_RE.sub("", text or "").strip()


def ensure_doctype(html: str) -> str:
    """Return ``html`` starting with a DOCTYPE declaration.

    Only a plain-text preamble (no markup at all) in front of a declaration is
    dropped. A declaration anywhere past the first tag is document content, so
    such text gets its own declaration prepended.
    """
    t = (html or "").strip()
    start = t.find("<")
    if start > 0 and _DOCTYPE_RE.match(t, start):
        t = t[start:]
    if _DOCTYPE_RE.match(t):
        return t
    return f"{DOCTYPE}\n{t}"


def looks_like_document(html: str) -> bool:
    return bool(_DOCUMENT_TAG_RE.search(html or ""))


def compute_stats(html: str) -> Dict[str, int]:
    text = html or ""
    return {
        "htmlLength": len(text.encode("utf-8")),
        "imageCount": len(_IMG_RE.findall(text)),
        "sectionsCount": len(_SECTION_RE.findall(text)),
    }


def validate_generated_html(html: str) -> Dict[str, Any]:
    """Structural checks on a generated document.

    Missing DOCTYPE/html/head/body are errors (``isValid`` False); missing
    title, viewport meta or Tailwind and fewer than three sections are warnings.
    """
    text = html or ""
    errors: List[str] = []
    warnings: List[str] = []
    result: Dict[str, Any] = {
        "hasDoctype": bool(_DOCTYPE_RE.match(text.lstrip())),
        "hasHtmlTag": bool(_HTML_TAG_RE.search(text)),
        "hasHeadTag": bool(_HEAD_TAG_RE.search(text)),
        "hasBodyTag": bool(_BODY_TAG_RE.search(text)),
        "hasTitleTag": bool(_TITLE_RE.search(text)),
        "hasViewportMeta": bool(_VIEWPORT_RE.search(text)),
        "hasTailwindCSS": "tailwind" in text.lower(),
        "sectionCount": len(_SECTION_RE.findall(text)),
        "imageCount": len(_IMG_RE.findall(text)),
        "formCount": len(_FORM_RE.findall(text)),
    }

    if not result["hasDoctype"]:
        errors.append("Missing DOCTYPE declaration")
    if not result["hasHtmlTag"]:
        errors.append("Missing HTML tag")
    if not result["hasHeadTag"]:
        errors.append("Missing HEAD section")
    if not result["hasBodyTag"]:
        errors.append("Missing BODY tag")
    if not result["hasTitleTag"]:
        warnings.append("Missing TITLE tag (impacts SEO)")
    if not result["hasViewportMeta"]:
        warnings.append("Missing viewport meta tag (impacts mobile responsiveness)")
    if not result["hasTailwindCSS"]:
        warnings.append("Tailwind CSS not detected")
    if result["sectionCount"] < 3:
        warnings.append("Less than 3 major sections detected - website might be too simple")

    result["isValid"] = not errors
    result["errors"] = errors
    result["warnings"] = warnings
    return result


def enhance_html(html: str) -> str:
    """Add DOCTYPE, viewport meta and the Tailwind CDN script when they are missing."""
    enhanced = ensure_doctype(html)
    head = _HEAD_TAG_RE.search(enhanced)
    if head and not _VIEWPORT_RE.search(enhanced):
        meta = '\n    <meta name="viewport" content="width=device-width, initial-scale=1.0">'
        enhanced = enhanced[: head.end()] + meta + enhanced[head.end():]
    if "tailwindcss.com" not in enhanced.lower():
        close = re.search(r"</head>", enhanced, re.IGNORECASE)
        if close and _HEAD_TAG_RE.search(enhanced):
            script = f'    <script src="{TAILWIND_CDN}"></script>\n'
            enhanced = enhanced[: close.start()] + script + enhanced[close.start():]
    return enhanced
