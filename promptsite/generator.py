from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from promptsite import llm_client
from promptsite.analyzer import PromptAnalysis, analyze
from promptsite.llm_parsing import (
    compute_stats,
    enhance_html,
    ensure_doctype,
    looks_like_document,
    strip_code_fences,
    validate_generated_html,
)
from promptsite.llm_prompts import build_site_prompt
from promptsite.render import render_fallback_html

log = logging.getLogger(__name__)

GENERATED_WITH_AI = "Gemini API"
GENERATED_WITH_FALLBACK = "Fallback Template"


@dataclass(frozen=True)
class GeneratedSite:
    html: str
    generated_with: str
    stats: Dict[str, int]
    analysis: PromptAnalysis


def clean_generated_html(text: str) -> Optional[str]:
    """Turn raw model text into a document, or None when it is not usable HTML."""
    html = strip_code_fences(text)
    if not html or not looks_like_document(html):
        return None
    return enhance_html(ensure_doctype(html))


def select_site_html(
    outcome: llm_client.Outcome, prompt: str, analysis: Optional[PromptAnalysis] = None
) -> Tuple[str, str]:
    """Decide between the model's document and the static fallback.

    Returns ``(html, generated_with)``. Only a ``Generated`` outcome whose text
    cleans up into an HTML document is used; everything else falls back.
    """
    if analysis is None:
        analysis = analyze(prompt)
    if isinstance(outcome, llm_client.Generated):
        html = clean_generated_html(outcome.text)
        if html is not None:
            report = validate_generated_html(html)
            if report["warnings"]:
                log.info("generated site warnings: %s", "; ".join(report["warnings"]))
            return html, GENERATED_WITH_AI
        log.warning("Gemini output is not an HTML document; using fallback template")
    elif isinstance(outcome, llm_client.Timeout):
        log.warning("Gemini timed out after %.0fs; using fallback template", outcome.seconds)
    elif isinstance(outcome, llm_client.Empty):
        log.warning("Gemini returned nothing usable (%s); using fallback template", outcome.reason)
    else:
        log.warning("Gemini call failed (%s); using fallback template", getattr(outcome, "message", outcome))
    return render_fallback_html(prompt, analysis), GENERATED_WITH_FALLBACK


def create_site(prompt: str) -> GeneratedSite:
    analysis = analyze(prompt)
    log.info(
        "generating site business_type=%s industry=%s features=%s",
        analysis.business_type,
        analysis.industry,
        ",".join(analysis.features) or "-",
    )
    try:
        outcome = llm_client.generate_site_html(build_site_prompt(prompt, analysis))
        html, generated_with = select_site_html(outcome, prompt, analysis)
    except Exception:
        log.exception("site generation failed; using fallback template")
        html, generated_with = render_fallback_html(prompt, analysis), GENERATED_WITH_FALLBACK

    stats = compute_stats(html)
    log.info(
        "generated site with=%s bytes=%d images=%d sections=%d",
        generated_with,
        stats["htmlLength"],
        stats["imageCount"],
        stats["sectionsCount"],
    )
    return GeneratedSite(html=html, generated_with=generated_with, stats=stats, analysis=analysis)
