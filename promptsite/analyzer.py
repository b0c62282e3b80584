from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

Rule = Tuple[Tuple[str, ...], str]

DEFAULT_BUSINESS_TYPE = "business"
DEFAULT_INDUSTRY = "general"
DEFAULT_COLOR_MOOD = "professional"

# Order matters: the first rule with a matching keyword wins.
BUSINESS_TYPE_RULES: Sequence[Rule] = (
    (("restaurant", "cafe", "food"), "restaurant"),
    (("portfolio", "personal", "freelance"), "portfolio"),
    (("shop", "store", "ecommerce", "product"), "ecommerce"),
    (("agency", "marketing", "consulting"), "agency"),
    (("saas", "software", "app"), "saas"),
    (("blog", "news", "article"), "blog"),
)

INDUSTRY_RULES: Sequence[Rule] = (
    (("tech", "ai", "software"), "technology"),
    (("health", "medical", "wellness"), "healthcare"),
    (("finance", "bank", "investment"), "finance"),
    (("education", "school", "learning"), "education"),
)

# Every matching rule contributes a feature, in table order.
FEATURE_RULES: Sequence[Rule] = (
    (("contact",), "contact form"),
    (("booking", "appointment"), "booking system"),
    (("gallery", "photos"), "image gallery"),
    (("testimonial", "review"), "testimonials"),
    (("pricing", "plan"), "pricing table"),
    (("blog", "news"), "blog section"),
)

COLOR_MOOD_RULES: Sequence[Rule] = (
    (("creative", "artistic"), "creative and vibrant"),
    (("luxury", "premium"), "elegant and sophisticated"),
    (("fun", "playful"), "bright and energetic"),
    (("minimal", "clean"), "minimal and clean"),
)

_QUOTED_RE = re.compile(r'"([^"]+)"')


@dataclass(frozen=True)
class PromptAnalysis:
    business_type: str = DEFAULT_BUSINESS_TYPE
    industry: str = DEFAULT_INDUSTRY
    features: Tuple[str, ...] = field(default_factory=tuple)
    color_mood: str = DEFAULT_COLOR_MOOD

    def to_dict(self) -> Dict[str, object]:
        return {
            "businessType": self.business_type,
            "industry": self.industry,
            "features": list(self.features),
            "colorMood": self.color_mood,
        }


def _matches(text: str, keywords: Sequence[str]) -> bool:
    return any(k in text for k in keywords)


def first_match(text: str, rules: Sequence[Rule], default: str) -> str:
    for keywords, category in rules:
        if _matches(text, keywords):
            return category
    return default


def all_matches(text: str, rules: Sequence[Rule]) -> List[str]:
    return [category for keywords, category in rules if _matches(text, keywords)]


def analyze(prompt: str) -> PromptAnalysis:
    """Classify a free-text website request with plain substring rules.

    Total and deterministic: an empty or unrecognised prompt yields the
    business/general/professional defaults.
    """
    text = (prompt or "").lower()
    return PromptAnalysis(
        business_type=first_match(text, BUSINESS_TYPE_RULES, DEFAULT_BUSINESS_TYPE),
        industry=first_match(text, INDUSTRY_RULES, DEFAULT_INDUSTRY),
        features=tuple(all_matches(text, FEATURE_RULES)),
        color_mood=first_match(text, COLOR_MOOD_RULES, DEFAULT_COLOR_MOOD),
    )


def business_name(prompt: str) -> str:
    """First double-quoted phrase of the prompt, else its first three words."""
    text = (prompt or "").strip()
    m = _QUOTED_RE.search(text)
    if m and m.group(1).strip():
        return m.group(1).strip()
    if '"' in text:
        return "Your Business"
    words = text.split()
    return " ".join(words[:3]) if words else "Your Business"
