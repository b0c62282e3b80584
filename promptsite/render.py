from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

from promptsite.analyzer import PromptAnalysis, analyze, business_name

# Jinja environment that looks in the package's templates/ directory
_env = Environment(
    loader=FileSystemLoader(os.path.join(os.path.dirname(__file__), "templates")),
    autoescape=select_autoescape(["html", "xml"]),
    enable_async=False,
)

FALLBACK_TEMPLATE = "fallback.html"
TITLE_MAX_CHARS = 80

DEFAULT_COLOR_SCHEME = "from-blue-500 to-purple-600"
DEFAULT_ACCENT = "blue-500"


@dataclass(frozen=True)
class FallbackCopy:
    hero_headline: str = "Welcome to Our Professional Services"
    hero_subtext: str = "We provide excellent solutions tailored to your needs"
    cta_text: str = "Get Started"
    about_text: str = "We are dedicated to providing excellent service and products tailored to your needs."
    services: Tuple[Dict[str, str], ...] = field(
        default_factory=lambda: (
            {"name": "Service 1", "desc": "A comprehensive solution for all your needs with expert support and guidance."},
            {"name": "Service 2", "desc": "Innovative approaches to solving complex problems with cutting-edge technology."},
            {"name": "Service 3", "desc": "Customized solutions designed specifically for your unique requirements."},
        )
    )


def _restaurant_copy(name: str) -> FallbackCopy:
    return FallbackCopy(
        hero_headline=f"Welcome to {name}",
        hero_subtext="Experience exceptional dining with fresh ingredients and authentic flavors",
        cta_text="Make Reservation",
        about_text=(
            "We are passionate about creating memorable dining experiences with the finest "
            "ingredients and exceptional service."
        ),
        services=(
            {"name": "Fine Dining", "desc": "Exquisite cuisine prepared by our expert chefs using premium ingredients."},
            {"name": "Catering Services", "desc": "Professional catering for special events and corporate functions."},
            {"name": "Private Events", "desc": "Intimate dining experiences for special occasions and celebrations."},
        ),
    )


def _visa_copy(name: str) -> FallbackCopy:
    return FallbackCopy(
        hero_headline="Visa Services: Your Gateway to France & the Schengen Zone",
        hero_subtext="Expert Visa consultation services with a 95% approval rate",
        cta_text="Book Consultation",
        about_text=(
            "We are expert visa consultants with 15+ years of experience helping clients "
            "successfully obtain France and Schengen visas."
        ),
        services=(
            {"name": "Tourist Visa", "desc": "Short-stay tourist visas for leisure travel to France and Schengen countries."},
            {"name": "Business Visa", "desc": "Professional business visas for meetings, conferences, and commercial activities."},
            {"name": "Student Visa", "desc": "Educational visas for students pursuing studies in French institutions."},
        ),
    )


def _portfolio_copy(name: str) -> FallbackCopy:
    return FallbackCopy(
        hero_headline=f"{name} - Creative Professional",
        hero_subtext="Bringing creative visions to life with innovative design and development",
        cta_text="View Portfolio",
        about_text=(
            "I am a creative professional passionate about design and development, "
            "bringing unique visions to life."
        ),
        services=(
            {"name": "Web Design", "desc": "Modern, responsive website designs that engage and convert visitors."},
            {"name": "Brand Identity", "desc": "Complete branding solutions including logos, color schemes, and guidelines."},
            {"name": "Digital Marketing", "desc": "Strategic marketing campaigns to grow your online presence."},
        ),
    )


def _ecommerce_copy(name: str) -> FallbackCopy:
    return FallbackCopy(
        hero_headline=f"Shop {name}",
        hero_subtext="Discover premium products with fast shipping and excellent customer service",
        cta_text="Shop Now",
        about_text="We offer carefully curated products with a focus on quality, value, and customer satisfaction.",
        services=(
            {"name": "Premium Products", "desc": "High-quality items sourced from trusted suppliers worldwide."},
            {"name": "Fast Shipping", "desc": "Quick and reliable delivery to your doorstep with tracking."},
            {"name": "Customer Support", "desc": "Dedicated support team ready to assist with any questions."},
        ),
    )


CopyRule = Tuple[Callable[[PromptAnalysis, str], bool], Callable[[str], FallbackCopy]]

# First matching rule supplies the page copy; restaurant wins over visa.
COPY_RULES: Sequence[CopyRule] = (
    (lambda a, text: a.business_type == "restaurant", _restaurant_copy),
    (lambda a, text: "visa" in text, _visa_copy),
    (lambda a, text: a.business_type == "portfolio", _portfolio_copy),
    (lambda a, text: a.business_type == "ecommerce", _ecommerce_copy),
)

# (predicate, gradient, accent); first match wins.
COLOR_RULES: Sequence[Tuple[Callable[[PromptAnalysis, str], bool], str, str]] = (
    (lambda a, text: "france" in text or "visa" in text, "from-blue-600 to-red-500", "blue-600"),
    (lambda a, text: a.color_mood == "elegant and sophisticated", "from-gray-800 to-gray-900", "gray-800"),
    (lambda a, text: a.color_mood == "creative and vibrant", "from-purple-500 to-pink-500", "purple-500"),
)


def fallback_copy(prompt: str, analysis: PromptAnalysis) -> FallbackCopy:
    text = (prompt or "").lower()
    name = business_name(prompt)
    for matches, build in COPY_RULES:
        if matches(analysis, text):
            return build(name)
    return FallbackCopy()


def color_scheme(prompt: str, analysis: PromptAnalysis) -> Tuple[str, str]:
    text = (prompt or "").lower()
    for matches, gradient, accent in COLOR_RULES:
        if matches(analysis, text):
            return gradient, accent
    return DEFAULT_COLOR_SCHEME, DEFAULT_ACCENT


def _page_title(prompt: str) -> str:
    title = " ".join((prompt or "").split())
    if len(title) > TITLE_MAX_CHARS:
        title = title[: TITLE_MAX_CHARS - 3].rstrip() + "..."
    return title or "My Website"


def render_fallback_html(prompt: str, analysis: Optional[PromptAnalysis] = None) -> str:
    """Render the static fallback site for ``prompt``.

    A pure function of the prompt: the same prompt always renders the same bytes.
    """
    if analysis is None:
        analysis = analyze(prompt)
    copy = fallback_copy(prompt, analysis)
    gradient, accent = color_scheme(prompt, analysis)
    tpl = _env.get_template(FALLBACK_TEMPLATE)
    return tpl.render(
        title=_page_title(prompt),
        business_name=business_name(prompt),
        hero_headline=copy.hero_headline,
        hero_subtext=copy.hero_subtext,
        cta_text=copy.cta_text,
        about_text=copy.about_text,
        services=list(copy.services),
        color_scheme=gradient,
        accent_color=accent,
    )
