import re

import pytest

from promptsite.analyzer import analyze
from promptsite.render import color_scheme, fallback_copy, render_fallback_html

STRUCTURAL_RE = re.compile(r"<(?:section|header|footer|main|article|aside)\b", re.IGNORECASE)


def _hero(html: str) -> str:
    m = re.search(r'<section id="hero".*?</section>', html, re.DOTALL)
    assert m, "hero section missing"
    return m.group(0)


@pytest.mark.parametrize(
    "prompt",
    ["Visa consultancy for France", "visa help", "We handle VISA paperwork for travellers"],
)
def test_visa_prompts_get_visa_hero_and_blue_red_gradient(prompt):
    html = render_fallback_html(prompt)
    assert "Visa" in _hero(html)
    gradient, _ = color_scheme(prompt, analyze(prompt))
    assert "blue" in gradient and "red" in gradient
    assert "from-blue-600 to-red-500" in html


def test_restaurant_copy_takes_priority_over_visa():
    prompt = "restaurant for visa holders"
    copy = fallback_copy(prompt, analyze(prompt))
    assert copy.cta_text == "Make Reservation"


def test_france_alone_selects_blue_red_gradient():
    prompt = "Tourism office in France"
    assert color_scheme(prompt, analyze(prompt))[0] == "from-blue-600 to-red-500"


def test_mood_based_gradients():
    assert color_scheme("luxury spa", analyze("luxury spa"))[0] == "from-gray-800 to-gray-900"
    assert color_scheme("creative studio", analyze("creative studio"))[0] == "from-purple-500 to-pink-500"
    assert color_scheme("plumber", analyze("plumber"))[0] == "from-blue-500 to-purple-600"


def test_quoted_business_name_is_used_in_copy():
    html = render_fallback_html('Restaurant called "Chez Marie"')
    assert "Welcome to Chez Marie" in html


def test_fallback_is_a_pure_function_of_the_prompt():
    prompt = "Create a bakery shop"
    assert render_fallback_html(prompt) == render_fallback_html(prompt)


def test_fallback_document_shape():
    html = render_fallback_html("Create a bakery shop")
    assert html.lower().startswith("<!doctype html")
    assert "<title>Create a bakery shop</title>" in html
    assert len(STRUCTURAL_RE.findall(html)) >= 5
    for anchor in ('id="hero"', 'id="about"', 'id="services"', 'id="contact"'):
        assert anchor in html


def test_prompt_text_is_escaped():
    html = render_fallback_html("<script>alert(1)</script> shop")
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html


def test_empty_prompt_still_renders():
    html = render_fallback_html("")
    assert "<title>My Website</title>" in html
