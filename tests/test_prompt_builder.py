import pytest

from promptsite.analyzer import analyze
from promptsite.llm_prompts import (
    SYSTEM_INSTRUCTION,
    WEBSITE_TEMPLATES,
    build_edit_prompt,
    build_site_prompt,
    guidance_key,
)


@pytest.mark.parametrize(
    "prompt,key",
    [
        ("visa consulting agency", "visa"),
        ("attorney office", "legal"),
        ("Legal advice blog", "legal"),
        ("pizza restaurant", "restaurant"),
        ("online store for shoes", "ecommerce"),
        ("medical clinic", "medical"),
        ("school for kids", "education"),
        ("plumber in Leeds", None),
    ],
)
def test_guidance_key_priority(prompt, key):
    assert guidance_key(analyze(prompt), prompt) == key


def test_every_template_has_features_and_colors():
    for key, template in WEBSITE_TEMPLATES.items():
        assert template["title"], key
        assert template["features"], key
        assert template["color_schemes"], key


def test_site_prompt_combines_all_parts():
    prompt = "Creative portfolio with a gallery and contact form"
    text = build_site_prompt(prompt, analyze(prompt))
    assert text.startswith(SYSTEM_INSTRUCTION)
    assert WEBSITE_TEMPLATES["portfolio"]["title"] in text
    assert "- Website type: portfolio" in text
    assert "contact form" in text and "image gallery" in text
    assert "Current design trends" in text
    assert text.endswith(f'User request: "{prompt}". Create a complete, beautiful website for this purpose.')


def test_site_prompt_without_template_still_has_analysis():
    text = build_site_prompt("plumber", analyze("plumber"))
    assert "- Website type: business" in text
    assert "Suggested color directions" not in text


def test_finance_prompts_get_trust_signals():
    text = build_site_prompt("investment bank", analyze("investment bank"))
    assert "Trust signals to include" in text


def test_edit_prompt_embeds_instruction_and_document():
    text = build_edit_prompt("make the header red", "<html>x</html>")
    assert '"make the header red"' in text
    assert "<html>x</html>" in text
    assert "Start with <!DOCTYPE html>" in text
