import pytest

from promptsite import generator, llm_client
from promptsite.generator import (
    GENERATED_WITH_AI,
    GENERATED_WITH_FALLBACK,
    clean_generated_html,
    create_site,
    select_site_html,
)
from promptsite.render import render_fallback_html

GOOD_DOC = "```html\n<html><head><title>Bakery</title></head><body><section>Bread</section></body></html>\n```"


def test_generated_outcome_is_cleaned_and_enhanced():
    html, tag = select_site_html(llm_client.Generated(GOOD_DOC), "bakery")
    assert tag == GENERATED_WITH_AI
    assert html.startswith("<!DOCTYPE html>")
    assert "```" not in html
    assert "cdn.tailwindcss.com" in html


def test_declaration_quoted_in_body_keeps_whole_document():
    doc = (
        "<html><head><title>Docs</title></head><body><main>"
        "<pre>Every page starts with <!DOCTYPE html> by convention</pre>"
        "</main></body></html>"
    )
    html, tag = select_site_html(llm_client.Generated(doc), "docs site")
    assert tag == GENERATED_WITH_AI
    assert html.startswith("<!DOCTYPE html>\n<html>")
    assert "<title>Docs</title>" in html
    assert "<pre>Every page starts with <!DOCTYPE html> by convention</pre>" in html


@pytest.mark.parametrize(
    "outcome",
    [
        llm_client.Empty(),
        llm_client.Timeout(75.0),
        llm_client.TransportError("HTTP 500"),
        llm_client.Generated("I'm sorry, I can't build that."),
        llm_client.Generated("```html\n```"),
    ],
)
def test_unusable_outcomes_fall_back(outcome):
    html, tag = select_site_html(outcome, "Create a bakery shop")
    assert tag == GENERATED_WITH_FALLBACK
    assert html == render_fallback_html("Create a bakery shop")


def test_clean_generated_html_rejects_fragments():
    assert clean_generated_html("<div>just a fragment</div>") is None
    assert clean_generated_html("<body>ok</body>").startswith("<!DOCTYPE html>")


def test_create_site_without_key_uses_fallback():
    site = create_site("Create a bakery shop")
    assert site.generated_with == GENERATED_WITH_FALLBACK
    assert site.analysis.business_type == "ecommerce"
    assert site.stats["htmlLength"] == len(site.html.encode("utf-8"))
    assert site.stats["sectionsCount"] >= 5


def test_create_site_uses_model_output(monkeypatch):
    seen = {}

    def fake_generate(text):
        seen["text"] = text
        return llm_client.Generated(GOOD_DOC)

    monkeypatch.setattr(llm_client, "generate_site_html", fake_generate)
    site = create_site("Create a bakery shop")
    assert site.generated_with == GENERATED_WITH_AI
    assert "<title>Bakery</title>" in site.html
    assert 'User request: "Create a bakery shop"' in seen["text"]


def test_create_site_survives_exceptions(monkeypatch):
    def boom(text):
        raise RuntimeError("transport exploded")

    monkeypatch.setattr(llm_client, "generate_site_html", boom)
    site = create_site("visa agency")
    assert site.generated_with == GENERATED_WITH_FALLBACK
    assert "Visa" in site.html


@pytest.mark.parametrize("prompt", ["", "x", "Create a bakery shop", "Restaurant", "🍕 pizza"])
def test_every_document_starts_with_doctype(prompt, monkeypatch):
    assert create_site(prompt).html.lower().startswith("<!doctype html")
    monkeypatch.setattr(llm_client, "generate_site_html", lambda text: llm_client.Generated("<body>hi</body>"))
    assert create_site(prompt).html.lower().startswith("<!doctype html")


def test_fallback_creation_is_deterministic():
    assert create_site("Create a bakery shop").html == create_site("Create a bakery shop").html


def test_generator_tags_match_wire_values():
    assert generator.GENERATED_WITH_AI == "Gemini API"
    assert generator.GENERATED_WITH_FALLBACK == "Fallback Template"
