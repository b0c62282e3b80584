import pytest
import requests
from fastapi.testclient import TestClient

from promptsite import editor, llm_client, store
from promptsite.editor import FALLBACK_IMAGE_URL, EditFailed, edit_site, verify_images
from promptsite.main import app

client = TestClient(app)

GOOD_IMG = "https://images.pexels.com/photos/111/pexels-photo-111.jpeg"
BAD_IMG = "https://images.pexels.com/photos/222/pexels-photo-222.jpeg"
EDITED = f'```html\n<html><body><img src="{GOOD_IMG}"><img src="{BAD_IMG}"><img src="{BAD_IMG}"></body></html>\n```'


class HeadResponse:
    def __init__(self, status_code):
        self.status_code = status_code


def _fake_head(url, timeout=None, allow_redirects=False):
    return HeadResponse(200 if url == GOOD_IMG else 404)


def test_verify_images_replaces_every_broken_link(monkeypatch):
    monkeypatch.setattr(requests, "head", _fake_head)
    html = f'<img src="{GOOD_IMG}"><img src="{BAD_IMG}"><div style="background:url({BAD_IMG})"></div>'
    out = verify_images(html)
    assert GOOD_IMG in out
    assert BAD_IMG not in out
    assert out.count(FALLBACK_IMAGE_URL) == 2


def test_unreachable_image_check_counts_as_missing():
    # conftest makes every HEAD request fail
    out = verify_images(f'<img src="{GOOD_IMG}">')
    assert out == f'<img src="{FALLBACK_IMAGE_URL}">'


def test_verify_images_ignores_other_hosts(monkeypatch):
    html = '<img src="https://example.com/a.jpeg">'
    assert verify_images(html) == html


def test_edit_site_cleans_and_verifies(monkeypatch):
    prompts = []

    def fake_edit(text):
        prompts.append(text)
        return llm_client.Generated(EDITED)

    monkeypatch.setattr(llm_client, "edit_site_html", fake_edit)
    monkeypatch.setattr(requests, "head", _fake_head)
    out = edit_site("<html><body>old</body></html>", "add two pictures")
    assert out.startswith("<!DOCTYPE html>")
    assert "```" not in out
    assert BAD_IMG not in out and GOOD_IMG in out
    assert 'Edit this HTML based on the following request: "add two pictures"' in prompts[0]
    assert "<html><body>old</body></html>" in prompts[0]


@pytest.mark.parametrize(
    "outcome,message",
    [
        (llm_client.Timeout(60.0), "Gemini API request timed out after 60 seconds"),
        (llm_client.Empty(), "Gemini API returned an empty response"),
        (llm_client.TransportError("HTTP 403: denied"), "Gemini API request failed: HTTP 403: denied"),
        (llm_client.Generated("```html\n```"), "Gemini API returned an empty response"),
    ],
)
def test_edit_failures_surface_without_fallback(monkeypatch, outcome, message):
    monkeypatch.setattr(llm_client, "edit_site_html", lambda text: outcome)
    with pytest.raises(EditFailed) as exc:
        edit_site("<html></html>", "make it blue")
    assert str(exc.value) == message


def test_edit_output_is_truncated(monkeypatch):
    monkeypatch.setattr(editor, "EDIT_MAX_CHARS", 40)
    monkeypatch.setattr(llm_client, "edit_site_html", lambda text: llm_client.Generated("<html>" + "x" * 100))
    out = edit_site("<html></html>", "longer")
    assert out == "<!DOCTYPE html>\n<html>" + "x" * 34


def test_edit_keeps_document_that_quotes_a_declaration(monkeypatch):
    doc = "<html><head><title>Guide</title></head><body><code>&lt;!DOCTYPE html&gt; or <!doctype html></code></body></html>"
    monkeypatch.setattr(llm_client, "edit_site_html", lambda text: llm_client.Generated(doc))
    assert edit_site("<html></html>", "add a code sample") == "<!DOCTYPE html>\n" + doc


def test_edit_persists_to_known_project(monkeypatch):
    s = store.get_store()
    s.save("p1", {"id": "p1", "content": "<html>old</html>", "prompt": "bakery", "createdAt": "2024-01-01T00:00:00.000Z"})
    monkeypatch.setattr(llm_client, "edit_site_html", lambda text: llm_client.Generated("<html><body><section>new</section></body></html>"))

    out = edit_site("<html>old</html>", "rewrite", project_id="p1", store=s)
    record = s.get("p1")
    assert record["content"] == out
    assert record["lastEditPrompt"] == "rewrite"
    assert record["prompt"] == "bakery"
    assert record["createdAt"] == "2024-01-01T00:00:00.000Z"
    assert record["stats"]["sectionsCount"] == 1
    assert [e.type for e in s.events()] == ["update", "create"]


def test_edit_for_unknown_project_is_not_persisted(monkeypatch):
    s = store.get_store()
    monkeypatch.setattr(llm_client, "edit_site_html", lambda text: llm_client.Generated("<html></html>"))
    edit_site("<html></html>", "x", project_id="ghost", store=s)
    assert not s.exists("ghost")
    assert s.events() == []


def test_ai_edit_endpoint_returns_raw_html(monkeypatch):
    monkeypatch.setattr(llm_client, "edit_site_html", lambda text: llm_client.Generated("<html><body>new</body></html>"))
    r = client.post("/api/aiEdit", json={"prompt": "shorter", "html": "<html><body>old</body></html>"})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert r.headers["Cache-Control"] == "no-store, max-age=0"
    assert r.text == "<!DOCTYPE html>\n<html><body>new</body></html>"


def test_ai_edit_endpoint_persists_with_id(monkeypatch):
    created = client.put("/api/projects", json={"id": "site-1", "completeHtml": "<html>old</html>"})
    assert created.status_code == 201
    monkeypatch.setattr(llm_client, "edit_site_html", lambda text: llm_client.Generated("<html>new</html>"))
    r = client.post("/api/aiEdit", json={"prompt": "p", "html": "<html>old</html>", "id": "site-1"})
    assert r.status_code == 200
    project = client.post("/api/projects", json={"id": "site-1"}).json()["project"]
    assert project["content"] == r.text
    assert project["lastEditPrompt"] == "p"


def test_ai_edit_endpoint_reports_model_failure():
    # no GEMINI_API_KEY in tests
    r = client.post("/api/aiEdit", json={"prompt": "shorter", "html": "<html></html>"})
    assert r.status_code == 500
    body = r.json()
    assert body["success"] is False
    assert body["error"]["code"] == "AI_EDIT_FAILED"
    assert body["error"]["message"].startswith("Gemini API request failed")


def test_ai_edit_endpoint_requires_prompt_and_html():
    r = client.post("/api/aiEdit", json={"prompt": "x"})
    assert r.status_code == 400
    body = r.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert [d["path"] for d in body["error"]["details"]] == ["html"]


def test_ai_edit_endpoint_reports_malformed_model_payload(monkeypatch):
    class BadShape:
        status_code = 200
        text = ""

        def json(self):
            return {"candidates": [{"content": "oops"}]}

    monkeypatch.setattr(llm_client, "GEMINI_API_KEY", "k")
    monkeypatch.setattr(requests, "post", lambda *a, **k: BadShape())
    r = client.post("/api/aiEdit", json={"prompt": "shorter", "html": "<html></html>"})
    assert r.status_code == 500
    body = r.json()
    assert body["error"]["code"] == "AI_EDIT_FAILED"
    assert body["error"]["message"] == "Gemini API returned an empty response"
