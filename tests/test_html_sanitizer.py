from app.services.html_sanitizer import extract_html_block, sanitize

DOC = "<!DOCTYPE html><html><body>x</body></html>"


def test_sanitize_strips_html_fence():
    assert sanitize("```html\n" + DOC + "\n```") == DOC


def test_sanitize_drops_prose_around_document():
    raw = "Here is the HTML:\n<!DOCTYPE html><html></html>\nThanks"
    assert sanitize(raw) == "<!DOCTYPE html><html></html>"


def test_sanitize_leaves_clean_document_untouched():
    assert sanitize(DOC) == DOC


def test_sanitize_falls_back_to_html_tag_without_doctype():
    assert sanitize("Sure!\n<html lang=\"ru\"><p>hi</p></html> bye") == "<html lang=\"ru\"><p>hi</p></html>"


def test_sanitize_is_case_insensitive():
    raw = "preamble <!doctype HTML><HTML></HTML> trailer"
    assert sanitize(raw) == "<!doctype HTML><HTML></HTML>"


def test_sanitize_keeps_text_without_html_markers():
    assert sanitize("```\njust text\n```") == "just text"
    assert sanitize("") == ""


def test_sanitize_is_idempotent():
    samples = [
        "```html\n```html\n" + DOC + "\n```\n```",
        "  ```\n" + DOC + "\n```  ",
        "text <html> no closing",
        "```js\nconsole.log(1)\n```",
        "a</html>b</html>c",
        "```",
        "\n\n",
    ]
    for raw in samples:
        once = sanitize(raw)
        assert sanitize(once) == once


def test_extract_html_block_returns_first_block():
    text = "Вот сайт:\n```html\n<p>one</p>\n```\nи ещё\n```html\n<p>two</p>\n```"
    assert extract_html_block(text) == "<p>one</p>"


def test_extract_html_block_without_block_returns_input():
    assert extract_html_block("no code here") == "no code here"
