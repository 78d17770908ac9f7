import re

OPENING_FENCE = re.compile(r"^```[A-Za-z]*\s*\n?")
CLOSING_FENCE = re.compile(r"\n?\s*```\s*$")
HTML_BLOCK = re.compile(r"```html\s*\n?(.*?)\n?```", re.DOTALL)


def _clean_once(text: str) -> str:
    cleaned = text.strip()
    cleaned = OPENING_FENCE.sub("", cleaned, count=1)
    cleaned = CLOSING_FENCE.sub("", cleaned, count=1)

    lower = cleaned.lower()
    start = lower.find("<!doctype")
    if start == -1:
        start = lower.find("<html")
    if start > 0:
        cleaned = cleaned[start:]

    end = cleaned.lower().rfind("</html>")
    if end != -1:
        cleaned = cleaned[: end + len("</html>")]

    return cleaned.strip()


def sanitize(raw: str) -> str:
    """
    Strip code fences and surrounding prose from a model-produced HTML document.

    Rules, in order: trim; drop a leading ```lang opener; drop a trailing ```
    closer; drop everything before the first <!doctype (or <html); drop
    everything after the last </html>; trim. The pass is repeated until the
    text stops changing, so nested fences are peeled too and the result is a
    fixed point. Never validates the markup and never raises.
    """
    current = raw or ""
    while True:
        cleaned = _clean_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned


def extract_html_block(text: str) -> str:
    """Content of the first ```html fenced block, or ``text`` untouched when there is none."""
    m = HTML_BLOCK.search(text or "")
    if m:
        return m.group(1).strip()
    return text
