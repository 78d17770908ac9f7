from functools import lru_cache
from pathlib import Path

PROMPTS_DIR = Path(__file__).resolve().parent.parent / "static" / "prompts"


@lru_cache(maxsize=None)
def _read_template(filename: str) -> str:
    return (PROMPTS_DIR / filename).read_text(encoding="utf-8").strip()


def load_prompt(filename: str, **kwargs) -> str:
    """Load a prompt template from ``app/static/prompts`` and fill in ``kwargs``."""
    text = _read_template(filename)
    return text.format(**kwargs) if kwargs else text
