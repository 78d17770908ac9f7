import os
import sys
import tempfile
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

# Settings() is built at import time and both LLM profiles are required
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RESULT_DIR", tempfile.mkdtemp(prefix="site-builder-result-"))
for prefix in ("GATHERING_REQUIREMENTS_LLM", "BUILDER_LLM"):
    os.environ.setdefault(f"{prefix}_URL", "http://llm.test")
    os.environ.setdefault(f"{prefix}_MODEL", "test-model")
    os.environ.setdefault(f"{prefix}_TIMEOUT", "30")
    os.environ.setdefault(f"{prefix}_TEMPERATURE", "0.7")
    os.environ.setdefault(f"{prefix}_MAX_TOKENS", "2048")
    os.environ.setdefault(f"{prefix}_STREAM", "false")
os.environ.setdefault("HUGGINGFACE_CHAT_URL", "")
os.environ.setdefault("HUGGINGFACE_API_KEY", "")
