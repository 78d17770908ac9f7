"""
Adapters for the two publication sidecars: the object-storage deploy service
(HTTP) and the repository push tool (JSON-RPC over a child process's stdio).
"""

import json
import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Optional

import requests

from app.core.errors import PublicationError

logger = logging.getLogger(__name__)

PUSH_TOOL_NAME = "push_file_to_github"
COMMIT_URL_MARKER = "Commit URL: "


@dataclass
class PublishResult:
    success: bool
    remote_path: str = ""
    error: Optional[str] = None


class ObjectStoragePublisher:
    def __init__(self, url: str, timeout: float = 60):
        self.url = url
        self.timeout = timeout

    def publish(self, filename: str, html_content: str) -> PublishResult:
        payload = {"htmlContent": html_content, "filename": filename}
        try:
            resp = requests.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Object storage unreachable at %s: %s", self.url, e)
            return PublishResult(success=False, error=f"Failed to connect to object storage: {e}")

        try:
            data = resp.json()
        except ValueError:
            return PublishResult(
                success=False,
                error=f"Failed to parse object storage response (HTTP {resp.status_code}): {resp.text[:200]}",
            )
        if not isinstance(data, dict):
            return PublishResult(success=False, error="Object storage response is not a JSON object")

        if resp.status_code != 200 or not data.get("success"):
            reason = data.get("error") or f"HTTP {resp.status_code}"
            logger.warning("Deployment of %s failed: %s", filename, reason)
            return PublishResult(success=False, error=f"Deployment failed: {reason}")

        details = data.get("data") or {}
        return PublishResult(success=True, remote_path=details.get("remotePath", ""))


def build_push_request(absolute_file_path: str, target_path: str, commit_message: str) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "tools/call",
        "params": {
            "name": PUSH_TOOL_NAME,
            "arguments": {
                "filePath": absolute_file_path,
                "targetPath": target_path,
                "commitMessage": commit_message,
            },
        },
    }


def parse_push_output(stdout: str, fallback_url: str) -> str:
    """Pull the commit URL out of the sidecar's stdout; the first ``{`` line is the reply."""
    line = next((l.strip() for l in stdout.splitlines() if l.strip().startswith("{")), None)
    if line is None:
        raise PublicationError(f"no JSON response found in push tool output: {stdout[:500]}")

    try:
        reply = json.loads(line)
    except ValueError as e:
        raise PublicationError(f"failed to parse push tool response: {e}, raw output: {line[:500]}") from e

    result = reply.get("result") if isinstance(reply, dict) else None
    if not isinstance(result, dict):
        raise PublicationError(f"push tool reply has no result: {line[:500]}")

    content = result.get("content") or []
    if result.get("isError") or not content:
        if content:
            raise PublicationError(f"push tool error: {content[0].get('text', '')}")
        raise PublicationError("unknown push tool error")

    text = content[0].get("text", "")
    for text_line in text.splitlines():
        if COMMIT_URL_MARKER in text_line:
            return text_line.split(COMMIT_URL_MARKER, 1)[1].strip()
    return fallback_url


class RepositoryPusher:
    def __init__(self, command: str, cwd: Optional[str] = None, timeout: float = 120, fallback_url: str = ""):
        self.command = shlex.split(command)
        self.cwd = cwd
        self.timeout = timeout
        self.fallback_url = fallback_url

    def push(self, absolute_file_path: str, target_path: str, commit_message: str) -> str:
        request = json.dumps(build_push_request(absolute_file_path, target_path, commit_message)) + "\n"
        try:
            proc = subprocess.run(
                self.command,
                input=request,
                capture_output=True,
                text=True,
                cwd=self.cwd,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise PublicationError(f"push tool timed out after {self.timeout}s") from e
        except OSError as e:
            raise PublicationError(f"failed to start push tool {self.command!r}: {e}") from e

        if proc.returncode != 0:
            raise PublicationError(f"push tool exited with {proc.returncode}, stderr: {proc.stderr.strip()}")

        url = parse_push_output(proc.stdout, self.fallback_url)
        logger.info("Pushed %s as %s: %s", absolute_file_path, target_path, url)
        return url
