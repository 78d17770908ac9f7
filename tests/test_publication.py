import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest
import requests

from app.core.errors import PublicationError
from app.services.publication import ObjectStoragePublisher, RepositoryPusher, parse_push_output


def _response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = json.dumps(payload)
    resp.json.return_value = payload
    return resp


def _completed(stdout="", returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=["node", "index.js"], returncode=returncode, stdout=stdout, stderr=stderr)


def _reply(text, is_error=False):
    return json.dumps({"jsonrpc": "2.0", "id": 1, "result": {"content": [{"type": "text", "text": text}], "isError": is_error}})


def test_object_storage_publish_success():
    payload = {"success": True, "data": {"success": True, "message": "ok", "remotePath": "sites/a.html"}}
    publisher = ObjectStoragePublisher("http://storage.test/api/deploy/html", timeout=5)
    with patch("app.services.publication.requests.post", return_value=_response(payload=payload)) as post:
        result = publisher.publish("a.html", "<html></html>")

    assert result.success is True
    assert result.remote_path == "sites/a.html"
    assert post.call_args.kwargs["json"] == {"htmlContent": "<html></html>", "filename": "a.html"}


def test_object_storage_reports_failure():
    publisher = ObjectStoragePublisher("http://storage.test")
    with patch("app.services.publication.requests.post", return_value=_response(payload={"success": False, "error": "quota"})):
        result = publisher.publish("a.html", "x")
    assert result.success is False
    assert "quota" in result.error


def test_object_storage_unreachable():
    publisher = ObjectStoragePublisher("http://storage.test")
    with patch("app.services.publication.requests.post", side_effect=requests.ConnectionError("refused")):
        result = publisher.publish("a.html", "x")
    assert result.success is False
    assert "refused" in result.error


def test_push_sends_json_rpc_request_and_reads_commit_url():
    stdout = "starting server\n" + _reply("Pushed!\n- Commit URL: https://github.com/o/r/commit/abc") + "\n"
    pusher = RepositoryPusher("node index.js", cwd="/opt/push", timeout=7, fallback_url="https://github.com/o/r")
    with patch("app.services.publication.subprocess.run", return_value=_completed(stdout)) as run:
        url = pusher.push("/abs/site.html", "site.html", "Add generated website site.html")

    assert url == "https://github.com/o/r/commit/abc"
    args, kwargs = run.call_args
    assert args[0] == ["node", "index.js"]
    assert kwargs["cwd"] == "/opt/push"
    assert kwargs["timeout"] == 7
    assert kwargs["input"].endswith("\n")
    request = json.loads(kwargs["input"])
    assert request["method"] == "tools/call"
    assert request["params"]["name"] == "push_file_to_github"
    assert request["params"]["arguments"] == {
        "filePath": "/abs/site.html",
        "targetPath": "site.html",
        "commitMessage": "Add generated website site.html",
    }


def test_push_without_commit_url_uses_fallback():
    assert parse_push_output(_reply("done"), "https://github.com/o/r") == "https://github.com/o/r"


@pytest.mark.parametrize(
    "stdout",
    [
        "",
        "no json here",
        "{not json",
        _reply("bad credentials", is_error=True),
        json.dumps({"result": {"content": []}}),
    ],
)
def test_push_output_errors(stdout):
    with pytest.raises(PublicationError):
        parse_push_output(stdout, "https://github.com/o/r")


def test_push_process_failures():
    pusher = RepositoryPusher("node index.js")
    with patch("app.services.publication.subprocess.run", return_value=_completed(returncode=1, stderr="boom")):
        with pytest.raises(PublicationError):
            pusher.push("/a", "a", "m")
    with patch("app.services.publication.subprocess.run", side_effect=FileNotFoundError("node")):
        with pytest.raises(PublicationError):
            pusher.push("/a", "a", "m")
    with patch("app.services.publication.subprocess.run", side_effect=subprocess.TimeoutExpired("node", 1)):
        with pytest.raises(PublicationError):
            pusher.push("/a", "a", "m")
