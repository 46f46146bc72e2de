import logging
from unittest.mock import MagicMock, patch

import pytest

from slack_file_uploader import LOGGER_NAME


AUTH_RESPONSE = {
    "ok": True,
    "url": "https://acme.slack.com/",
    "team": "Acme",
    "user": "jdoe",
    "team_id": "T0001",
    "user_id": "U0001",
}

UPLOAD_RESPONSE = {
    "ok": True,
    "file": {"id": "F123", "name": "report.pdf", "title": "report.pdf"},
    "files": [{"id": "F123", "name": "report.pdf", "title": "report.pdf"}],
}


@pytest.fixture
def slack_client():
    client = MagicMock()
    client.auth_test.return_value = dict(AUTH_RESPONSE)
    client.files_upload_v2.return_value = dict(UPLOAD_RESPONSE)
    return client


@pytest.fixture
def web_client_cls(slack_client):
    """Patch WebClient so nothing reaches the network"""
    with patch("slack_file_uploader.WebClient", return_value=slack_client) as cls:
        yield cls


@pytest.fixture
def report_file(tmp_path):
    path = tmp_path / "report.pdf"
    path.write_bytes(b"%PDF-1.4 test")
    return path


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logging.getLogger(LOGGER_NAME).handlers.clear()
