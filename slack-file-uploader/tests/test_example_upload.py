import os

from slack_file_uploader import Config
from example_upload import example_usage


def test_example_uploads_and_removes_temp_file(web_client_cls, slack_client, capsys):
    seen = {}

    def fake_upload(**kwargs):
        seen["path"] = kwargs["file"].name
        seen["content"] = kwargs["file"].read()
        return {"ok": True, "file": {"id": "F555", "name": os.path.basename(kwargs["file"].name)}}

    slack_client.files_upload_v2.side_effect = fake_upload

    assert example_usage(Config(token="xoxp-test", channel_id="C123")) == 0

    kwargs = slack_client.files_upload_v2.call_args.kwargs
    assert kwargs["title"] == "Example Upload"
    assert kwargs["channel"] == "C123"
    assert seen["content"] == b"This is a test file created by the example script."
    assert not os.path.exists(seen["path"])
    out = capsys.readouterr().out
    assert "Team: Acme (T0001)" in out
    assert "File ID: F555" in out


def test_example_without_channel_skips_upload(web_client_cls, slack_client, capsys):
    assert example_usage(Config(token="xoxp-test")) == 0

    assert slack_client.files_upload_v2.call_count == 0
    assert "Please set SLACK_CHANNEL_ID" in capsys.readouterr().out


def test_example_without_token(web_client_cls, capsys):
    assert example_usage(Config()) == 1

    err = capsys.readouterr().err
    assert "Tip: Make sure you have set SLACK_USER_TOKEN" in err
    assert web_client_cls.call_count == 0
