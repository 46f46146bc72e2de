#!/usr/bin/env python3
"""
Slack File Uploader

Uploads a single local file to a Slack channel as a user, using the official
Slack Python SDK (`slack_sdk.WebClient.files_upload_v2`).

Usage (CLI):
    slack-file-uploader ./document.pdf C01234567 --title "Important Document" --comment "Please review"

Environment:
    SLACK_USER_TOKEN: Slack user OAuth token (xoxp-...), required
    SLACK_CHANNEL_ID: default channel, used by example_upload.py only
    SLACK_CA_FILE: optional CA bundle PEM used for TLS verification

A `.env` file in the working directory is loaded before reading the
environment; variables already set in the process take precedence.
"""

from __future__ import annotations

import argparse
import logging
import os
import ssl
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from colorlog import ColoredFormatter
from dotenv import load_dotenv
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError, SlackClientError


LOGGER_NAME = "slack-file-uploader"
TOKEN_ENV_VAR = "SLACK_USER_TOKEN"
CHANNEL_ENV_VAR = "SLACK_CHANNEL_ID"
CA_FILE_ENV_VAR = "SLACK_CA_FILE"


class SlackUploaderError(Exception):
    """Base class for every error raised by the uploader"""


class ConfigurationError(SlackUploaderError):
    """Required configuration (token, config file, CA bundle) is missing or invalid"""


class AuthenticationError(SlackUploaderError):
    """Slack rejected the token or could not be reached for auth.test"""


class UploadError(SlackUploaderError):
    """Slack rejected or failed the file upload"""


class UsageError(SlackUploaderError):
    """Command line arguments could not be parsed"""


def setup_logger(verbose: bool = False, stream=None) -> logging.Logger:
    """Configure the console logger, with colors when writing to a terminal"""
    logger = logging.getLogger(LOGGER_NAME)
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    stream = stream or sys.stdout
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)

    use_colors = hasattr(stream, "isatty") and stream.isatty()
    if use_colors:
        formatter = ColoredFormatter(
            "[%(asctime)s] %(log_color)s%(levelname)-8s%(reset)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )
    else:
        formatter = logging.Formatter(
            "[%(asctime)s] %(levelname)-8s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger


@dataclass
class Config:
    """Runtime configuration for the uploader"""
    token: Optional[str] = None
    channel_id: Optional[str] = None
    ca_file: Optional[str] = None
    verbose: bool = False

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> "Config":
        return cls(
            token=env.get(TOKEN_ENV_VAR),
            channel_id=env.get(CHANNEL_ENV_VAR),
            ca_file=env.get(CA_FILE_ENV_VAR),
        )

    @staticmethod
    def load_file(config_path: str) -> Dict[str, Any]:
        """Load a YAML (or JSON, which is valid YAML) config file into a dict"""
        if not os.path.isfile(config_path):
            raise ConfigurationError(f"Config file not found: {config_path}")
        try:
            with open(config_path, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse config file {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping at the top level")
        return data

    @classmethod
    def resolve(
        cls,
        env: Mapping[str, str],
        config_path: Optional[str] = None,
        token: Optional[str] = None,
        ca_file: Optional[str] = None,
        verbose: Optional[bool] = None,
    ) -> "Config":
        """
        Merge configuration sources.

        Precedence: CLI arguments > config file > environment > defaults.
        """
        cfg = cls.load_file(config_path) if config_path else {}
        base = cls.from_env(env)

        if verbose is not None:
            resolved_verbose = bool(verbose)
        elif "verbose" in cfg:
            resolved_verbose = bool(cfg.get("verbose"))
        else:
            resolved_verbose = base.verbose

        return cls(
            token=token or cfg.get("token") or cfg.get("slack_user_token") or base.token,
            channel_id=base.channel_id,
            ca_file=ca_file or cfg.get("ca_file") or base.ca_file,
            verbose=resolved_verbose,
        )


@dataclass(frozen=True)
class UploadOptions:
    """Optional metadata attached to an upload"""
    title: Optional[str] = None
    comment: Optional[str] = None
    filename: Optional[str] = None
    thread_ts: Optional[str] = None

    @classmethod
    def coerce(cls, options: Union["UploadOptions", Mapping[str, Any], None]) -> "UploadOptions":
        """Accept an UploadOptions, a plain mapping, or None. Unknown mapping keys are ignored."""
        if options is None:
            return cls()
        if isinstance(options, UploadOptions):
            return options
        comment = options.get("comment")
        if comment is None:
            comment = options.get("initial_comment")
        return cls(
            title=options.get("title"),
            comment=comment,
            filename=options.get("filename"),
            thread_ts=options.get("thread_ts"),
        )


@dataclass(frozen=True)
class UploadRequest:
    """A validated upload with the filename and title defaults already applied.

    Built before the file is opened, so a missing file or an empty channel
    never reaches the network.
    """
    file_path: str
    channel_id: str
    filename: str
    title: str
    comment: str = ""
    thread_ts: Optional[str] = None

    @classmethod
    def build(
        cls,
        file_path: Union[str, Path],
        channel_id: str,
        options: Union[UploadOptions, Mapping[str, Any], None] = None,
    ) -> "UploadRequest":
        path = Path(file_path)
        if not path.is_file() or not os.access(path, os.R_OK):
            raise FileNotFoundError(f"File not found: {file_path}")
        if not channel_id or not str(channel_id).strip():
            raise ValueError("A channel ID is required")

        opts = UploadOptions.coerce(options)
        filename = opts.filename or path.name
        return cls(
            file_path=str(path),
            channel_id=channel_id,
            filename=filename,
            title=opts.title or filename,
            comment=opts.comment or "",
            thread_ts=opts.thread_ts,
        )

    def upload_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for WebClient.files_upload_v2, minus the file handle"""
        kwargs: Dict[str, Any] = dict(
            channel=self.channel_id,
            filename=self.filename,
            title=self.title,
            initial_comment=self.comment,
        )
        if self.thread_ts:
            kwargs["thread_ts"] = self.thread_ts
        return kwargs


def _response_data(resp: Any) -> Dict[str, Any]:
    # SlackResponse keeps the parsed body in .data; mocks and plain dicts are used as-is
    data = getattr(resp, "data", resp)
    return data if isinstance(data, dict) else {}


@dataclass(frozen=True)
class UserInfo:
    """Identity returned by auth.test"""
    user: Optional[str]
    user_id: Optional[str]
    team: Optional[str]
    team_id: Optional[str]
    url: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_response(cls, resp: Any) -> "UserInfo":
        data = _response_data(resp)
        return cls(
            user=data.get("user"),
            user_id=data.get("user_id"),
            team=data.get("team"),
            team_id=data.get("team_id"),
            url=data.get("url"),
            raw=data,
        )


@dataclass(frozen=True)
class UploadedFile:
    id: Optional[str]
    name: Optional[str]
    title: Optional[str] = None
    permalink: Optional[str] = None


@dataclass(frozen=True)
class UploadResult:
    """File descriptor returned by files.uploadV2"""
    file: UploadedFile
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_response(cls, resp: Any) -> "UploadResult":
        data = _response_data(resp)
        # files_upload_v2 fills "file" only for single-file uploads; "files" is always present
        file_obj = data.get("file") or next(iter(data.get("files") or []), None) or {}
        return cls(
            file=UploadedFile(
                id=file_obj.get("id"),
                name=file_obj.get("name"),
                title=file_obj.get("title"),
                permalink=file_obj.get("permalink") or file_obj.get("url_private"),
            ),
            raw=data,
        )


def _slack_error_message(e: Exception) -> str:
    """Extract Slack's error code from a SlackApiError, falling back to str(e)"""
    resp = getattr(e, "response", None)
    if resp is not None:
        try:
            err_field = resp.get("error")
        except (AttributeError, TypeError):
            err_field = None
        if err_field:
            return str(err_field)
    return str(e)


class SlackFileUploader:
    """Uploads files to Slack as a user through slack_sdk.WebClient.

    The token is validated when the instance is built, before any network
    call. Both operations are single request/response exchanges with no
    retries.
    """

    def __init__(
        self,
        token: Optional[str],
        client: Optional[WebClient] = None,
        ca_file: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if not token or not token.strip():
            raise ConfigurationError(
                f"{TOKEN_ENV_VAR} is required. Set it in the environment or a .env file, or pass --token."
            )
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        if client is None:
            client = WebClient(token=token, ssl=self._build_ssl_context(ca_file))
        self.client = client

    @staticmethod
    def _build_ssl_context(ca_file: Optional[str]) -> Optional[ssl.SSLContext]:
        if not ca_file:
            return None
        if not os.path.isfile(ca_file):
            raise ConfigurationError(f"CA file not found: {ca_file}")
        return ssl.create_default_context(cafile=ca_file)

    def get_user_info(self) -> UserInfo:
        """Run auth.test and return the authenticated identity.

        Every call hits the API; nothing is cached.
        """
        try:
            resp = self.client.auth_test()
        except SlackApiError as e:
            raise AuthenticationError(f"Authentication failed: {_slack_error_message(e)}") from e
        except (SlackClientError, OSError) as e:
            raise AuthenticationError(f"Authentication failed: {e}") from e
        return UserInfo.from_response(resp)

    def upload_file(
        self,
        file_path: Union[str, Path],
        channel_id: str,
        options: Union[UploadOptions, Mapping[str, Any], None] = None,
    ) -> UploadResult:
        """
        Upload a local file to a channel.

        Args:
            file_path: Path to an existing, readable file
            channel_id: Slack channel ID (e.g. C01234567)
            options: UploadOptions or a mapping with title, comment
                (alias initial_comment), filename, thread_ts

        Returns:
            UploadResult describing the uploaded file

        Raises:
            FileNotFoundError: file_path is missing or unreadable
            ValueError: channel_id is empty
            UploadError: Slack rejected the upload or could not be reached
        """
        request = UploadRequest.build(file_path, channel_id, options)

        self.logger.info(f"Uploading {request.filename} to channel {request.channel_id}...")
        with open(request.file_path, "rb") as fh:
            try:
                resp = self.client.files_upload_v2(file=fh, **request.upload_kwargs())
            except SlackApiError as e:
                raise UploadError(f"Upload of {request.filename} failed: {_slack_error_message(e)}") from e
            except (SlackClientError, OSError) as e:
                raise UploadError(f"Upload of {request.filename} failed: {e}") from e

        result = UploadResult.from_response(resp)
        self.logger.info(f"File uploaded successfully (id={result.file.id})")
        return result


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting with status 2"""

    def error(self, message):
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="slack-file-uploader",
        description="Slack File Uploader - Upload files to Slack as a user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  SLACK_USER_TOKEN    Slack user OAuth token (required)
                      Set in .env file or as environment variable
  SLACK_CA_FILE       CA bundle PEM used for TLS verification (optional)

Example:
  %(prog)s ./document.pdf C01234567 --title "Important Document" --comment "Please review"
        """,
    )
    parser.add_argument("file_path", nargs="?", metavar="file-path", help="Path to the file to upload")
    parser.add_argument("channel_id", nargs="?", metavar="channel-id", help="Slack channel ID (e.g., C01234567)")
    parser.add_argument("--title", help="Set custom title for the file")
    parser.add_argument("--comment", help="Add initial comment with the file")
    parser.add_argument("--filename", help="Override the file name shown in Slack")
    parser.add_argument("--thread-ts", dest="thread_ts", help="Upload as a reply in this message thread")
    parser.add_argument("--token", help=f"Slack user token; falls back to {TOKEN_ENV_VAR}")
    parser.add_argument("--config", help="Path to a YAML or JSON config file to use for defaults")
    parser.add_argument("--ca-file", dest="ca_file", help="CA bundle PEM file to use for TLS verification")
    parser.add_argument("--verbose", "-v", action="store_true", default=None, help="Enable verbose logging")
    return parser


VALUE_OPTIONS = ("--title", "--comment", "--filename", "--thread-ts", "--token", "--config", "--ca-file")


def attach_option_values(argv: List[str]) -> List[str]:
    """Rewrite `--opt VALUE` as `--opt=VALUE` so a value may start with a dash"""
    joined = []
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg in VALUE_OPTIONS and i + 1 < len(argv):
            joined.append(f"{arg}={argv[i + 1]}")
            i += 2
        else:
            joined.append(arg)
            i += 1
    return joined


def main(argv: Optional[List[str]] = None, env: Optional[Mapping[str, str]] = None) -> int:
    """CLI entry point. Returns the process exit code."""
    argv = attach_option_values(list(sys.argv[1:] if argv is None else argv))
    parser = build_parser()

    if not argv or "--help" in argv or "-h" in argv:
        parser.print_help()
        return 0

    try:
        args, unknown = parser.parse_known_args(argv)
    except UsageError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Run with --help for usage information.", file=sys.stderr)
        return 1

    if not args.file_path or not args.channel_id:
        print("Error: Both file path and channel ID are required.", file=sys.stderr)
        print("Run with --help for usage information.", file=sys.stderr)
        return 1

    if env is None:
        load_dotenv(override=False)
        env = os.environ

    try:
        config = Config.resolve(
            env,
            config_path=args.config,
            token=args.token,
            ca_file=args.ca_file,
            verbose=args.verbose,
        )
    except ConfigurationError as e:
        print(f"Failed to upload file: {e}", file=sys.stderr)
        return 1

    logger = setup_logger(verbose=config.verbose)
    if unknown:
        logger.debug(f"Ignoring unrecognized arguments: {' '.join(unknown)}")

    options = UploadOptions(
        title=args.title,
        comment=args.comment,
        filename=args.filename,
        thread_ts=args.thread_ts,
    )

    try:
        uploader = SlackFileUploader(config.token, ca_file=config.ca_file, logger=logger)

        user_info = uploader.get_user_info()
        print(f"✓ Authenticated as: {user_info.user} ({user_info.user_id})")

        result = uploader.upload_file(args.file_path, args.channel_id, options)
        print(f"File ID: {result.file.id}")
        print(f"File Name: {result.file.name}")
        return 0
    except (SlackUploaderError, FileNotFoundError, ValueError) as e:
        print(f"Failed to upload file: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.debug("Unhandled exception", exc_info=True)
        print(f"Failed to upload file: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
