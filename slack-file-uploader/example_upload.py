#!/usr/bin/env python3
"""
Example: using SlackFileUploader programmatically.

Creates a small text file, uploads it to SLACK_CHANNEL_ID and removes it.
Reads SLACK_USER_TOKEN and SLACK_CHANNEL_ID from the environment or a .env file.
"""

import os
import sys
import tempfile
from typing import Optional

from dotenv import load_dotenv

from slack_file_uploader import (
    CHANNEL_ENV_VAR,
    TOKEN_ENV_VAR,
    Config,
    SlackFileUploader,
    SlackUploaderError,
    UploadOptions,
)


def example_usage(config: Optional[Config] = None) -> int:
    if config is None:
        load_dotenv(override=False)
        config = Config.from_env(os.environ)

    try:
        uploader = SlackFileUploader(config.token, ca_file=config.ca_file)

        print("Testing authentication...")
        user_info = uploader.get_user_info()
        print(f"✓ Authenticated as: {user_info.user} ({user_info.user_id})")
        print(f"  Team: {user_info.team} ({user_info.team_id})")

        if not config.channel_id:
            print(f"⚠ Please set {CHANNEL_ENV_VAR} in your .env file to run this example")
            print(f"  Example: {CHANNEL_ENV_VAR}=C01234567")
            return 0

        print("\nCreating and uploading a text file...")
        fd, test_file_path = tempfile.mkstemp(prefix="example-upload-", suffix=".txt")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write("This is a test file created by the example script.")

            result = uploader.upload_file(
                test_file_path,
                config.channel_id,
                UploadOptions(
                    title="Example Upload",
                    comment="This file was uploaded using the SlackFileUploader class!",
                ),
            )
        finally:
            os.unlink(test_file_path)

        print("✓ File uploaded successfully!")
        print(f"  File ID: {result.file.id}")
        print(f"  File Name: {result.file.name}")
        print("\n✓ Example completed successfully!")
        return 0

    except (SlackUploaderError, OSError, ValueError) as e:
        print(f"Error in example: {e}", file=sys.stderr)
        if TOKEN_ENV_VAR in str(e):
            print(f"\nTip: Make sure you have set {TOKEN_ENV_VAR} in your .env file", file=sys.stderr)
        return 1


if __name__ == "__main__":
    print("=== Slack File Uploader - Example Usage ===\n")
    sys.exit(example_usage())
