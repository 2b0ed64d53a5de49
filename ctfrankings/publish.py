"""Publishing leaderboard exports to Cloudflare R2."""

from __future__ import annotations

import os
from typing import Mapping

R2_BUCKET = "ctf-rankings-data"
R2_ENV_VARS = ("CF_ACCOUNT_ID", "R2_ACCESS_KEY_ID", "R2_SECRET_ACCESS_KEY")


class PublishError(Exception):
    """The export could not be published."""


def r2_credentials(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Read R2 credentials, naming every variable that is missing."""
    environ = os.environ if environ is None else environ
    missing = [name for name in R2_ENV_VARS if not environ.get(name)]
    if missing:
        raise PublishError(f"R2 not configured, missing {', '.join(missing)}")
    return {name: environ[name] for name in R2_ENV_VARS}


def create_r2_client(credentials: Mapping[str, str]):
    """S3 client pointed at the account's R2 endpoint."""
    import boto3

    return boto3.client(
        "s3",
        endpoint_url=f"https://{credentials['CF_ACCOUNT_ID']}.r2.cloudflarestorage.com",
        aws_access_key_id=credentials["R2_ACCESS_KEY_ID"],
        aws_secret_access_key=credentials["R2_SECRET_ACCESS_KEY"],
        region_name="auto",
    )


def publish_leaderboard(
    s3_client,
    export_json: str,
    generated_utc: str,
    key: str = "leaderboard.json",
    bucket: str = R2_BUCKET,
) -> list[str]:
    """Upload the latest leaderboard plus a dated snapshot; return the keys.

    The latest copy is short-lived in caches. Snapshots live under
    ``archive/<YYYY-MM-DD>/`` and never change once written.
    """
    snapshot_key = f"archive/{generated_utc[:10]}/{key}"
    uploads = [(key, "max-age=300"), (snapshot_key, "max-age=31536000, immutable")]
    for object_key, cache_control in uploads:
        s3_client.put_object(
            Bucket=bucket,
            Key=object_key,
            Body=export_json.encode("utf-8"),
            ContentType="application/json",
            CacheControl=cache_control,
        )
    return [object_key for object_key, _ in uploads]
