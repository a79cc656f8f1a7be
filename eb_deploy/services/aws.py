"""Thin async adapters over the boto3 S3 and Elastic Beanstalk clients.

boto3 calls block, so each call runs in a worker thread. Errors from botocore
propagate unchanged; the execution service maps them to deploy errors.
"""

import asyncio
from typing import Any

import boto3
from botocore.exceptions import ClientError

from eb_deploy.models.config import AwsCredentials

EB_API_VERSION = "2010-12-01"


def create_s3_client(credentials: AwsCredentials, region: str | None = None) -> Any:
    """Create a boto3 S3 client from deploy credentials."""
    return boto3.client(
        "s3",
        aws_access_key_id=credentials.access_key_id,
        aws_secret_access_key=credentials.secret_access_key,
        region_name=region,
    )


def create_beanstalk_client(credentials: AwsCredentials, region: str) -> Any:
    """Create a boto3 Elastic Beanstalk client from deploy credentials."""
    return boto3.client(
        "elasticbeanstalk",
        aws_access_key_id=credentials.access_key_id,
        aws_secret_access_key=credentials.secret_access_key,
        region_name=region,
        api_version=EB_API_VERSION,
    )


def is_version_already_exists(error: ClientError, version_label: str) -> bool:
    """Check if an EB error says the application version already exists."""
    err = error.response.get("Error", {})
    return (
        err.get("Code") == "InvalidParameterValue"
        and err.get("Message") == f"Application Version {version_label} already exists."
    )


class S3BundleStore:
    """Stores application bundles in a fixed S3 bucket."""

    def __init__(self, client: Any, bucket: str):
        self.client = client
        self.bucket = bucket

    async def put(self, key: str, body: bytes) -> dict[str, Any]:
        """Upload a bundle under ``key``."""
        return await asyncio.to_thread(
            self.client.put_object, Bucket=self.bucket, Key=key, Body=body
        )


class BeanstalkClient:
    """The Elastic Beanstalk operations used by a deploy."""

    def __init__(self, client: Any):
        self.client = client

    async def create_application_version(
        self,
        eb_application_name: str,
        version_label: str,
        s3_bucket: str,
        s3_key: str,
        description: str = "",
    ) -> bool:
        """Register an application version backed by an S3 bundle.

        Never creates the application itself and asks EB to validate the
        bundled configuration.

        Returns:
            True if the version was created, False if it already existed
        """
        try:
            await asyncio.to_thread(
                self.client.create_application_version,
                ApplicationName=eb_application_name,
                VersionLabel=version_label,
                Description=description,
                SourceBundle={"S3Bucket": s3_bucket, "S3Key": s3_key},
                AutoCreateApplication=False,
                Process=True,
            )
        except ClientError as e:
            if is_version_already_exists(e, version_label):
                return False
            raise
        return True

    async def update_environment(
        self,
        eb_application_name: str,
        eb_environment_id: str,
        eb_environment_name: str,
        version_label: str,
    ) -> dict[str, Any]:
        """Point an environment at an application version."""
        return await asyncio.to_thread(
            self.client.update_environment,
            ApplicationName=eb_application_name,
            EnvironmentId=eb_environment_id,
            EnvironmentName=eb_environment_name,
            VersionLabel=version_label,
        )

    async def get_version_status(
        self, eb_application_name: str, version_label: str
    ) -> str | None:
        """Return the processing status of an application version, if it exists."""
        response = await asyncio.to_thread(
            self.client.describe_application_versions,
            ApplicationName=eb_application_name,
            VersionLabels=[version_label],
        )
        versions = response.get("ApplicationVersions", [])
        if not versions:
            return None
        return versions[0].get("Status")
