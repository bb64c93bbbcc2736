import os

import boto3
from botocore.exceptions import ClientError
from dotenv import load_dotenv

from src.logger import log_with_timer
from .base import BaseStorage, StorageError


DEFAULT_REGION = "ams3"


class CloudStorage(BaseStorage):
    """A client for S3-compatible object storage (DigitalOcean Spaces, S3, MinIO)."""

    def __init__(self, bucket_name: str, client=None):
        """
        Args:
            bucket_name: Target bucket.
            client: Pre-built boto3 S3 client. When None, one is created from
                BUCKET_ENDPOINT, BUCKET_KEY_ID, BUCKET_ACCESS_KEY and
                BUCKET_REGION.
        """
        self.bucket_name = bucket_name
        self.client = client or self._create_client()

    @staticmethod
    def _create_client():
        try:
            # Get credentials from environment variables
            load_dotenv()
            origin_endpoint = os.getenv("BUCKET_ENDPOINT")
            key_id = os.getenv("BUCKET_KEY_ID")
            access_key = os.getenv("BUCKET_ACCESS_KEY")
            region = os.getenv("BUCKET_REGION", DEFAULT_REGION)

            if not origin_endpoint or not key_id or not access_key:
                raise ValueError(
                    "Missing required environment variables for cloud storage client."
                    " Please ensure BUCKET_ENDPOINT, BUCKET_KEY_ID, and BUCKET_ACCESS_KEY are set."
                )

            session = boto3.session.Session()
            return session.client(
                "s3",
                region_name=region,
                endpoint_url=origin_endpoint,
                aws_access_key_id=key_id,
                aws_secret_access_key=access_key,
            )

        except ValueError as e:
            raise RuntimeError(f"Error loading environment variables: {e}")

    def exists(self, path: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket_name, Key=path)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageError(f"Error checking object in cloud storage: {e}") from e
        return True

    @log_with_timer("storage")
    def upload(self, path: str, data: bytes, content_type: str) -> str:
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=path,
                Body=data,
                ContentType=content_type,
            )
        except ClientError as e:
            raise StorageError(f"Error saving file to cloud storage: {e}") from e
        return path

    def download(self, path: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=self.bucket_name, Key=path)
            return response["Body"].read()
        except ClientError as e:
            raise StorageError(f"Error reading file from cloud storage: {e}") from e

