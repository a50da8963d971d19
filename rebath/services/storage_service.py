"""
Object storage for assessment photos (S3-compatible: MinIO, AWS S3,
DigitalOcean Spaces).

One ``StorageService`` is built per application in ``init_storage`` and
kept in ``app.extensions['storage']``; tests put a fake in the same slot.
"""
import json
import logging
import mimetypes
from typing import Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app
from werkzeug.datastructures import FileStorage

from rebath.exceptions import BackendUnavailable, ValidationError

logger = logging.getLogger(__name__)


class StorageService:
    """
    S3-compatible object storage service.

    Usage:
        storage = StorageService.from_config(app.config)
        url = storage.upload_file(file, 'assessments/<id>/<uuid>.jpg')
        storage.delete_file('assessments/<id>/<uuid>.jpg')
    """

    def __init__(self, endpoint, access_key, secret_key, bucket, region, public_url,
                 max_upload_size=10 * 1024 * 1024, allowed_mime_types=None):
        self.endpoint = endpoint
        self.bucket = bucket
        self.public_url = (public_url or endpoint or '').rstrip('/')
        self.max_upload_size = max_upload_size
        self.allowed_mime_types = set(allowed_mime_types or ())
        self._bucket_checked = False

        self.client = boto3.client(
            's3',
            endpoint_url=endpoint,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=BotoConfig(signature_version='s3v4')
        )

    @classmethod
    def from_config(cls, config) -> 'StorageService':
        return cls(
            endpoint=config.get('S3_ENDPOINT'),
            access_key=config.get('S3_ACCESS_KEY'),
            secret_key=config.get('S3_SECRET_KEY'),
            bucket=config.get('S3_BUCKET'),
            region=config.get('S3_REGION'),
            public_url=config.get('S3_PUBLIC_URL'),
            max_upload_size=config.get('MAX_UPLOAD_SIZE', 10 * 1024 * 1024),
            allowed_mime_types=config.get('ALLOWED_MIME_TYPES'),
        )

    def _ensure_bucket_exists(self):
        """Create the bucket (public-read) on first use if it doesn't exist."""
        if self._bucket_checked:
            return
        try:
            self.client.head_bucket(Bucket=self.bucket)
            logger.info(f"[STORAGE] Bucket '{self.bucket}' exists")
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code')
            if error_code not in ('404', 'NoSuchBucket'):
                logger.error(f"[STORAGE] Failed to check bucket: {e}")
                raise
            self.client.create_bucket(Bucket=self.bucket)
            policy = {
                "Version": "2012-10-17",
                "Statement": [
                    {
                        "Effect": "Allow",
                        "Principal": {"AWS": "*"},
                        "Action": "s3:GetObject",
                        "Resource": f"arn:aws:s3:::{self.bucket}/*"
                    }
                ]
            }
            self.client.put_bucket_policy(Bucket=self.bucket, Policy=json.dumps(policy))
            logger.info(f"[STORAGE] Bucket '{self.bucket}' created with public-read policy")
        self._bucket_checked = True

    def upload_file(self, file: FileStorage, object_name: str, content_type: Optional[str] = None) -> str:
        """
        Upload a file and return its public URL.

        Raises:
            ValidationError: empty file, too large, or disallowed type
            BackendUnavailable: storage could not be reached
        """
        self.validate_file(file)

        if not content_type:
            content_type = file.content_type or mimetypes.guess_type(file.filename)[0] or 'application/octet-stream'

        try:
            self._ensure_bucket_exists()
            file.stream.seek(0)
            logger.info(f"[STORAGE] Uploading '{object_name}' to bucket '{self.bucket}'")
            self.client.upload_fileobj(
                file.stream,
                self.bucket,
                object_name,
                ExtraArgs={'ContentType': content_type, 'ACL': 'public-read'}
            )
        except (ClientError, BotoCoreError) as e:
            logger.exception(f"[STORAGE] Upload failed: {e}")
            raise BackendUnavailable('Photo storage is unavailable') from e

        url = self.get_public_url(object_name)
        logger.info(f"[STORAGE] File uploaded: {url}")
        return url

    def delete_file(self, object_name: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=object_name)
            logger.info(f"[STORAGE] File deleted: {object_name}")
        except (ClientError, BotoCoreError) as e:
            logger.exception(f"[STORAGE] Delete failed: {e}")
            raise BackendUnavailable('Photo storage is unavailable') from e

    def get_public_url(self, object_name: str) -> str:
        """e.g. 'http://localhost:9000/assessment-photos/assessments/<id>/<uuid>.jpg'"""
        return f"{self.public_url}/{self.bucket}/{object_name}"

    def object_name_from_url(self, url: str) -> Optional[str]:
        """Inverse of ``get_public_url``; None for URLs outside this bucket."""
        prefix = f"{self.public_url}/{self.bucket}/"
        if url and url.startswith(prefix):
            return url[len(prefix):]
        return None

    def validate_file(self, file: FileStorage):
        if not file or not file.filename:
            raise ValidationError("No file was provided")

        file.stream.seek(0, 2)
        file_size = file.stream.tell()
        file.stream.seek(0)

        if file_size == 0:
            raise ValidationError("The uploaded file is empty")
        if file_size > self.max_upload_size:
            max_mb = self.max_upload_size / (1024 * 1024)
            raise ValidationError(f"File is too large. Maximum {max_mb:.1f}MB")

        if self.allowed_mime_types and file.content_type not in self.allowed_mime_types:
            allowed = ', '.join(sorted(self.allowed_mime_types))
            raise ValidationError(f"File type not allowed: {file.content_type}. Allowed: {allowed}")


def init_storage(app):
    """Build the application's storage service."""
    app.extensions['storage'] = StorageService.from_config(app.config)


def get_storage_service() -> StorageService:
    return current_app.extensions['storage']
