import uuid
from datetime import datetime, timezone
from typing import Optional

import boto3

from .image_normalizer import decode_data_uri, split_data_uri


class DishImageStore:
    """S3-backed store for scanned dish photos.

    Objects are written under ``dishes/YYYY/MM/DD/<uuid>.jpg`` and addressed by
    their public URL (``DISH_IMAGE_PUBLIC_BASE_URL`` or the bucket's virtual-host URL).
    """

    def __init__(self, bucket: str, region: str, public_base_url: Optional[str] = None, client=None) -> None:
        self._bucket = bucket
        self._region = region
        self._public_base_url = (public_base_url or f"https://{bucket}.s3.{region}.amazonaws.com").rstrip("/")
        self._client = client or boto3.client("s3", region_name=region)

    def upload_data_uri(self, data_uri: str) -> str:
        """Upload a JPEG data URI and return its public URL. Errors propagate."""
        mime, _ = split_data_uri(data_uri)
        body = decode_data_uri(data_uri)
        key = f"dishes/{datetime.now(timezone.utc).strftime('%Y/%m/%d')}/{uuid.uuid4().hex}.jpg"
        self._client.put_object(Bucket=self._bucket, Key=key, Body=body, ContentType=mime)
        return f"{self._public_base_url}/{key}"
