import uuid
import mimetypes
import functools
import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from pydantic import BaseModel, Field
from loguru import logger

from movie_common.config import Settings, get_settings
from movie_common.errors import BadRequestError, StoreUnavailableError, UnauthorizedError
from movie_common.identity import Identity

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


class UploadGrant(BaseModel):
    upload_url: str = Field(..., alias="uploadUrl")
    key: str
    method: str = "PUT"
    headers: Dict[str, str] = Field(default_factory=dict)
    expires_in: int = Field(..., alias="expiresIn")
    expires_at: str = Field(..., alias="expiresAt")
    allowed_origin: Optional[str] = Field(None, alias="allowedOrigin")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude={"allowed_origin"})


class PosterUploader:
    """
    Hands out short lived, write only URLs into the poster bucket.

    The URL is signed for a single PUT of a single fresh key, with the
    Content-Type baked into the signature. What gets uploaded is not inspected.
    """

    def __init__(self, client=None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.bucket = self.settings.poster_bucket_name
        self.client = client or boto3.client(
            "s3", region_name=self.settings.region_name, config=Config(signature_version="s3v4")
        )

    def check_origin(self, origin: Optional[str]) -> Optional[str]:
        """
        Returns the origin to echo in the CORS header, or None.

        Only an origin on the configured allow-list is ever echoed. With no
        allow-list the grant is still issued, but to same-origin callers only.
        """
        allowed = self.settings.allowed_origins
        if not allowed:
            return None
        if origin not in allowed:
            logger.warning(f"Upload grant refused for origin {origin!r}")
            raise UnauthorizedError("Origin not allowed to upload posters")
        return origin

    def _object_key(self, identity: Identity, content_type: str) -> str:
        extension = _EXTENSIONS.get(content_type) or mimetypes.guess_extension(content_type) or ""
        return f"{self.settings.poster_key_prefix}/{identity.subject}/{uuid.uuid4()}{extension}"

    def get_upload_grant(
        self, identity: Identity, content_type: Optional[str] = None, origin: Optional[str] = None
    ) -> UploadGrant:
        allowed_types = self.settings.allowed_poster_content_types
        content_type = (content_type or (allowed_types[0] if allowed_types else "")).lower()
        if not content_type or content_type not in allowed_types:
            raise BadRequestError(
                f"Unsupported content type {content_type}. Allowed: {', '.join(allowed_types)}"
            )

        allowed_origin = self.check_origin(origin)
        key = self._object_key(identity, content_type)
        expires_in = self.settings.upload_url_expires_in

        try:
            url = self.client.generate_presigned_url(
                ClientMethod="put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=expires_in,
                HttpMethod="PUT",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to presign poster upload: {e}")
            raise StoreUnavailableError("Could not issue an upload URL") from e

        expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        logger.info(f"Issued poster upload grant key={key} subject={identity.subject}")

        return UploadGrant(
            uploadUrl=url,
            key=key,
            headers={"Content-Type": content_type},
            expiresIn=expires_in,
            expiresAt=expires_at.isoformat(),
            allowedOrigin=allowed_origin,
        )


@functools.lru_cache(maxsize=1)
def get_uploader() -> PosterUploader:
    return PosterUploader()
