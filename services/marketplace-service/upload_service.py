import logging
from typing import Optional
from urllib.parse import quote

import requests

from errors import UploadFailedError

logger = logging.getLogger(__name__)

IMAGEKIT_UPLOAD_URL = "https://upload.imagekit.io/api/v1/files/upload"
PLACEHOLDER_URL = "https://via.placeholder.com/400?text={name}"


class UploadService:
    """
    Stores image bytes with ImageKit and returns the public URL.

    Without credentials every upload returns a placeholder URL instead, so
    development setups never fail on images. When ImageKit answers with a
    file path but no URL, the URL is built from `url_endpoint`.
    """

    def __init__(
        self,
        public_key: Optional[str] = None,
        private_key: Optional[str] = None,
        url_endpoint: Optional[str] = None,
        timeout: int = 15,
    ):
        self.public_key = public_key
        self.private_key = private_key
        self.url_endpoint = url_endpoint
        self.timeout = timeout
        if not self.configured:
            logger.warning("ImageKit credentials not found. Image uploads will return placeholder URLs.")

    @property
    def configured(self) -> bool:
        return bool(self.public_key and self.private_key)

    def upload(self, data: bytes, file_name: str, folder: str = "agro") -> str:
        """Upload bytes into `folder`; returns the stored file's URL."""
        if not self.configured:
            return PLACEHOLDER_URL.format(name=quote(file_name))

        try:
            response = requests.post(
                IMAGEKIT_UPLOAD_URL,
                auth=(self.private_key, ""),
                files={"file": (file_name, data)},
                data={"fileName": file_name, "folder": folder},
                timeout=self.timeout,
            )
            response.raise_for_status()
            url = self._file_url(response.json())
        except (requests.RequestException, KeyError, ValueError) as e:
            logger.error(f"ImageKit upload of {file_name} failed: {e}")
            raise UploadFailedError(file_name)

        logger.info(f"Uploaded {file_name} to {folder}")
        return url

    def _file_url(self, body: dict) -> str:
        if body.get("url"):
            return body["url"]
        if not self.url_endpoint:
            raise KeyError("url")
        return f"{self.url_endpoint.rstrip('/')}/{body['filePath'].lstrip('/')}"
