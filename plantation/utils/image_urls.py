"""
Image reference helpers.

Health logs created before uploads were served with absolute URLs store
relative paths such as ``/uploads/health-logs/abc.jpg``. These helpers make
such paths absolute against the backend's public URL; anything else is an
opaque reference and is passed through unchanged.
"""
from typing import Iterable, List

from plantation.infrastructure.api_constants import APIConstants


def absolutize_image_url(image_url: str, public_base_url: str) -> str:
    """
    Resolve a relative upload path to an absolute URL.

    Args:
        image_url: Stored image reference
        public_base_url: Public backend URL including the API prefix

    Returns:
        Absolute URL for relative upload paths, otherwise the input unchanged
    """
    if image_url.startswith(APIConstants.UPLOADS_PREFIX):
        return f"{public_base_url.rstrip('/')}{image_url}"
    return image_url


def absolutize_image_urls(image_urls: Iterable[str], public_base_url: str) -> List[str]:
    """Resolve every image reference of a health log."""
    return [
        absolutize_image_url(url, public_base_url)
        for url in image_urls
        if isinstance(url, str) and url
    ]
