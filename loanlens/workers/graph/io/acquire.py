"""Authenticated download of the dataset archive."""
from __future__ import annotations

import logging
import time
from urllib.parse import quote

import requests

from ..core.config import KaggleCredentials, Settings
from ..core.errors import NetworkError, UpstreamStatusError

logger = logging.getLogger(__name__)


def dataset_download_url(settings: Settings) -> str:
    return f"{settings.api_base}/datasets/download/{quote(settings.dataset, safe='/')}"


def download_archive(settings: Settings, credentials: KaggleCredentials) -> bytes:
    url = dataset_download_url(settings)
    headers = {"Authorization": f"Bearer {credentials.key}"}
    start = time.monotonic()
    logger.info("downloading dataset archive", extra={"dataset": settings.dataset, "url": url})

    try:
        response = requests.request("GET", url, headers=headers, timeout=settings.download_timeout)
    except requests.RequestException as exc:
        logger.warning("dataset download failed: %s", exc, extra={"dataset": settings.dataset})
        raise NetworkError(f"Failed to reach dataset host for {settings.dataset}: {exc}") from exc

    if response.status_code >= 400:
        logger.warning(
            "dataset host returned status %s",
            response.status_code,
            extra={"dataset": settings.dataset, "url": url},
        )
        raise UpstreamStatusError(
            f"Dataset host returned status {response.status_code} for {settings.dataset}",
            status_code=response.status_code,
        )

    body = response.content
    logger.info(
        "dataset archive downloaded",
        extra={
            "dataset": settings.dataset,
            "bytes": len(body),
            "duration_ms": int((time.monotonic() - start) * 1000),
        },
    )
    return body
