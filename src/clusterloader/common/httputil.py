# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""HTTP download of the clusterloader binary."""

import contextlib
import logging
import os
from pathlib import Path

import httpx

from clusterloader.common.environment import Environment
from clusterloader.common.exceptions import DownloadError

logger = logging.getLogger(__name__)

__all__ = [
    "HttpDownloader",
    "download",
]

_CHUNK_SIZE = 1024 * 1024


def download(
    url: str,
    dest: Path,
    *,
    client: httpx.Client | None = None,
    timeout: float | None = None,
) -> None:
    """Stream url into dest.

    The body is written to a sibling '.download' file that replaces dest only
    once it is complete, so a failed download never leaves a partial file at
    dest.

    Args:
        url: Source URL. Redirects are followed.
        dest: Destination file path.
        client: Optional client to use, e.g. one with a mock transport.
        timeout: Network timeout in seconds. Defaults to Environment.DOWNLOAD_TIMEOUT.

    Raises:
        DownloadError: The request failed, returned a non-2xx status or the
            file could not be written.
    """
    dest = Path(dest)
    partial = dest.with_name(dest.name + ".download")
    if timeout is None:
        timeout = Environment.DOWNLOAD_TIMEOUT

    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=httpx.Timeout(timeout), follow_redirects=True)

    logger.info(f"Downloading {url} to {dest}")
    written = 0
    try:
        with client.stream("GET", url) as response:
            response.raise_for_status()
            with open(partial, "wb") as f:
                for chunk in response.iter_bytes(_CHUNK_SIZE):
                    f.write(chunk)
                    written += len(chunk)
        os.replace(partial, dest)
    except httpx.HTTPStatusError as e:
        raise DownloadError(
            url, dest, f"HTTP {e.response.status_code} {e.response.reason_phrase}"
        ) from e
    except httpx.HTTPError as e:
        raise DownloadError(url, dest, f"{type(e).__name__}: {e}") from e
    except OSError as e:
        raise DownloadError(url, dest, str(e)) from e
    finally:
        with contextlib.suppress(FileNotFoundError):
            partial.unlink()
        if owns_client:
            client.close()

    logger.info(f"Downloaded {written:,} bytes to {dest}")


class HttpDownloader:
    """Default downloader backed by httpx."""

    def __init__(
        self, client: httpx.Client | None = None, timeout: float | None = None
    ) -> None:
        self.client = client
        self.timeout = timeout

    def download(self, url: str, dest: Path) -> None:
        download(url, dest, client=self.client, timeout=self.timeout)
