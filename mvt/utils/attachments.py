from __future__ import annotations

import asyncio
from io import BytesIO
from typing import TYPE_CHECKING

import discord as dc
import httpx
from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Sequence

MAX_ATTACHMENT_SIZE = 67_108_864  # 64 MiB
# A read timeout long enough for the largest attachment over a slow CDN connection.
DOWNLOAD_TIMEOUT = httpx.Timeout(10.0, read=120.0)


def attachment_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=DOWNLOAD_TIMEOUT)


async def _download(client: httpx.AsyncClient, attachment: dc.Attachment) -> dc.File:
    resp = await client.get(attachment.url, follow_redirects=True)
    resp.raise_for_status()
    return dc.File(
        BytesIO(resp.content),
        filename=attachment.filename,
        spoiler=attachment.is_spoiler(),
        description=attachment.description,
    )


async def rehost_attachments(
    client: httpx.AsyncClient, attachments: Sequence[dc.Attachment]
) -> tuple[list[dc.File], int]:
    """
    Download every attachment so that it can be uploaded again elsewhere. Attachments
    which are too large or fail to download are skipped; the second element of the
    returned tuple is how many were skipped.
    """
    eligible = [a for a in attachments if a.size <= MAX_ATTACHMENT_SIZE]
    results = await asyncio.gather(
        *(_download(client, a) for a in eligible), return_exceptions=True
    )
    files: list[dc.File] = []
    for attachment, result in zip(eligible, results, strict=True):
        if isinstance(result, httpx.HTTPError):
            logger.warning("failed to download {}: {}", attachment.url, result)
            continue
        if isinstance(result, BaseException):
            raise result
        files.append(result)
    return files, len(attachments) - len(files)
