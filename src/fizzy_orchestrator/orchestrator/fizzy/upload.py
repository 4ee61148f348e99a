"""Direct uploads: register a blob, PUT its bytes, embed it in rich text."""

from __future__ import annotations

import base64
import hashlib
import html
import logging

from pydantic import BaseModel

from fizzy_orchestrator.orchestrator.fizzy.client import FizzyClient
from fizzy_orchestrator.orchestrator.fizzy.errors import FizzyApiError
from fizzy_orchestrator.orchestrator.result import Err, Ok, Result

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 50 * 1024 * 1024


class Attachment(BaseModel):
    signed_id: str
    html: str


def compute_checksum(data: bytes) -> str:
    """Base64 MD5 digest, the integrity check the storage service expects."""

    return base64.b64encode(hashlib.md5(data).digest()).decode("ascii")


def embed_attachment(signed_id: str) -> str:
    return f'<action-text-attachment sgid="{html.escape(signed_id, quote=True)}"></action-text-attachment>'


async def attach_file(
    client: FizzyClient,
    account_slug: str,
    *,
    filename: str,
    content: bytes,
    content_type: str,
) -> Result[Attachment, FizzyApiError]:
    registered = await client.create_direct_upload(
        account_slug,
        filename=filename,
        byte_size=len(content),
        checksum=compute_checksum(content),
        content_type=content_type,
    )
    if isinstance(registered, Err):
        return registered

    target = registered.value.direct_upload
    uploaded = await client.upload_blob(target.url, target.headers, content)
    if isinstance(uploaded, Err):
        return uploaded

    signed_id = registered.value.signed_id
    logger.info(
        "File uploaded",
        extra={"account_slug": account_slug, "upload_filename": filename, "bytes": len(content)},
    )
    return Ok(Attachment(signed_id=signed_id, html=embed_attachment(signed_id)))
