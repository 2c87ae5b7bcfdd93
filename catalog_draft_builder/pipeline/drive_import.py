# pipeline/drive_import.py

from __future__ import annotations

import logging
from typing import List

from catalog_draft_builder.core.draft_builder import ProductDraftBuilder
from catalog_draft_builder.core.errors import IngestError
from catalog_draft_builder.core.product_schema import ImageRef
from catalog_draft_builder.platforms.drive_client import DriveClient

logger = logging.getLogger(__name__)


def import_drive_folder(builder: ProductDraftBuilder, drive: DriveClient, folder_id: str) -> List[ImageRef]:
    """
    把 Drive 文件夹里的图片逐张加进草稿图库。
    下载或编码失败的图片会被跳过。
    """
    added: List[ImageRef] = []
    files = drive.list_image_files(folder_id)
    logger.info("Found %d image(s) in Drive folder %s", len(files), folder_id)

    for meta in files:
        try:
            data = drive.download_bytes(meta)
            ref = builder.upload_image(data, mime_type=meta.get("mimeType"), filename=meta.get("name"))
        except IngestError as e:
            logger.warning("Skipping Drive file %s: %s", meta.get("name"), e)
            continue
        added.append(ref)
    return added
