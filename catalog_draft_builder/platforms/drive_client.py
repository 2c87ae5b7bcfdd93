# platforms/drive_client.py

from __future__ import annotations

import io
import logging
from typing import Any, Dict, List

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseDownload

from catalog_draft_builder.config.settings import (
    GOOGLE_CREDENTIALS_FILE,
    GOOGLE_SCOPES,
    GOOGLE_TOKEN_FILE,
    MAX_ASSET_BYTES,
)
from catalog_draft_builder.core.errors import IngestError

logger = logging.getLogger(__name__)


def _get_credentials() -> Credentials:
    creds = None
    if GOOGLE_TOKEN_FILE.exists():
        creds = Credentials.from_authorized_user_file(str(GOOGLE_TOKEN_FILE), GOOGLE_SCOPES)
    # 如果没有 token 或过期，就重新授权
    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            creds.refresh(Request())
        else:
            flow = InstalledAppFlow.from_client_secrets_file(
                str(GOOGLE_CREDENTIALS_FILE),
                GOOGLE_SCOPES,
            )
            creds = flow.run_local_server(port=0)
        # 保存 token 供下次使用
        GOOGLE_TOKEN_FILE.parent.mkdir(parents=True, exist_ok=True)
        with GOOGLE_TOKEN_FILE.open("w", encoding="utf-8") as token:
            token.write(creds.to_json())
    return creds


class DriveClient:
    """Read-only access to product images kept in Google Drive folders."""

    def __init__(self, service: Any = None):
        self.service = service or build("drive", "v3", credentials=_get_credentials())

    def list_image_files(self, folder_id: str) -> List[Dict[str, Any]]:
        """
        返回某文件夹下的图片文件
        每个元素包含：id, name, mimeType, size
        """
        query = (
            f"'{folder_id}' in parents and "
            "mimeType contains 'image/' and "
            "trashed = false"
        )
        results = (
            self.service.files()
            .list(
                q=query,
                fields="files(id, name, mimeType, size)",
                orderBy="name",
            )
            .execute()
        )
        return results.get("files", [])

    def download_bytes(self, file_meta: Dict[str, Any], max_bytes: int = MAX_ASSET_BYTES) -> bytes:
        """
        下载文件内容到内存（不落盘）。

        Raises:
            IngestError: file larger than max_bytes or the download failed
        """
        size = int(file_meta.get("size") or 0)
        if max_bytes > 0 and size > max_bytes:
            raise IngestError(f"{file_meta.get('name')} is {size} bytes, over the {max_bytes} byte limit")

        request = self.service.files().get_media(fileId=file_meta["id"])
        buffer = io.BytesIO()
        downloader = MediaIoBaseDownload(buffer, request)
        try:
            done = False
            while not done:
                _status, done = downloader.next_chunk()
        except Exception as e:
            raise IngestError(f"download of {file_meta.get('name')} failed: {e}") from e
        logger.debug("Downloaded %s (%d bytes)", file_meta.get("name"), buffer.tell())
        return buffer.getvalue()
