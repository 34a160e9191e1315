"""
Google Drive Service
Stores guest documents in one sub-folder per guest
"""
import io
import logging
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload
from app.config import settings
from app.models.booking import normalize_phone
from app.services.google_credentials import load_credentials

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


class DriveServiceError(Exception):
    """Failed to store a file in Google Drive."""


class DriveService:
    """Service to upload files to Google Drive"""

    def __init__(self, service=None, root_folder_id: str | None = None, public_links: bool | None = None):
        self.root_folder_id = root_folder_id or settings.google_drive_folder_id
        self.public_links = settings.drive_public_links if public_links is None else public_links
        self.service = service
        if self.service is None:
            self._init_service()

    def _init_service(self):
        """Initialize Google Drive API service"""
        if not self.root_folder_id:
            raise ValueError("GOOGLE_DRIVE_FOLDER_ID not set")
        credentials = load_credentials()
        self.service = build("drive", "v3", credentials=credentials, cache_discovery=False)

    def _execute(self, request, action: str):
        try:
            return request.execute()
        except HttpError as e:
            detail = e.content.decode("utf-8", "replace") if e.content else str(e)
            logger.error(f"Drive API error while {action}: {detail}")
            raise DriveServiceError(f"Drive API error while {action}: {e}") from e

    def ensure_folder(self, name: str, parent_id: str) -> str:
        """
        Find a folder by name inside parent, creating it when missing.

        Returns:
            Folder ID
        """
        escaped = name.replace("\\", "\\\\").replace("'", "\\'")
        query = (
            f"name = '{escaped}' and '{parent_id}' in parents "
            f"and mimeType = '{FOLDER_MIME_TYPE}' and trashed = false"
        )
        result = self._execute(
            self.service.files().list(
                q=query,
                fields="files(id, name)",
                supportsAllDrives=True,
                includeItemsFromAllDrives=True,
            ),
            f"looking up folder '{name}'",
        )
        files = result.get("files", [])
        if files:
            return files[0]["id"]

        folder = self._execute(
            self.service.files().create(
                body={"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]},
                fields="id",
                supportsAllDrives=True,
            ),
            f"creating folder '{name}'",
        )
        logger.info(f"Created Drive folder '{name}' ({folder['id']})")
        return folder["id"]

    def upload_file(self, content: bytes, filename: str, mime_type: str, folder_id: str) -> dict:
        """
        Upload binary content into a folder.

        Returns:
            dict with file id and viewable link
        """
        media = MediaIoBaseUpload(io.BytesIO(content), mimetype=mime_type, resumable=False)
        created = self._execute(
            self.service.files().create(
                body={"name": filename, "parents": [folder_id]},
                media_body=media,
                fields="id, webViewLink",
                supportsAllDrives=True,
            ),
            f"uploading '{filename}'",
        )
        file_id = created["id"]
        link = created.get("webViewLink") or f"https://drive.google.com/file/d/{file_id}/view"
        return {"id": file_id, "link": link}

    def make_public(self, file_id: str) -> None:
        """Allow anyone with the link to view the file"""
        self._execute(
            self.service.permissions().create(
                fileId=file_id,
                body={"role": "reader", "type": "anyone"},
                supportsAllDrives=True,
            ),
            f"sharing file {file_id}",
        )

    def upload_guest_document(self, phone: str, content: bytes, filename: str, mime_type: str) -> str:
        """
        Store a guest document under the guest's folder.

        Returns:
            Shareable link of the uploaded file
        """
        folder_name = normalize_phone(phone) or "unknown"
        folder_id = self.ensure_folder(folder_name, self.root_folder_id)
        uploaded = self.upload_file(content, filename, mime_type, folder_id)

        if self.public_links:
            self.make_public(uploaded["id"])

        logger.info(f"Uploaded '{filename}' for {phone}: {uploaded['link']}")
        return uploaded["link"]


# Global instance
_drive_service = None


def get_drive_service() -> DriveService:
    """Get or create Drive service instance"""
    global _drive_service
    if _drive_service is None:
        _drive_service = DriveService()
    return _drive_service
