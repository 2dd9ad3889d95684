from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

from supabase import Client

from ophthalmotech.core.settings import settings


class StorageService:
    """
    Supabase storage service for device document uploads.
    Manages a single bucket, by default 'device-files'.
    """

    def __init__(self, client: Client, bucket_name: str | None = None) -> None:
        self.client = client
        self.bucket_name = bucket_name or settings.STORAGE_BUCKET

    @staticmethod
    def generate_path(owner_id: str, filename: str) -> str:
        """Unique path with format: {owner_id}/{year}/{month}/{uuid}{ext}"""
        now = datetime.now(timezone.utc)
        return f"{owner_id}/{now.year}/{now.month:02d}/{uuid4()}{Path(filename).suffix}"

    async def upload_file(
        self,
        file_content: bytes,
        storage_path: str,
        content_type: str = "application/octet-stream",
    ) -> str:
        """
        Upload a file to the bucket.

        Args:
            file_content: The file content as bytes
            storage_path: Destination path inside the bucket
            content_type: MIME type of the file

        Returns:
            The storage path of the uploaded file

        Raises:
            Exception: If upload fails
        """
        try:
            result = self.client.storage.from_(self.bucket_name).upload(
                path=storage_path,
                file=file_content,
                file_options={
                    "content-type": content_type,
                    "cache-control": "3600",
                    "upsert": "false",  # Don't overwrite existing files
                },
            )

            error = getattr(result, "error", None)
            if error:
                raise Exception(f"Storage upload failed: {error}")

            return storage_path

        except Exception as e:
            raise Exception(f"Failed to upload file to storage: {str(e)}")

    async def get_file_url(self, storage_path: str, expires_in: int = 3600) -> str:
        """
        Get a signed URL for accessing a file.

        Args:
            storage_path: The storage path of the file
            expires_in: URL expiration time in seconds (default: 1 hour)

        Returns:
            Signed URL for file access

        Raises:
            Exception: If URL generation fails
        """
        try:
            result = self.client.storage.from_(self.bucket_name).create_signed_url(
                path=storage_path, expires_in=expires_in
            )

            if result.get("error"):
                raise Exception(f"URL generation failed: {result['error']}")

            signed_url = result.get("signedURL") or result.get("signedUrl")
            return str(signed_url) if signed_url else ""

        except Exception as e:
            raise Exception(f"Failed to generate file URL: {str(e)}")

    async def delete_file(self, storage_path: str) -> bool:
        """
        Delete a file from the bucket.

        Returns:
            True if deletion was successful

        Raises:
            Exception: If deletion fails
        """
        try:
            result = self.client.storage.from_(self.bucket_name).remove([storage_path])

            error = getattr(result, "error", None)
            if error:
                raise Exception(f"Storage deletion failed: {error}")

            return True

        except Exception as e:
            raise Exception(f"Failed to delete file from storage: {str(e)}")
