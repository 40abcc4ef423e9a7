"""
Storage Service - Template workbook storage.

This module keeps a copy of every workbook a form was imported from,
named by content hash so re-uploads of the same file share one copy.
"""

import os
import shutil
import logging
from pathlib import Path
from typing import Optional
from datetime import datetime

logger = logging.getLogger(__name__)

# Default storage directory
DEFAULT_TEMPLATES_DIR = 'templates/'


class StorageService:
    """
    Framework-agnostic storage service for imported template workbooks.
    """

    def __init__(self, templates_dir: str = DEFAULT_TEMPLATES_DIR):
        """
        Initialize storage service.

        Args:
            templates_dir: Directory to store workbooks (default: 'templates/')
        """
        self.templates_dir = templates_dir
        self._ensure_directory_exists()

    def _ensure_directory_exists(self):
        """Ensure the templates directory exists."""
        Path(self.templates_dir).mkdir(parents=True, exist_ok=True)
        logger.debug(f"Storage directory ensured: {self.templates_dir}")

    def _hash_path(self, file_hash: str, extension: str) -> Path:
        return Path(self.templates_dir) / f"{file_hash[:16]}{extension}"

    def file_exists(self, file_hash: str, extension: str = '.xlsx') -> Optional[str]:
        """
        Check if a workbook with given hash exists in storage.

        Returns:
            Path to file if exists, None otherwise
        """
        file_path = self._hash_path(file_hash, extension)
        if file_path.exists():
            return str(file_path)
        return None

    def store_file(self, source_path: str, file_hash: str) -> str:
        """
        Store a workbook under its hash name.

        Args:
            source_path: Path to source file
            file_hash: SHA256 hash of the file

        Returns:
            Path to stored file
        """
        self._ensure_directory_exists()

        ext = Path(source_path).suffix.lower()
        existing = self.file_exists(file_hash, ext)
        if existing:
            logger.info(f"Workbook already stored at {existing}")
            return existing

        dest_path = self._hash_path(file_hash, ext)
        shutil.copy2(source_path, dest_path)
        logger.info(f"Stored file: {source_path} -> {dest_path}")

        return str(dest_path)

    def delete_file(self, file_path: str) -> bool:
        """
        Delete a file from storage.

        Returns:
            True if file was deleted, False if file didn't exist
        """
        path = Path(file_path)

        if path.exists():
            path.unlink()
            logger.info(f"Deleted file: {file_path}")
            return True

        logger.warning(f"File not found for deletion: {file_path}")
        return False

    def cleanup_temp_files(self, temp_dir: str, older_than_hours: int = 24) -> int:
        """
        Clean up abandoned uploads older than specified hours.

        Returns:
            Number of files deleted
        """
        temp_path = Path(temp_dir)

        if not temp_path.exists():
            return 0

        cutoff_time = datetime.now().timestamp() - (older_than_hours * 3600)
        deleted_count = 0

        for file_path in temp_path.glob("*"):
            if file_path.is_file() and file_path.stat().st_mtime < cutoff_time:
                try:
                    file_path.unlink()
                    deleted_count += 1
                    logger.debug(f"Cleaned up temp file: {file_path}")
                except OSError as e:
                    logger.error(f"Error deleting temp file {file_path}: {e}")

        if deleted_count > 0:
            logger.info(f"Cleaned up {deleted_count} temporary files")

        return deleted_count


def remove_quietly(file_path: Optional[str]):
    """Remove a temporary file if it still exists."""
    if file_path and os.path.exists(file_path):
        os.unlink(file_path)
