# vipgate/core/files/store.py
import logging
import secrets
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, List, Optional

from core.config import ConfigManager
from core.database.base import DatabaseService
from schemas.files import FileRecord
from utils.exceptions import FileTooLargeError, RecordNotFoundError, RecordValidationError
from utils.timeutils import to_db_timestamp, utc_now

logger = logging.getLogger(f"vipgate.{__name__}")

TABLE = "files"
VIP_MARKER = ".vip.js"
DEFAULT_MIME_TYPE = "application/javascript"
_CHUNK_SIZE = 1024 * 64


def is_vip_script_name(filename: str) -> bool:
    return Path(filename).suffix == ".js" and VIP_MARKER in filename


class FileStore:
    """
    Manages uploaded VIP scripts: the bytes in the upload directory and the
    FileRecord rows describing them.
    """
    def __init__(self, db_service: DatabaseService, config_manager: ConfigManager):
        self.db: DatabaseService = db_service
        self._upload_dir = Path(config_manager.get_config("storage.upload_dir", "uploads"))
        self.max_file_size: int = int(config_manager.get_config("storage.max_file_size_mb", 50) * 1024 * 1024)
        self._ensure_upload_directory()

    def _ensure_upload_directory(self):
        self._upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Upload directory ensured at: {self._upload_dir}")

    @property
    def upload_dir(self) -> Path:
        return self._upload_dir

    def _storage_name(self, original_filename: str) -> str:
        """"premium.vip.js" -> "premium.vip-<32 hex chars>.js" """
        safe_name = Path(original_filename).name
        stem = safe_name[: -len(".js")]
        return f"{stem}-{secrets.token_hex(16)}.js"

    def save(self, source: BinaryIO, original_filename: str,
             mime_type: Optional[str] = None, uploaded_by: Optional[int] = None) -> FileRecord:
        """
        Streams an upload to disk and records it.
        Raises RecordValidationError for names that are not *.vip.js and
        FileTooLargeError past the configured limit; nothing is kept in either case.
        """
        original_filename = Path(original_filename or "").name
        if not is_vip_script_name(original_filename):
            raise RecordValidationError("Only VIP.js files are allowed")

        stored_name = self._storage_name(original_filename)
        destination = self._upload_dir / stored_name
        size = 0
        try:
            with open(destination, "wb") as out:
                while True:
                    chunk = source.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_file_size:
                        raise FileTooLargeError(self.max_file_size)
                    out.write(chunk)

            new_id = self.db.insert(TABLE, {
                "filename": stored_name,
                "original_filename": original_filename,
                "file_size": size,
                "mime_type": mime_type or DEFAULT_MIME_TYPE,
                "uploaded_at": to_db_timestamp(utc_now()),
                "uploaded_by": uploaded_by,
            })
        except Exception:
            destination.unlink(missing_ok=True)
            raise

        logger.info(f"Stored '{original_filename}' as {destination} ({size} bytes, file id {new_id})")
        return self._require(new_id)

    def list(self) -> List[FileRecord]:
        rows = self.db.find(TABLE, order_by="uploaded_at DESC, id DESC")
        return [FileRecord.model_validate(row) for row in rows]

    def get(self, file_id: int) -> Optional[FileRecord]:
        row = self.db.find_one(TABLE, {"id": file_id})
        return FileRecord.model_validate(row) if row else None

    def get_by_filename(self, filename: str) -> Optional[FileRecord]:
        row = self.db.find_one(TABLE, {"filename": filename})
        return FileRecord.model_validate(row) if row else None

    def resolve_original_name(self, file_id: int) -> Optional[str]:
        record = self.get(file_id)
        return record.original_filename if record else None

    def resolve_path(self, record: FileRecord) -> Optional[Path]:
        """Absolute path of the stored bytes, or None when the file is gone from disk."""
        path = (self._upload_dir / Path(record.filename).name).resolve()
        if path.is_file():
            return path
        logger.error(f"File {record.id} not found on disk at {path}")
        return None

    def find_vip_script(self) -> Optional[FileRecord]:
        """The script served at /VIP.js: the newest record with a .vip.js original name."""
        for record in self.list():
            if VIP_MARKER in record.original_filename:
                return record
        return None

    def delete(self, file_id: int) -> None:
        record = self.get(file_id)
        if record is None:
            raise RecordNotFoundError(TABLE, file_id)

        path = self._upload_dir / Path(record.filename).name
        if path.exists():
            path.unlink()
            logger.info(f"Deleted file from disk: {path}")
        self.db.delete(TABLE, {"id": file_id})
        logger.info(f"Deleted file record {file_id} ('{record.original_filename}')")

    def count(self, uploaded_since: Optional[datetime] = None) -> int:
        filters = {"uploaded_at__gt": to_db_timestamp(uploaded_since)} if uploaded_since else None
        return self.db.count(TABLE, filters)

    def _require(self, file_id: int) -> FileRecord:
        record = self.get(file_id)
        if record is None:
            raise RecordNotFoundError(TABLE, file_id)
        return record
