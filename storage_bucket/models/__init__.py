from storage_bucket.models.file_record import FileRecord

__all__ = ["FileRecord"]
