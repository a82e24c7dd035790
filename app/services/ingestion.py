"""Upload ingestion: stage -> check category -> relocate, with cleanup on failure."""
import logging
from typing import BinaryIO

from app.core.exceptions import AppError, RelocationError, UploadValidationError
from app.services.storage import (
    CategoryRelocator,
    StagedFile,
    StoredFile,
    UploadStager,
    discard,
)

logger = logging.getLogger(__name__)


class IngestionPipeline:
    def __init__(self, stager: UploadStager, relocator: CategoryRelocator) -> None:
        self.stager = stager
        self.relocator = relocator

    def ingest(
        self,
        stream: BinaryIO | None,
        declared_name: str | None,
        declared_mime_type: str | None,
        category: str | None,
    ) -> StoredFile:
        """Place one upload into its category directory.

        Each call is independent; uniqueness of the assigned name is what
        keeps concurrent uploads of the same file name apart.
        """
        if stream is None or not declared_name:
            raise UploadValidationError()

        staged = self.stager.stage(stream, declared_name, declared_mime_type)
        try:
            return self.relocator.relocate(staged, category)
        except AppError:
            raise
        except Exception as exc:
            logger.exception("Unexpected failure relocating %s", staged.temp_path)
            raise RelocationError(str(exc)) from exc
        finally:
            self._ensure_cleaned(staged)

    @staticmethod
    def _ensure_cleaned(staged: StagedFile) -> None:
        if staged.temp_path.exists():
            discard(staged)
