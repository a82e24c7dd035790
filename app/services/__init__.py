from app.services.ingestion import IngestionPipeline
from app.services.storage import CategoryRelocator, UploadStager, list_category_files
from app.services.users import UserDirectory, authenticate_user, register_user

__all__ = [
    "CategoryRelocator",
    "IngestionPipeline",
    "UploadStager",
    "UserDirectory",
    "authenticate_user",
    "list_category_files",
    "register_user",
]
