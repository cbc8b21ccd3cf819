# backend/catalogue/services/cleanup.py
from ..config import settings
from ..models import Catalogue
from ..utils.files import delete_file
from ..utils.logging import service_logger


class CleanupService:
    """Removes stored artifacts before their database rows go away"""

    @staticmethod
    async def delete_catalogue_artifacts(catalogue: Catalogue) -> None:
        """Delete the stored PDF of a catalogue"""
        try:
            if catalogue.file_path:
                file_path = settings.STORAGE_PATH / catalogue.file_path
                if delete_file(file_path):
                    service_logger.info(f"Deleted catalogue file: {file_path}")
                else:
                    service_logger.warning(f"Catalogue file already missing: {file_path}")

        except Exception as e:
            service_logger.error(f"Error deleting catalogue artifacts: {str(e)}", extra={
                "catalogue_id": catalogue.id,
                "file_path": catalogue.file_path
            })
            raise


cleanup_service = CleanupService()
