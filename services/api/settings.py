# services/api/settings.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field
import base64
from typing import List
from pathlib import Path

class Settings(BaseSettings):
    # Storage settings
    # Default to Google Sheets; override via .env (STORAGE_BACKEND=sqlite | json)
    storage_backend: str = "sheets"
    google_sa_json: str = ""
    google_sa_json_base64: str = ""
    sheets_spreadsheet_id: str = ""
    db_url: str = "sqlite:///data/drawings.db"
    json_data_dir: str = "data"

    # Blob storage for annotated PDFs: "drive" | "local"
    blob_backend: str = "drive"
    blob_local_dir: str = "data/blobs"
    # Prefix used to build public URLs for the local backend.
    # main.py mounts blob_local_dir under /blobs.
    blob_public_base_url: str = "http://localhost:8000/blobs"
    blob_upload_attempts: int = Field(default=3, ge=1, le=10)

    # Google Drive settings
    gdrive_root_folder_name: str = "Drawing_Revisions"
    # Optional: if you create the root folder manually & share it, put its ID here
    gdrive_root_folder_id: str = ""
    # Subfolder under the root that receives every annotated drawing PDF
    # Example final path:
    # Drawing_Revisions/Annotated_Drawings/drawing-<id>-rev-<n>-<ts>.pdf
    gdrive_drawings_subfolder: str = "Annotated_Drawings"

    # CORS settings
    allowed_origins: str = "http://localhost:3000,http://localhost:3001,http://localhost:8000"

    # Identity is resolved upstream (auth proxy / gateway) and forwarded as headers
    editor_id_header: str = "X-Editor-Id"
    editor_name_header: str = "X-Editor-Name"
    editor_email_header: str = "X-Editor-Email"

    # Pagination for GET /drawings
    default_page_size: int = 20
    max_page_size: int = 100

    # Project name lookups made while enriching search hits
    project_cache_ttl_seconds: float = 60.0

    model_config = ConfigDict(
        # Always load .env from the same folder as this settings.py
        env_file=str(Path(__file__).resolve().parent / ".env"),
        extra="ignore",
    )


    def resolved_google_sa_json(self) -> str:
        """
        Return the path to the service account JSON.
        If GOOGLE_SA_JSON_BASE64 is set, decode it to a temp file.
        Otherwise return GOOGLE_SA_JSON path.
        """
        if self.google_sa_json_base64:
            import tempfile

            decoded = base64.b64decode(self.google_sa_json_base64)
            temp_file = tempfile.NamedTemporaryFile(mode='w', delete=False, suffix='.json')
            temp_file.write(decoded.decode('utf-8'))
            temp_file.close()
            return temp_file.name

        return self.google_sa_json

    def get_origins_list(self) -> List[str]:
        """Parse comma-separated origins into a list."""
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


_settings_instance = None

def get_settings() -> Settings:
    """Singleton pattern for settings."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
