# services/api/settings.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field
import base64
from typing import List, Literal
from pathlib import Path

from core.config import DEFAULT_SHEET_NAME, UNSET_FOLDER_ID, RouterConfig


class Settings(BaseSettings):
    # Storage settings
    # "google" = Drive + Sheets; "memory" = in-process tree for local runs
    storage_backend: Literal["google", "memory"] = "google"
    google_sa_json: str = ""
    google_sa_json_base64: str = ""

    # Root folder holding all bridge spreadsheets (folders/<ID> in the Drive URL).
    # The placeholder value means "not configured": listing reports an error.
    target_folder_id: str = UNSET_FOLDER_ID

    # Sheet layout for this deployment: A (7 columns) or B (17 columns)
    schema_variant: Literal["A", "B"] = "B"

    # Sheet used when a record arrives without sheetName
    default_sheet_name: str = DEFAULT_SHEET_NAME

    # Timezone for lastUpdated / receipt time
    display_timezone: str = "Asia/Tokyo"

    # ---- Bulk provisioning ----
    provision_list_sheet: str = "一括作成リスト"
    # First sheet of every new bridge document gets this name + the header
    provision_default_sheet: str = "下面"

    # Attempts per Google API call. 1 = single attempt, no retry.
    sheets_api_attempts: int = Field(default=1, ge=1, le=5)

    # CORS settings
    allowed_origins: str = "*"

    log_level: str = "INFO"

    model_config = ConfigDict(
        # Always load .env from the same folder as this settings.py
        env_file=str(Path(__file__).resolve().parent / ".env"),
        extra="ignore",
    )

    def resolved_google_sa_json(self) -> str:
        """
        Return the path (or inline JSON) of the service account.
        If GOOGLE_SA_JSON_BASE64 is set, decode it to a temp file.
        Otherwise return GOOGLE_SA_JSON.
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

    def router_config(self) -> RouterConfig:
        return RouterConfig(
            root_folder_id=self.target_folder_id,
            schema_variant=self.schema_variant,
            default_sheet_name=self.default_sheet_name,
        )


_settings_instance = None

def get_settings() -> Settings:
    """Singleton pattern for settings."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
