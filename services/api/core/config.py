# services/api/core/config.py
from __future__ import annotations

from dataclasses import dataclass, field

from core.errors import ConfigurationError
from core.schema_variants import SchemaVariant, get_variant

# Placeholder shipped in deployment templates; means "not configured yet".
UNSET_FOLDER_ID = "ここにフォルダIDを貼り付け"

DEFAULT_SHEET_NAME = "点検データ"

CONFIGURATION_MESSAGE = (
    "フォルダIDが設定されていません。TARGET_FOLDER_ID を確認してください。"
    " (root folder id is not configured)"
)


def is_unset_folder_id(folder_id: str | None) -> bool:
    if folder_id is None:
        return True
    v = folder_id.strip()
    return not v or v == UNSET_FOLDER_ID


def require_root_folder_id(folder_id: str | None) -> str:
    if is_unset_folder_id(folder_id):
        raise ConfigurationError(CONFIGURATION_MESSAGE)
    return folder_id.strip()


@dataclass(frozen=True)
class RouterConfig:
    """Deployment configuration handed to the request router at construction."""

    root_folder_id: str
    schema_variant: str = "B"
    default_sheet_name: str = DEFAULT_SHEET_NAME
    variant: SchemaVariant = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Unknown variants are a startup failure, not a per-request one
        object.__setattr__(self, "variant", get_variant(self.schema_variant))
        if not self.default_sheet_name:
            raise ValueError("default_sheet_name must not be empty")

    def validate(self) -> None:
        """Raise ConfigurationError when the root folder id is unset."""
        require_root_folder_id(self.root_folder_id)
