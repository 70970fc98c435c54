"""Per-user terminal settings kept in the remote state cache."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TerminalSettings(BaseModel):
    """Settings document. Field defaults are what an offline terminal falls
    back to when nothing was ever fetched."""

    # Remote documents use camelCase keys
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    dark_mode: bool = False
    notifications: bool = True
    auto_backup: bool = False
    language: str = "pt-BR"
    nfc_enabled: bool = True
    hide_history_enabled: bool = False
    bluetooth_enabled: bool = False


def default_settings_document() -> dict[str, Any]:
    """The default settings as the remote would return them."""
    return TerminalSettings().model_dump(by_alias=True)
