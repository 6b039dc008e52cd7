from __future__ import annotations
"""Application settings persistence helpers."""

from dataclasses import asdict, dataclass
import json
from pathlib import Path

from .models import SortField, SortOrder


@dataclass
class AppSettings:
    """Simple container for persistent app settings."""

    search_debounce_ms: int = 300
    upload_max_concurrency: int = 4
    delete_max_concurrency: int = 8
    presigned_url_expiry: int = 3600
    sort_by: str = SortField.NAME.value
    sort_order: str = SortOrder.ASC.value
    api_base_url: str = ""


def _int_setting(data: dict, name: str, minimum: int) -> int:
    default = getattr(AppSettings, name)
    try:
        value = int(data.get(name, default))
    except (TypeError, ValueError):
        return default
    return value if value >= minimum else default


def _choice_setting(data: dict, name: str, choices: type) -> str:
    default = getattr(AppSettings, name)
    value = data.get(name, default)
    try:
        return choices(value).value
    except ValueError:
        return default


class SettingsStorage:
    """JSON-backed persistence for :class:`AppSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".pys3fm_settings.json"
        self._path = Path(storage_path)

    def load(self) -> AppSettings:
        if not self._path.exists():
            return AppSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return AppSettings()
        if not isinstance(data, dict):
            return AppSettings()
        api_base_url = data.get("api_base_url", "")
        return AppSettings(
            search_debounce_ms=_int_setting(data, "search_debounce_ms", 0),
            upload_max_concurrency=_int_setting(data, "upload_max_concurrency", 0),
            delete_max_concurrency=_int_setting(data, "delete_max_concurrency", 0),
            presigned_url_expiry=_int_setting(data, "presigned_url_expiry", 1),
            sort_by=_choice_setting(data, "sort_by", SortField),
            sort_order=_choice_setting(data, "sort_order", SortOrder),
            api_base_url=api_base_url if isinstance(api_base_url, str) else "",
        )

    def save(self, settings: AppSettings) -> None:
        payload = asdict(settings)
        payload["search_debounce_ms"] = max(int(settings.search_debounce_ms), 0)
        payload["upload_max_concurrency"] = max(int(settings.upload_max_concurrency), 0)
        payload["delete_max_concurrency"] = max(int(settings.delete_max_concurrency), 0)
        payload["presigned_url_expiry"] = max(int(settings.presigned_url_expiry), 1)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            # Persist best-effort; ignore filesystem issues.
            return
