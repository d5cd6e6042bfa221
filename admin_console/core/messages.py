from __future__ import annotations

from admin_console.core.config import settings

DEFAULT_LOCALE = "en"

_MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "created_success": "Created successfully!",
        "updated_success": "Updated successfully!",
        "deleted_success": "Deleted successfully!",
        "create_failed": "Failed to create!",
        "update_failed": "Failed to update!",
        "delete_failed": "Failed to delete!",
        "fetch_failed": "Failed to load data",
    },
    "ar": {
        "created_success": "تمت الإضافة بنجاح",
        "updated_success": "تم التحديث بنجاح",
        "deleted_success": "تم الحذف بنجاح",
        "create_failed": "فشل في الإضافة",
        "update_failed": "فشل في التحديث",
        "delete_failed": "فشل في الحذف",
        "fetch_failed": "فشل في تحميل البيانات",
    },
}


def _normalize_locale(locale: str | None) -> str:
    value = str(locale or settings.LOCALE or DEFAULT_LOCALE).strip().lower()
    return value.split("-", 1)[0] or DEFAULT_LOCALE


def translate(key: str, locale: str | None = None) -> str:
    catalog = _MESSAGES.get(_normalize_locale(locale)) or _MESSAGES[DEFAULT_LOCALE]
    if key in catalog:
        return catalog[key]
    return _MESSAGES[DEFAULT_LOCALE].get(key, key)
