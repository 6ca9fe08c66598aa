"""Message catalog for log lines and user-facing error text.

Messages are looked up by key with optional positional arguments (``{0}``, ``{1}``).
Lookups fall back to English, then to the key itself.
"""

from enum import Enum
from typing import Any, Sequence


class Locale(str, Enum):
    EN = "en"
    ZH_CN = "zh-CN"


_CATALOGS: dict[Locale, dict[str, str]] = {
    Locale.EN: {
        "log_create_object_error": "Failed to create {0} object: {1}",
        "log_delete_object_error": "Failed to delete {0} object: {1}",
        "log_update_object_error": "Failed to update {0} object: {1}",
        "log_read_object_error": "Failed to read {0} object: {1}",
        "log_unfiltered_mutation_refused": "Refused {1} on {0}: no filter given",
        "res_create_object_error": "Create failed",
        "res_delete_object_error": "Delete failed",
        "res_update_object_error": "Update failed",
        "res_read_object_error": "Query failed",
        "res_unfiltered_mutation_refused": "A filter is required for this operation",
        "query_param_error": "Query parameter error",
        "not_specified_id": "ID not specified",
    },
    Locale.ZH_CN: {
        "log_create_object_error": "新增{0}对象失败：{1}",
        "log_delete_object_error": "删除{0}对象失败：{1}",
        "log_update_object_error": "更新{0}对象失败：{1}",
        "log_read_object_error": "查询{0}对象失败：{1}",
        "log_unfiltered_mutation_refused": "已拒绝对{0}的{1}操作：未指定条件",
        "res_create_object_error": "新增失败",
        "res_delete_object_error": "删除失败",
        "res_update_object_error": "更新失败",
        "res_read_object_error": "查询失败",
        "res_unfiltered_mutation_refused": "该操作必须指定条件",
        "query_param_error": "查询参数错误",
        "not_specified_id": "未指定ID",
    },
}


class Messages:
    def __init__(self, locale: Locale | str = Locale.EN) -> None:
        self.locale = Locale(locale)

    def value(self, key: str, args: Sequence[Any] | None = None) -> str:
        template = _CATALOGS[self.locale].get(key) or _CATALOGS[Locale.EN].get(key, key)
        return template.format(*args) if args else template
