"""
Field value read grouping.

Scripts often read the same input field many times from the same
place (e.g. on every keystroke). Reads of a tracked secret sharing a
selector, field type, value and stack are collapsed into one
``CallGroup`` that keeps every access time.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable

from leak_detect.models import crawl_data, leaks
from leak_detect.utils import logger

log = logger.create_logger("Field-Reads")

FIELD_VALUE_DESCRIPTION = "HTMLInputElement.prototype.value"


def group_field_value_calls(
    saved_calls: Iterable[crawl_data.SavedCall],
    search_values: Collection[str],
) -> list[leaks.CallGroup]:
    """Group reads of tracked secrets from input field values.

    Args:
        saved_calls: The raw API call log.
        search_values: The tracked secret values.

    Returns:
        One group per distinct read, in order of first occurrence.
    """
    groups: dict[leaks.CallGroupKey, leaks.CallGroup] = {}
    for call in saved_calls:
        if call.description != FIELD_VALUE_DESCRIPTION:
            continue
        if call.custom.value not in search_values:
            continue
        key = leaks.call_group_key(call)
        group = groups.get(key)
        if group is None:
            groups[key] = leaks.CallGroup(call=call, times=[call.custom.time])
        else:
            group.times.append(call.custom.time)

    log.debug("Grouped field value reads", {"groups": len(groups)})
    return list(groups.values())
