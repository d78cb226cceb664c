"""Pydantic model for the remote object descriptors sent over CDP."""

from __future__ import annotations

from typing import Any, Literal

import pydantic

from leak_detect.utils.serialization import snake_to_camel

RemoteObjectType = Literal[
    "object", "function", "undefined", "string", "number", "boolean", "symbol", "bigint"
]


class RemoteObject(pydantic.BaseModel):
    """Mirror of ``Runtime.RemoteObject``.

    ``object_id`` is only present for values that live in the page
    (objects, functions, symbols); primitives carry ``value`` or
    ``unserializable_value`` instead.
    """

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    type: RemoteObjectType
    subtype: str | None = None
    class_name: str | None = None
    value: Any = None
    unserializable_value: str | None = None
    description: str | None = None
    object_id: str | None = None
