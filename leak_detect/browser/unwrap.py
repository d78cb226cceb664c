"""
Remote object unwrapping.

Like ``JSHandle.json_value()``, but objects that cannot or should not
be turned into data (functions, symbols, DOM nodes, dates, maps,
promises, class instances, ...) are kept as handles, so the caller
can still interact with them in the page.

Handles come from the Chrome DevTools Protocol: ``CDPRemoteHandle``
wraps a ``Runtime.RemoteObject`` on a Playwright ``CDPSession``.
Handles of objects that were inlined into the result are released as
soon as their contents have been read; handles returned to the caller
are the caller's to dispose.
"""

from __future__ import annotations

import asyncio
import dataclasses
import math
from collections.abc import Callable, Sequence
from typing import Any, Protocol

from playwright import async_api

from leak_detect.models import remote
from leak_detect.utils import errors, logger

log = logger.create_logger("Unwrap")

# Limits for graphs whose identity cannot be checked cheaply.
MAX_UNWRAP_DEPTH = 64
MAX_UNWRAP_OBJECTS = 10_000

DEFAULT_TRANSPARENT_CLASSES = frozenset({"Object", "Proxy"})

# Object subtypes that are never inlined.
OPAQUE_SUBTYPES = frozenset({
    "node", "regexp", "date", "map", "set", "weakmap", "weakset",
    "iterator", "generator", "error", "promise", "typedarray",
    "arraybuffer", "dataview", "webassemblymemory", "wasmvalue", "trustedtype",
})

ShouldUnwrap = Callable[[str], bool]


class RemoteHandle(Protocol):
    """A handle to a value living in the page."""

    def remote_object(self) -> remote.RemoteObject: ...

    async def get_properties(self) -> dict[str, RemoteHandle]: ...

    async def json_value(self) -> Any: ...

    async def is_any_of(self, others: Sequence[RemoteHandle]) -> bool:
        """Whether this handle refers to the same page object as one of *others*."""
        ...

    async def dispose(self) -> None: ...


def is_default_transparent(class_name: str) -> bool:
    """Inline only plain objects and proxies around them."""
    return class_name in DEFAULT_TRANSPARENT_CLASSES


def _unwrap_all(class_name: str) -> bool:
    return True


# ============================================================================
# Unwrapping
# ============================================================================


@dataclasses.dataclass
class _Walk:
    """State shared by one unwrap call."""

    should_unwrap: ShouldUnwrap
    objects_read: int = 0


async def unwrap_handle(handle: RemoteHandle) -> Any:
    """Unwrap *handle*, inlining objects of every class."""
    return await unwrap_handle_ex(handle, _unwrap_all)


async def unwrap_handle_ex(
    handle: RemoteHandle,
    should_unwrap: ShouldUnwrap = is_default_transparent,
) -> Any:
    """Turn *handle* into host data, keeping opaque values as handles.

    - functions and symbols stay handles;
    - primitives are returned as values;
    - ``null`` becomes ``None``;
    - arrays become lists of unwrapped elements;
    - plain objects whose class name passes *should_unwrap* become
      dicts of unwrapped own properties, in enumeration order;
    - everything else stays a handle.

    *handle* itself is never disposed.

    Raises:
        CyclicObjectGraphError: An object contains itself, or the graph
            is too deep or too large to be anything but cyclic.
    """
    return await _unwrap(handle, _Walk(should_unwrap), ())


async def _unwrap(handle: RemoteHandle, walk: _Walk, path: tuple[RemoteHandle, ...]) -> Any:
    obj = handle.remote_object()

    if obj.type in ("function", "symbol"):
        return handle

    if obj.type != "object":
        return await handle.json_value()

    if obj.subtype in (None, "proxy"):
        if not walk.should_unwrap(obj.class_name or ""):
            return handle
        properties = await _get_child_properties(handle, obj, walk, path)
        values = await asyncio.gather(*(
            _unwrap_child(child, walk, (*path, handle)) for child in properties.values()
        ))
        return dict(zip(properties.keys(), values))

    if obj.subtype in OPAQUE_SUBTYPES:
        return handle

    if obj.subtype == "null":
        return None

    if obj.subtype == "array":
        properties = await _get_child_properties(handle, obj, walk, path)
        return list(await asyncio.gather(*(
            _unwrap_child(child, walk, (*path, handle)) for child in properties.values()
        )))

    log.debug("Keeping unknown subtype as handle", {"subtype": obj.subtype, "className": obj.class_name})
    return handle


async def _unwrap_child(child: RemoteHandle, walk: _Walk, path: tuple[RemoteHandle, ...]) -> Any:
    """Unwrap a property value, releasing its handle unless it is returned."""
    keep = False
    try:
        value = await _unwrap(child, walk, path)
        keep = value is child
        return value
    finally:
        if not keep:
            await child.dispose()


async def _get_child_properties(
    handle: RemoteHandle,
    obj: remote.RemoteObject,
    walk: _Walk,
    path: tuple[RemoteHandle, ...],
) -> dict[str, RemoteHandle]:
    where = obj.description or obj.class_name
    if len(path) >= MAX_UNWRAP_DEPTH:
        raise errors.CyclicObjectGraphError(f"Object graph deeper than {MAX_UNWRAP_DEPTH} levels at {where}")
    walk.objects_read += 1
    if walk.objects_read > MAX_UNWRAP_OBJECTS:
        raise errors.CyclicObjectGraphError(f"Object graph larger than {MAX_UNWRAP_OBJECTS} objects at {where}")
    if path and await handle.is_any_of(path):
        raise errors.CyclicObjectGraphError(f"Cyclic object graph at {where}")
    return await handle.get_properties()


# ============================================================================
# CDP-backed handles
# ============================================================================


def _primitive_value(obj: remote.RemoteObject) -> Any:
    """Convert a primitive descriptor, including unserializable numbers."""
    raw = obj.unserializable_value
    if raw is None:
        return obj.value
    if obj.type == "bigint":
        return int(raw.removesuffix("n"))
    if raw == "-0":
        return -0.0
    if raw == "NaN":
        return math.nan
    if raw == "Infinity":
        return math.inf
    if raw == "-Infinity":
        return -math.inf
    raise ValueError(f"Unsupported unserializable value: {raw}")


_IS_ANY_OF_JS = "function(...others) { return others.some(other => Object.is(this, other)); }"


class CDPRemoteHandle:
    """A ``Runtime.RemoteObject`` reachable through a CDP session.

    The session is borrowed from the crawl driver and never closed here.
    """

    def __init__(self, cdp: async_api.CDPSession, obj: remote.RemoteObject) -> None:
        self._cdp = cdp
        self._obj = obj

    def remote_object(self) -> remote.RemoteObject:
        return self._obj

    async def get_properties(self) -> dict[str, CDPRemoteHandle]:
        """Return own enumerable properties, in enumeration order."""
        if self._obj.object_id is None:
            return {}
        response = await self._cdp.send("Runtime.getProperties", {
            "objectId": self._obj.object_id,
            "ownProperties": True,
        })
        properties: dict[str, CDPRemoteHandle] = {}
        for prop in response.get("result", []):
            if not prop.get("enumerable") or "value" not in prop:
                continue
            properties[prop["name"]] = CDPRemoteHandle(self._cdp, remote.RemoteObject.model_validate(prop["value"]))
        return properties

    async def json_value(self) -> Any:
        if self._obj.object_id is None:
            return _primitive_value(self._obj)
        response = await self._cdp.send("Runtime.callFunctionOn", {
            "functionDeclaration": "function() { return this; }",
            "objectId": self._obj.object_id,
            "returnByValue": True,
            "awaitPromise": True,
        })
        if "exceptionDetails" in response:
            raise RuntimeError(f"Could not serialize remote object: {response['exceptionDetails'].get('text')}")
        return _primitive_value(remote.RemoteObject.model_validate(response["result"]))

    async def is_any_of(self, others: Sequence[RemoteHandle]) -> bool:
        """Compare page-side identity, since every fetch yields a fresh object id."""
        object_id = self._obj.object_id
        other_ids = [o.remote_object().object_id for o in others]
        other_ids = [i for i in other_ids if i is not None]
        if object_id is None or not other_ids:
            return False
        if object_id in other_ids:
            return True
        response = await self._cdp.send("Runtime.callFunctionOn", {
            "functionDeclaration": _IS_ANY_OF_JS,
            "objectId": object_id,
            "arguments": [{"objectId": i} for i in other_ids],
            "returnByValue": True,
        })
        if "exceptionDetails" in response:
            raise RuntimeError(f"Could not compare remote objects: {response['exceptionDetails'].get('text')}")
        return bool(response["result"].get("value"))

    async def dispose(self) -> None:
        """Release the page-side reference held by this handle."""
        if self._obj.object_id is None:
            return
        try:
            await self._cdp.send("Runtime.releaseObject", {"objectId": self._obj.object_id})
        except Exception as exc:
            if not errors.is_navigation_error(exc):
                raise
            log.debug("Remote object already gone", {"error": str(exc)})


async def evaluate_handle(cdp: async_api.CDPSession, expression: str) -> CDPRemoteHandle:
    """Evaluate *expression* in the page and return a handle to the result."""
    response = await cdp.send("Runtime.evaluate", {
        "expression": expression,
        "awaitPromise": True,
    })
    if "exceptionDetails" in response:
        raise RuntimeError(f"Evaluation failed: {response['exceptionDetails'].get('text')}")
    return CDPRemoteHandle(cdp, remote.RemoteObject.model_validate(response["result"]))

