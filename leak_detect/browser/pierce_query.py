"""
Element queries that pierce open shadow roots.

Pages under test often overwrite DOM methods (MooTools replaces
``Document`` and ``Element``, and form fields can shadow properties
such as ``matches`` by ``name``). The page functions here therefore
never call ``shadowRoot`` or ``matches`` on the node itself: both are
taken from the property descriptors of ``Element.prototype`` when the
query runs.

Results are in document order, each shadow tree being visited as soon
as its host element is reached.
"""

from __future__ import annotations

from playwright import async_api

from leak_detect.utils import logger

log = logger.create_logger("Pierce-Query")

ROBUST_PIERCE_ENGINE_NAME = "robustpierce"

_ROBUST_PIERCE_FN = """function robustPierce(node, selector, firstOnly) {
    const elementProto = Object.getPrototypeOf(HTMLElement.prototype);
    const shadowRoot = Object.getOwnPropertyDescriptor(elementProto, 'shadowRoot').get;
    const matches = Object.getOwnPropertyDescriptor(elementProto, 'matches').value;

    function* examineChildren(root) {
        if (root instanceof elementProto.constructor) {
            const rootShadow = shadowRoot.call(root);
            if (rootShadow) yield* examineChildren(rootShadow);
        }
        // The walker does not yield its root, only descendants
        const walker = document.createTreeWalker(root, NodeFilter.SHOW_ELEMENT);
        while (walker.nextNode()) {
            const child = walker.currentNode;
            if (matches.call(child, selector)) yield child;
            const childShadow = shadowRoot.call(child);
            if (childShadow) yield* examineChildren(childShadow);
        }
    }

    if (firstOnly) {
        for (const element of examineChildren(node)) return element;
        return null;
    }
    return [...examineChildren(node)];
}"""

PIERCE_QUERY_ALL_JS = f"(node, selector) => ({_ROBUST_PIERCE_FN})(node, selector, false)"

PIERCE_QUERY_ONE_JS = f"(node, selector) => ({_ROBUST_PIERCE_FN})(node, selector, true)"

# Playwright custom selector engine, usable as "robustpierce=<css>"
ROBUST_PIERCE_ENGINE_JS = f"""{{
    query(root, selector) {{
        return ({_ROBUST_PIERCE_FN})(root, selector, true);
    }},
    queryAll(root, selector) {{
        return ({_ROBUST_PIERCE_FN})(root, selector, false);
    }},
}}"""


async def register_pierce_engine(playwright: async_api.Playwright) -> None:
    """Register the piercing selector engine for all future pages.

    The engine runs as a content script, in an isolated world where
    the page's own prototype changes are not visible. Registering
    twice (e.g. from two crawls sharing one Playwright instance) is
    not an error.
    """
    try:
        await playwright.selectors.register(
            ROBUST_PIERCE_ENGINE_NAME, script=ROBUST_PIERCE_ENGINE_JS, content_script=True
        )
    except async_api.Error as exc:
        if "already registered" not in exc.message:
            raise
        log.debug("Selector engine already registered", {"name": ROBUST_PIERCE_ENGINE_NAME})


async def query_all(root: async_api.JSHandle, selector: str) -> list[async_api.ElementHandle]:
    """Return every element under *root* matching *selector*, shadow trees included."""
    array = await root.evaluate_handle(PIERCE_QUERY_ALL_JS, selector)
    try:
        properties = await array.get_properties()
        elements: list[async_api.ElementHandle] = []
        for key in sorted((k for k in properties if k.isdigit()), key=int):
            element = properties[key].as_element()
            if element is not None:
                elements.append(element)
        return elements
    finally:
        await array.dispose()


async def query_one(root: async_api.JSHandle, selector: str) -> async_api.ElementHandle | None:
    """Return the first element :func:`query_all` would return, or ``None``."""
    handle = await root.evaluate_handle(PIERCE_QUERY_ONE_JS, selector)
    element = handle.as_element()
    if element is None:
        await handle.dispose()
    return element
