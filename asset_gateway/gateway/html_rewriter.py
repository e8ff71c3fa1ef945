"""
Rewriting of the SPA index document.

The compiled index references its assets relatively (``src="main.js"``).
Served from an arbitrary client route those links would resolve against the
route, so every relative ``href``/``src`` is anchored under the assets prefix.
"""

import logging
from typing import Optional, Union

from bs4 import BeautifulSoup

logger = logging.getLogger("uvicorn.error")

URL_ATTRIBUTES = ("href", "src")
FAVICON_REFERENCE = 'href="favicon.ico"'


def is_relative_url(value: str) -> bool:
    return bool(value) and "://" not in value and not value.startswith("/")


def prefix_relative_url(value: str, assets_prefix: str) -> str:
    if is_relative_url(value):
        return f"{assets_prefix}/{value}"
    return value


def _has_url_attribute(tag) -> bool:
    return any(tag.has_attr(name) for name in URL_ATTRIBUTES)


def rewrite_index_html(
    content: Union[bytes, str], assets_prefix: str, from_encoding: Optional[str] = None
) -> bytes:
    """
    Anchor the relative links of an HTML document under ``assets_prefix``.

    Only the first of ``href``/``src`` found on an element is considered.
    Malformed markup is repaired by the parser instead of failing. Running
    this twice on the same document prefixes twice, so callers rewrite each
    response exactly once.

    Args:
        content: The raw HTML document
        assets_prefix: URL path under which the assets are served (``/assets``)
        from_encoding: Charset of ``content`` when it is bytes, guessed when None

    Returns:
        The serialized document, UTF-8 encoded
    """
    soup = BeautifulSoup(content, "html.parser", from_encoding=from_encoding)
    rewritten = 0

    for tag in soup.find_all(_has_url_attribute):
        for name in URL_ATTRIBUTES:
            if not tag.has_attr(name):
                continue
            value = tag[name]
            if isinstance(value, list):
                value = " ".join(value)
            new_value = prefix_relative_url(value, assets_prefix)
            if new_value != value:
                tag[name] = new_value
                rewritten += 1
            break

    logger.debug(f"[HtmlRewriter] Prefixed {rewritten} relative URL(s) with {assets_prefix}")

    html = str(soup).replace(FAVICON_REFERENCE, f'href="{assets_prefix}/favicon.ico"')
    return html.encode("utf-8")
