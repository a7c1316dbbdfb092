"""
Content Sanitizer
=================

Neutralizes executable constructs in entry HTML and rewrites relative
references against the feed's origin so fragments render outside their
source site.
"""

import re
from typing import Optional

from ..utils.logging import get_logger_for_component
from ..utils.urls import resolve_url
from .markup import MarkupNode, SoupHtmlBuilder, TreeBuilder


JAVASCRIPT_URL_PATTERN = re.compile(r"^\s*javascript:", re.IGNORECASE)

STRIPPED_ELEMENTS = ("script", "style")


def _is_javascript_url(value: Optional[str]) -> bool:
    return bool(value) and bool(JAVASCRIPT_URL_PATTERN.match(value))


def _resolve_srcset(srcset: str, base_url: str) -> str:
    """Resolve each candidate URL in a srcset, keeping its first descriptor."""
    candidates = []
    for part in srcset.split(","):
        part = part.strip()
        if not part:
            continue
        tokens = part.split()
        resolved = resolve_url(tokens[0], base_url)
        candidates.append(f"{resolved} {tokens[1]}" if len(tokens) > 1 else resolved)
    return ", ".join(candidates)


class ContentSanitizer:
    """Scrubs and rewrites HTML fragments from feed entries."""

    def __init__(self, tree_builder: Optional[TreeBuilder] = None):
        self.tree_builder = tree_builder or SoupHtmlBuilder()
        self.logger = get_logger_for_component("content_sanitizer")

    def sanitize(self, html: str, base_url: str) -> str:
        """Return a safe, self-contained version of ``html``.

        Scripts and styles are removed along with event-handler attributes
        and javascript: links. Image sources and ordinary links are resolved
        against ``base_url``; images load lazily and links open in a new,
        isolated browsing context. Running the result through again yields
        the same markup.

        Never raises: on an unexpected failure the input is returned as is.
        """
        if not html:
            return html or ""

        try:
            document = self.tree_builder.parse(html)
            root = document.root

            for element in root.find_all():
                if element.local_name in STRIPPED_ELEMENTS:
                    element.remove()

            for element in root.find_all():
                self._strip_active_attributes(element)

            for image in root.find_all("img"):
                self._rewrite_image(image, base_url)

            for anchor in root.find_all("a"):
                self._rewrite_anchor(anchor, base_url)

            return document.serialize()
        except Exception as e:
            self.logger.error(f"Sanitization failed, returning content unchanged: {e}")
            return html

    @staticmethod
    def _strip_active_attributes(element: MarkupNode) -> None:
        for attribute in element.attribute_names():
            if attribute.lower().startswith("on"):
                element.remove_attribute(attribute)
        if _is_javascript_url(element.get("href")):
            element.remove_attribute("href")

    @staticmethod
    def _rewrite_image(image: MarkupNode, base_url: str) -> None:
        src = image.get("src")
        if src:
            image.set("src", resolve_url(src, base_url))

        srcset = image.get("srcset")
        if srcset:
            image.set("srcset", _resolve_srcset(srcset, base_url))

        image.set("loading", "lazy")

    @staticmethod
    def _rewrite_anchor(anchor: MarkupNode, base_url: str) -> None:
        href = anchor.get("href")
        if not href or href.startswith("#") or _is_javascript_url(href):
            return

        anchor.set("href", resolve_url(href, base_url))
        anchor.set("target", "_blank")
        anchor.set("rel", "noopener noreferrer")
