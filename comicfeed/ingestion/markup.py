"""
Markup Trees
============

Narrow document-tree interface shared by feed parsing and content
sanitization, with two backends:

- ``LxmlXmlBuilder``: strict, namespace-aware XML parsing for feed documents
- ``SoupHtmlBuilder``: tolerant HTML fragment parsing for entry content

Callers depend only on ``TreeBuilder``, ``MarkupDocument`` and ``MarkupNode``;
the backend libraries never leak past this module.
"""

import re
from abc import ABC, abstractmethod
from typing import Iterator, List, Optional, Tuple, Union

from bs4 import BeautifulSoup
from bs4.element import Tag
from lxml import etree


class _AnyNamespace:
    """Sentinel: match elements regardless of namespace."""

    def __repr__(self) -> str:
        return "ANY_NAMESPACE"


ANY_NAMESPACE = _AnyNamespace()

Namespaces = Union[_AnyNamespace, Tuple[Optional[str], ...]]


class MarkupSyntaxError(ValueError):
    """Raised when a strict builder cannot parse its input."""


class MarkupNode(ABC):
    """A single element in a parsed markup tree."""

    @property
    @abstractmethod
    def local_name(self) -> str:
        """Element name without namespace or prefix."""

    @property
    @abstractmethod
    def namespace(self) -> Optional[str]:
        """Namespace URI, or None for un-namespaced elements."""

    @abstractmethod
    def child_elements(self) -> Iterator["MarkupNode"]:
        """Direct element children in document order."""

    @abstractmethod
    def descendants(self) -> Iterator["MarkupNode"]:
        """All element descendants in document order."""

    @abstractmethod
    def get(self, attribute: str, default: Optional[str] = None) -> Optional[str]:
        """Read an attribute value."""

    @abstractmethod
    def set(self, attribute: str, value: str) -> None:
        """Write an attribute value."""

    @abstractmethod
    def remove_attribute(self, attribute: str) -> None:
        """Remove an attribute if present."""

    @abstractmethod
    def attribute_names(self) -> List[str]:
        """Names of the attributes currently set on the element."""

    @abstractmethod
    def text(self) -> str:
        """Concatenated text content of the element and its descendants."""

    @abstractmethod
    def remove(self) -> None:
        """Detach the element and its whole subtree from the tree."""

    def matches(self, name: Optional[str], namespaces: Namespaces = ANY_NAMESPACE) -> bool:
        if name is not None and self.local_name != name:
            return False
        if namespaces is ANY_NAMESPACE:
            return True
        return self.namespace in namespaces

    def find_all(
        self,
        name: Optional[str] = None,
        namespaces: Namespaces = ANY_NAMESPACE,
        recursive: bool = True,
    ) -> List["MarkupNode"]:
        """Elements below this one matching name and namespace, in document order.

        A ``name`` of None matches every element.
        """
        candidates = self.descendants() if recursive else self.child_elements()
        return [node for node in candidates if node.matches(name, namespaces)]

    def find(
        self,
        name: Optional[str] = None,
        namespaces: Namespaces = ANY_NAMESPACE,
        recursive: bool = True,
    ) -> Optional["MarkupNode"]:
        """First element below this one matching name and namespace."""
        candidates = self.descendants() if recursive else self.child_elements()
        for node in candidates:
            if node.matches(name, namespaces):
                return node
        return None

    def find_by_attribute(self, attribute: str, value: str) -> Optional["MarkupNode"]:
        """First descendant whose ``attribute`` equals ``value``."""
        for node in self.descendants():
            if node.get(attribute) == value:
                return node
        return None

    def child_text(
        self, name: str, namespaces: Namespaces = ANY_NAMESPACE
    ) -> str:
        """Stripped text of the first matching child element, or ''."""
        node = self.find(name, namespaces, recursive=False)
        return node.text().strip() if node is not None else ""


class MarkupDocument(ABC):
    """A parsed tree that can be serialized back to markup."""

    @property
    @abstractmethod
    def root(self) -> MarkupNode:
        """Top-level node of the tree."""

    @abstractmethod
    def serialize(self) -> str:
        """Render the (possibly modified) tree back to a markup string."""


class TreeBuilder(ABC):
    """Turns markup text into a ``MarkupDocument``."""

    @abstractmethod
    def parse(self, text: Union[str, bytes]) -> MarkupDocument:
        """Parse markup into a tree.

        Raises:
            MarkupSyntaxError: If the builder is strict and the input is malformed
        """


# ---------------------------------------------------------------------------
# lxml backend (feed XML)
# ---------------------------------------------------------------------------

# Declarations may name an encoding, which lxml refuses for already-decoded text
_XML_DECLARATION = re.compile(r"^\ufeff?\s*<\?xml[^>]*\?>")


def _is_element(element) -> bool:
    # Comments, processing instructions and entities carry non-string tags
    return isinstance(element.tag, str)


class LxmlNode(MarkupNode):
    """``MarkupNode`` over an ``lxml.etree`` element."""

    def __init__(self, element):
        self._element = element

    @property
    def local_name(self) -> str:
        return etree.QName(self._element).localname

    @property
    def namespace(self) -> Optional[str]:
        return etree.QName(self._element).namespace

    def child_elements(self) -> Iterator[MarkupNode]:
        for child in self._element:
            if _is_element(child):
                yield LxmlNode(child)

    def descendants(self) -> Iterator[MarkupNode]:
        for element in self._element.iterdescendants():
            if _is_element(element):
                yield LxmlNode(element)

    def get(self, attribute: str, default: Optional[str] = None) -> Optional[str]:
        return self._element.get(attribute, default)

    def set(self, attribute: str, value: str) -> None:
        self._element.set(attribute, value)

    def remove_attribute(self, attribute: str) -> None:
        self._element.attrib.pop(attribute, None)

    def attribute_names(self) -> List[str]:
        return list(self._element.attrib.keys())

    def text(self) -> str:
        parts: List[str] = []
        self._collect_text(self._element, parts)
        return "".join(parts)

    @classmethod
    def _collect_text(cls, element, parts: List[str]) -> None:
        if element.text:
            parts.append(element.text)
        for child in element:
            if _is_element(child):
                cls._collect_text(child, parts)
            if child.tail:
                parts.append(child.tail)

    def remove(self) -> None:
        parent = self._element.getparent()
        if parent is None:
            return

        # Keep the text that follows the removed element
        tail = self._element.tail
        if tail:
            previous = self._element.getprevious()
            if previous is not None:
                previous.tail = (previous.tail or "") + tail
            else:
                parent.text = (parent.text or "") + tail
        parent.remove(self._element)


class LxmlDocument(MarkupDocument):
    def __init__(self, root_element):
        self._root_element = root_element

    @property
    def root(self) -> MarkupNode:
        return LxmlNode(self._root_element)

    def serialize(self) -> str:
        return etree.tostring(self._root_element, encoding="unicode")


class LxmlXmlBuilder(TreeBuilder):
    """Strict XML builder: malformed input raises ``MarkupSyntaxError``."""

    def __init__(self):
        self._parser = etree.XMLParser(
            recover=False,
            resolve_entities=False,
            no_network=True,
            collect_ids=False,
        )

    def parse(self, text: Union[str, bytes]) -> MarkupDocument:
        if isinstance(text, str):
            text = _XML_DECLARATION.sub("", text, count=1)
        else:
            # The declaration must open the document for its encoding to apply
            text = text.lstrip()

        try:
            root = etree.fromstring(text, parser=self._parser)
        except (etree.XMLSyntaxError, ValueError) as e:
            raise MarkupSyntaxError(str(e)) from e

        if root is None:
            raise MarkupSyntaxError("Document has no root element")
        return LxmlDocument(root)


# ---------------------------------------------------------------------------
# BeautifulSoup backend (entry HTML)
# ---------------------------------------------------------------------------


class SoupNode(MarkupNode):
    """``MarkupNode`` over a BeautifulSoup tag."""

    def __init__(self, tag: Tag):
        self._tag = tag

    @property
    def local_name(self) -> str:
        return self._tag.name

    @property
    def namespace(self) -> Optional[str]:
        return None

    def child_elements(self) -> Iterator[MarkupNode]:
        for tag in self._tag.find_all(True, recursive=False):
            yield SoupNode(tag)

    def descendants(self) -> Iterator[MarkupNode]:
        for tag in self._tag.find_all(True):
            yield SoupNode(tag)

    def get(self, attribute: str, default: Optional[str] = None) -> Optional[str]:
        value = self._tag.get(attribute)
        if value is None:
            return default
        if isinstance(value, list):
            return " ".join(value)
        return value

    def set(self, attribute: str, value: str) -> None:
        self._tag[attribute] = value

    def remove_attribute(self, attribute: str) -> None:
        if attribute in self._tag.attrs:
            del self._tag[attribute]

    def attribute_names(self) -> List[str]:
        return list(self._tag.attrs.keys())

    def text(self) -> str:
        return self._tag.get_text()

    def remove(self) -> None:
        if not self._tag.decomposed:
            self._tag.decompose()


class SoupDocument(MarkupDocument):
    def __init__(self, soup: BeautifulSoup):
        self._soup = soup

    @property
    def root(self) -> MarkupNode:
        return SoupNode(self._soup)

    def serialize(self) -> str:
        return self._soup.decode()


class SoupHtmlBuilder(TreeBuilder):
    """Tolerant HTML fragment builder; never raises on malformed markup."""

    def __init__(self, parser: str = "html.parser"):
        self.parser = parser

    def parse(self, text: str) -> MarkupDocument:
        return SoupDocument(BeautifulSoup(text or "", self.parser))
