#!/usr/bin/env python
"""
Building blocks for request bodies.  An element knows its tag and
holds an optional text value, attributes and child elements; the
builders combine them with ``+`` and serialize the root with
``tostring()``.
"""
import sys
from collections.abc import Iterable
from typing import ClassVar
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

from lxml import etree
from lxml.etree import _Element

from caldav_connector.lib.namespace import nsmap
from caldav_connector.lib.python_utilities import to_unicode

if sys.version_info < (3, 11):
    from typing_extensions import Self
else:
    from typing import Self


class BaseElement:
    tag: ClassVar[Optional[str]] = None

    def __init__(
        self, name: Optional[str] = None, value: Union[str, bytes, None] = None
    ) -> None:
        self.children: List[BaseElement] = []
        self.attributes: Dict[str, str] = {}
        self.value: Optional[str] = to_unicode(value)
        if name is not None:
            self.attributes["name"] = name

    def __add__(self, other: Union["BaseElement", Iterable["BaseElement"]]) -> Self:
        return self.append(other)

    def append(self, element: Union["BaseElement", Iterable["BaseElement"]]) -> Self:
        """Adds one child or several; returns self so appends can be chained"""
        if isinstance(element, Iterable):
            self.children.extend(element)
        else:
            self.children.append(element)
        return self

    def xmlelement(self) -> _Element:
        if self.tag is None:
            raise ValueError("Unexpected value None for self.tag")
        root = etree.Element(self.tag, nsmap=nsmap)
        if self.value is not None:
            root.text = self.value
        for key, value in self.attributes.items():
            root.set(key, value)
        for child in self.children:
            root.append(child.xmlelement())
        return root

    def tostring(self) -> bytes:
        """The element as an UTF-8 encoded XML document, ready for the wire"""
        return etree.tostring(self.xmlelement(), encoding="utf-8", xml_declaration=True)


class NamedBaseElement(BaseElement):
    """An element identified by its name attribute, like a comp-filter"""

    def __init__(self, name: Optional[str] = None) -> None:
        super().__init__(name=name)

    def xmlelement(self) -> _Element:
        if self.attributes.get("name") is None:
            raise ValueError("name attribute must be defined")
        return super().xmlelement()


class ValuedBaseElement(BaseElement):
    def __init__(self, value: Union[str, bytes, None] = None) -> None:
        super().__init__(value=value)
