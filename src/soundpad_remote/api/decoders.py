"""Reply decoders: turn Soundpad's XML listings into Sound and Category records.

Decoding happens in two steps. ``parse_markup`` is a generic XML-to-dict
conversion: attributes become keys with scalar-inferred values, a child tag
that occurs once becomes a bare mapping and a repeated one a list, and an
element without attributes or children becomes its text. The ``decode_*``
functions then normalize that shape into typed records. Any callable with the
same signature as ``parse_markup`` can be passed as ``decode``.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any, Callable

from soundpad_remote.errors import MarkupError
from soundpad_remote.models.records import Category, Sound

MarkupDecoder = Callable[[str], dict[str, Any]]


def infer_scalar(text: str) -> Any:
    """Turn attribute text into bool/int/float when it round-trips exactly."""
    if text in ("true", "false"):
        return text == "true"
    for convert in (int, float):
        try:
            value = convert(text)
        except ValueError:
            continue
        if str(value) == text:
            return value
    return text


def _element_to_value(element: ET.Element) -> Any:
    node: dict[str, Any] = {
        name: infer_scalar(value) for name, value in element.attrib.items()
    }
    repeated: set[str] = set()
    for child in element:
        value = _element_to_value(child)
        if child.tag not in node:
            node[child.tag] = value
        elif child.tag in repeated:
            node[child.tag].append(value)
        else:
            node[child.tag] = [node[child.tag], value]
            repeated.add(child.tag)

    text = (element.text or "").strip()
    if not node:
        return text
    if text:
        node["#text"] = text
    return node


def parse_markup(text: str) -> dict[str, Any]:
    """Decode an XML document into ``{root_tag: value}``."""
    try:
        root = ET.fromstring(text.strip().lstrip("\ufeff"))
    except ET.ParseError as e:
        raise MarkupError(f"Invalid listing markup: {e}") from e
    return {root.tag: _element_to_value(root)}


def as_list(value: Any) -> list[Any]:
    """Normalize a decoded child value (absent, empty, single or repeated) to a list."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


def _root(text: str, tag: str, decode: MarkupDecoder) -> dict[str, Any]:
    if not text.strip():
        return {}
    root = decode(text).get(tag)
    return root if isinstance(root, dict) else {}


def _sounds(value: Any) -> list[Sound]:
    return [Sound.model_validate(entry) for entry in as_list(value) if isinstance(entry, dict)]


def decode_sound_list(text: str, decode: MarkupDecoder = parse_markup) -> list[Sound]:
    """Decode a ``<Soundlist>`` reply. An empty list element yields ``[]``."""
    return _sounds(_root(text, "Soundlist", decode).get("Sound"))


def _category(node: dict[str, Any], with_sounds: bool) -> Category:
    fields = {
        key: value
        for key, value in node.items()
        if key not in ("Category", "Sound", "#text")
    }
    fields["subCategories"] = [
        _category(child, with_sounds)
        for child in as_list(node.get("Category"))
        if isinstance(child, dict)
    ]
    if with_sounds:
        fields["sounds"] = _sounds(node.get("Sound"))
    return Category.model_validate(fields)


def decode_categories(
    text: str,
    with_sounds: bool = False,
    decode: MarkupDecoder = parse_markup,
) -> list[Category]:
    """Decode a ``<Categories>`` reply into the category tree, in document order."""
    nodes = as_list(_root(text, "Categories", decode).get("Category"))
    return [_category(node, with_sounds) for node in nodes if isinstance(node, dict)]


def decode_category(
    text: str,
    with_sounds: bool = False,
    decode: MarkupDecoder = parse_markup,
) -> Category | None:
    categories = decode_categories(text, with_sounds, decode)
    return categories[0] if categories else None
