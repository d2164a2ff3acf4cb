"""Nested localization trees and their dotted-key flat form."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Union

KEY_SEPARATOR = "."


@dataclass(frozen=True)
class Leaf:
    value: str


@dataclass(frozen=True)
class Branch:
    children: Dict[str, "TreeNode"] = field(default_factory=dict)


TreeNode = Union[Leaf, Branch]


def scalar_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value), ensure_ascii=False)
    return str(value)


def tree_from_mapping(raw: Mapping[Any, Any]) -> Branch:
    """Resolve a parsed document into ``Leaf``/``Branch`` nodes.

    Mappings become branches (keys coerced to ``str``, YAML allows ints),
    everything else becomes a leaf holding its string representation.
    """
    children: Dict[str, TreeNode] = {}
    for key, value in raw.items():
        if isinstance(value, Mapping):
            children[str(key)] = tree_from_mapping(value)
        else:
            children[str(key)] = Leaf(scalar_text(value))
    return Branch(children)


def to_plain(node: TreeNode) -> Union[str, Dict[str, Any]]:
    if isinstance(node, Leaf):
        return node.value
    return {key: to_plain(child) for key, child in node.children.items()}


def _join(prefix: str, key: str) -> str:
    return key if prefix == "" else f"{prefix}{KEY_SEPARATOR}{key}"


def flatten(tree: Branch, prefix: str = "") -> Dict[str, str]:
    """Flatten ``tree`` into ``{"a.b.c": value}``.

    A dotted key that collides with a nested path keeps the value written
    last; the collision is logged.
    """
    children = tree.children
    if all(isinstance(child, Leaf) for child in children.values()):
        return {_join(prefix, key): child.value for key, child in children.items()}

    flattened: Dict[str, str] = {}

    def store(full_key: str, value: str) -> None:
        if full_key in flattened:
            logging.warning("Key collision while flattening '%s'; keeping the later value.", full_key)
        flattened[full_key] = value

    for key, child in children.items():
        full_key = _join(prefix, key)
        if isinstance(child, Branch):
            for nested_key, nested_value in flatten(child, full_key).items():
                store(nested_key, nested_value)
        else:
            store(full_key, child.value)
    return flattened


def unflatten(flat: Mapping[str, str]) -> Branch:
    """Rebuild the nested tree from dotted keys."""
    root: Dict[str, Any] = {}
    for key, value in flat.items():
        segments = key.split(KEY_SEPARATOR)
        current = root
        for segment in segments[:-1]:
            node = current.get(segment)
            if not isinstance(node, dict):
                if node is not None:
                    logging.warning(
                        "Key '%s' descends through leaf '%s'; replacing the leaf with a branch.",
                        key,
                        segment,
                    )
                node = {}
                current[segment] = node
            current = node
        last = segments[-1]
        if isinstance(current.get(last), dict):
            logging.warning("Key '%s' overwrites a nested branch with a leaf.", key)
        current[last] = value
    return tree_from_mapping(root)
