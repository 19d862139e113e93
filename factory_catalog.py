from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable

FACTORIES_FILE = Path("data/factories.json")
COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


@dataclass(frozen=True)
class FactoryDefinition:
    key: str
    display_name: str
    color: str

    def to_runtime_dict(self) -> Dict[str, str]:
        return {
            "display_name": self.display_name,
            "color": self.color,
        }


DEFAULT_FACTORIES: Dict[str, FactoryDefinition] = {
    "foo": FactoryDefinition("foo", "Foo", "#DB5141"),
    "bar": FactoryDefinition("bar", "Bar", "#D03764"),
    "baz": FactoryDefinition("baz", "Baz", "#8E32AA"),
    "fab": FactoryDefinition("fab", "Fab", "#613DB1"),
    "fizz": FactoryDefinition("fizz", "Fizz", "#4751AF"),
    "buzz": FactoryDefinition("buzz", "Buzz", "#5495EC"),
    "fizzbuzz": FactoryDefinition("fizzbuzz", "FizzBuzz", "#58A7EE"),
}


def _is_valid_color(value: Any) -> bool:
    return isinstance(value, str) and bool(COLOR_RE.fullmatch(value))


def _parse_factory_entry(key: str, entry: Dict[str, Any]) -> FactoryDefinition | None:
    default = DEFAULT_FACTORIES.get(key)
    if default is None:
        return None

    display_name = entry.get("display_name", default.display_name)
    color = entry.get("color", default.color)

    if not isinstance(display_name, str) or not display_name.strip():
        return None
    if not _is_valid_color(color):
        return None

    return FactoryDefinition(
        key=key,
        display_name=display_name.strip(),
        color=color.upper(),
    )


def _ordered_runtime_catalog(factories: Iterable[FactoryDefinition]) -> Dict[str, Dict[str, str]]:
    order = list(DEFAULT_FACTORIES)
    ordered = sorted(factories, key=lambda factory: order.index(factory.key))
    return {factory.key: factory.to_runtime_dict() for factory in ordered}


def load_factory_catalog(path: Path = FACTORIES_FILE) -> Dict[str, Dict[str, str]]:
    """Return display names and colours for every factory kind.

    ``path`` may override any subset of kinds.  Entries with unknown keys,
    blank names or colours that are not ``#RRGGBB`` are skipped and the
    built-in definition is kept for that kind.
    """
    if not path.exists():
        return _ordered_runtime_catalog(DEFAULT_FACTORIES.values())

    try:
        raw = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return _ordered_runtime_catalog(DEFAULT_FACTORIES.values())

    if not isinstance(raw, dict):
        return _ordered_runtime_catalog(DEFAULT_FACTORIES.values())

    factories: Dict[str, FactoryDefinition] = dict(DEFAULT_FACTORIES)
    for key, entry in raw.items():
        if not isinstance(key, str) or not isinstance(entry, dict):
            continue
        factory = _parse_factory_entry(key, entry)
        if factory is None:
            continue
        factories[key] = factory

    return _ordered_runtime_catalog(factories.values())
