"""Read-only access to menu categories and items.

The catalog is owned by the CRUD side of the portal. The layout engine only
reads snapshots through a :class:`CatalogProvider` and never writes back.
"""

from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

import requests

from ..core.exceptions import LayoutError
from ..core.models import Category, MenuItem
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_MENU_NAME = "Default Menu"

T = TypeVar("T")


class CatalogError(LayoutError):
    """Raised when a catalog snapshot cannot be fetched."""


def _blank(value: Any) -> bool:
    return value is None or value == ""


def item_category_id(item: MenuItem) -> Optional[str]:
    """Authoritative category id: the item column first, then ``data['category_id']``."""

    if not _blank(item.category_id):
        return str(item.category_id)
    nested = item.data.get("category_id") if item.data else None
    if not _blank(nested):
        return str(nested)
    return None


def items_for_category(items: Iterable[MenuItem], category_id: str) -> List[MenuItem]:
    return [item for item in items if item_category_id(item) == str(category_id)]


def group_items_by_category(
    items: Iterable[MenuItem], categories: Iterable[Category]
) -> Dict[str, List[MenuItem]]:
    """Group items under each known category id, preserving catalog order."""

    grouped: Dict[str, List[MenuItem]] = {str(category.id): [] for category in categories}
    for item in items:
        category_id = item_category_id(item)
        if category_id in grouped:
            grouped[category_id].append(item)
    return grouped


def ordered_categories(categories: Iterable[Category]) -> List[Category]:
    """Active categories sorted by their display position, ties kept stable."""

    indexed = [(category.position, index, category) for index, category in enumerate(categories)]
    return [category for _, _, category in sorted(indexed, key=lambda e: (e[0], e[1])) if category.is_active]


def category_from_dict(raw: Dict[str, Any]) -> Category:
    return Category(
        id=str(raw["id"]),
        name=str(raw.get("name", "")),
        position=int(raw.get("position", 0) or 0),
        is_active=bool(raw.get("is_active", True)),
        color=raw.get("color"),
        icon=raw.get("icon"),
        description=raw.get("description"),
    )


def item_from_dict(raw: Dict[str, Any]) -> MenuItem:
    data = dict(raw.get("data") or {})
    return MenuItem(
        id=str(raw["id"]),
        name=str(raw.get("name") or data.get("name", "")),
        price=float(raw.get("price", data.get("price", 0.0)) or 0.0),
        description=str(raw.get("description") or data.get("description", "")),
        category_id=None if _blank(raw.get("category_id")) else str(raw.get("category_id")),
        is_active=bool(raw.get("is_active", True)),
        menu_name=raw.get("menu_name") or DEFAULT_MENU_NAME,
        data=data,
    )


def parse_records(raw_records: Any, parse: Callable[[Dict[str, Any]], T], source: str) -> List[T]:
    """Parse catalog rows, turning a malformed row into :class:`CatalogError`."""

    if not isinstance(raw_records, list):
        raise CatalogError(f"{source} must be a list, got {type(raw_records).__name__}")
    try:
        return [parse(raw) for raw in raw_records]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise CatalogError(f"Malformed record in {source}: {exc!r}") from exc


class CatalogProvider(ABC):
    """Snapshot source for categories and items of a menu."""

    @abstractmethod
    def get_categories(self, menu_key: str) -> List[Category]:
        ...

    @abstractmethod
    def get_items(self, menu_key: str) -> List[MenuItem]:
        ...


class InMemoryCatalog(CatalogProvider):
    """Catalog held in process; handy for tests and previews."""

    def __init__(
        self,
        categories: Optional[Iterable[Category]] = None,
        items: Optional[Iterable[MenuItem]] = None,
    ) -> None:
        self.categories: List[Category] = list(categories or [])
        self.items: List[MenuItem] = list(items or [])

    def get_categories(self, menu_key: str) -> List[Category]:
        return [Category(**vars(category)) for category in self.categories]

    def get_items(self, menu_key: str) -> List[MenuItem]:
        return [
            MenuItem(**{**vars(item), "data": dict(item.data)})
            for item in self.items
            if item.menu_name == menu_key and item.is_active
        ]


class JsonCatalogProvider(CatalogProvider):
    """Catalog exported to a JSON file with ``categories`` and ``items`` arrays."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise CatalogError(f"Cannot read catalog {self.path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise CatalogError(f"Catalog {self.path} must be a JSON object")
        return payload

    def get_categories(self, menu_key: str) -> List[Category]:
        return parse_records(self._read().get("categories", []), category_from_dict, str(self.path))

    def get_items(self, menu_key: str) -> List[MenuItem]:
        items = parse_records(self._read().get("items", []), item_from_dict, str(self.path))
        return [item for item in items if item.menu_name == menu_key and item.is_active]


class HttpCatalogProvider(CatalogProvider):
    """Catalog served by the portal REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout_seconds: float = 10.0,
        url_env: str = "MENU_LAYOUT_API_URL",
        token_env: str = "MENU_LAYOUT_API_TOKEN",
    ) -> None:
        self.base_url = (base_url or os.environ.get(url_env, "")).rstrip("/")
        if not self.base_url:
            raise RuntimeError(f"Missing catalog API URL in environment variable {url_env}")
        self._token = token or os.environ.get(token_env)
        self.timeout_seconds = timeout_seconds

    def _get(self, path: str, menu_key: str) -> Any:
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        try:
            response = requests.get(
                f"{self.base_url}{path}",
                params={"menu_name": menu_key},
                headers=headers,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise CatalogError(f"Catalog request {path} failed: {exc}") from exc
        except ValueError as exc:
            raise CatalogError(f"Catalog response {path} is not JSON: {exc}") from exc
        if isinstance(payload, dict):
            payload = payload.get("data") or []
        return payload

    def get_categories(self, menu_key: str) -> List[Category]:
        return parse_records(self._get("/menu/categories", menu_key), category_from_dict, "/menu/categories")

    def get_items(self, menu_key: str) -> List[MenuItem]:
        items = parse_records(self._get("/menu/items", menu_key), item_from_dict, "/menu/items")
        return [item for item in items if item.menu_name == menu_key and item.is_active]
