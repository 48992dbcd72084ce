"""Durable storage for layout documents.

Every menu layout is kept as a single JSON document. Writes are guarded by
an optimistic version check: the caller passes the version it last read or
wrote, and a store that holds a different version rejects the write with
:class:`VersionConflict`. A successful write bumps the version by one.
"""

from __future__ import annotations

import hashlib
import json
import os
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from ..core.exceptions import MalformedConfig, PersistenceFailure, VersionConflict
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_STORE_DIR = Path("local_db/collections/menu_layouts")


class LayoutStore(ABC):
    """Backend holding one layout document per menu key."""

    @abstractmethod
    def read(self, menu_key: str) -> Optional[Dict[str, Any]]:
        """Return the stored document, or None when the menu has no layout yet."""

    @abstractmethod
    def write(self, menu_key: str, document: Dict[str, Any], expected_version: int) -> int:
        """Persist ``document`` and return the new version."""

    @abstractmethod
    def delete(self, menu_key: str) -> bool:
        """Remove the stored layout; returns False when there was none."""


class JsonFileLayoutStore(LayoutStore):
    """Save layouts as JSON files under ``local_db/collections/menu_layouts/``."""

    def __init__(self, store_dir: Path | str = DEFAULT_STORE_DIR) -> None:
        self.store_dir = Path(store_dir)
        self.store_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def read(self, menu_key: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(menu_key)
        if not path.exists():
            LOGGER.debug("No stored layout for %s (%s)", menu_key, path.name)
            return None
        try:
            wrapper = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise MalformedConfig(f"Layout file {path.name} is not valid JSON: {exc}") from exc
        except OSError as exc:
            raise PersistenceFailure(f"Cannot read layout file {path}: {exc}") from exc
        if not isinstance(wrapper, dict):
            raise MalformedConfig(f"Layout file {path.name} does not hold an object")
        return wrapper.get("config")

    def write(self, menu_key: str, document: Dict[str, Any], expected_version: int) -> int:
        current = self._stored_version(menu_key)
        if current is not None and current != expected_version:
            raise VersionConflict(
                f"Layout {menu_key!r} is at version {current}, save was based on {expected_version}"
            )
        new_version = expected_version + 1
        wrapper = {
            "menu_key": menu_key,
            "updated_at": datetime.now(timezone.utc).isoformat(),
            "config": {**document, "version": new_version},
        }
        path = self.path_for(menu_key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(json.dumps(wrapper, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            raise PersistenceFailure(f"Cannot write layout file {path}: {exc}") from exc
        LOGGER.info("Layout saved: %s v%s", menu_key, new_version)
        return new_version

    def delete(self, menu_key: str) -> bool:
        path = self.path_for(menu_key)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as exc:
            raise PersistenceFailure(f"Cannot delete layout file {path}: {exc}") from exc
        LOGGER.info("Layout deleted: %s", menu_key)
        return True

    def path_for(self, menu_key: str) -> Path:
        """``{slug}_{hash}.json``: readable, yet distinct for keys that slug alike."""
        slug = re.sub(r"[^a-z0-9]+", "-", menu_key.lower()).strip("-") or "menu"
        digest = hashlib.md5(menu_key.encode("utf-8")).hexdigest()[:8]
        return self.store_dir / f"{slug}_{digest}.json"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _stored_version(self, menu_key: str) -> Optional[int]:
        try:
            document = self.read(menu_key)
        except MalformedConfig as exc:
            LOGGER.warning("Overwriting unreadable layout for %s: %s", menu_key, exc)
            return None
        if not isinstance(document, dict):
            return None
        try:
            return int(document.get("version", 0))
        except (TypeError, ValueError):
            return None


class HttpLayoutStore(LayoutStore):
    """Layouts kept behind the portal REST API."""

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
            raise RuntimeError(f"Missing layout API URL in environment variable {url_env}")
        self._token = token or os.environ.get(token_env)
        self.timeout_seconds = timeout_seconds

    def _url(self, menu_key: str) -> str:
        return f"{self.base_url}/menus/{quote(menu_key, safe='')}/layout"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"} if self._token else {}

    def _request(self, method: str, menu_key: str, **kwargs: Any) -> requests.Response:
        try:
            return requests.request(
                method,
                self._url(menu_key),
                headers=self._headers(),
                timeout=self.timeout_seconds,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise PersistenceFailure(f"Layout {method} for {menu_key!r} failed: {exc}") from exc

    def read(self, menu_key: str) -> Optional[Dict[str, Any]]:
        response = self._request("GET", menu_key)
        if response.status_code == 404:
            return None
        self._raise_for_status(response, menu_key)
        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedConfig(f"Layout response for {menu_key!r} is not JSON") from exc
        if isinstance(payload, dict) and "config" in payload:
            return payload["config"]
        return payload

    def write(self, menu_key: str, document: Dict[str, Any], expected_version: int) -> int:
        response = self._request(
            "PUT",
            menu_key,
            json={"config": document, "expectedVersion": expected_version},
        )
        if response.status_code == 409:
            raise VersionConflict(f"Layout {menu_key!r} changed on the server since version {expected_version}")
        self._raise_for_status(response, menu_key)
        try:
            return int(response.json().get("version", expected_version + 1))
        except (ValueError, AttributeError, TypeError):
            return expected_version + 1

    def delete(self, menu_key: str) -> bool:
        response = self._request("DELETE", menu_key)
        if response.status_code == 404:
            return False
        self._raise_for_status(response, menu_key)
        return True

    @staticmethod
    def _raise_for_status(response: requests.Response, menu_key: str) -> None:
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise PersistenceFailure(f"Layout API error for {menu_key!r}: {exc}") from exc
