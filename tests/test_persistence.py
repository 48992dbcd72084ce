import json
import tempfile
import unittest
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import requests

from menulayout.core.constants import LayoutType, SectionKind
from menulayout.core.exceptions import MalformedConfig, PersistenceFailure, VersionConflict
from menulayout.core.models import GridPosition, GridSize, LayoutConfig, Section, SectionContent, ThemeTokens
from menulayout.io.layout_store import HttpLayoutStore, JsonFileLayoutStore
from menulayout.io.persistence import PersistenceAdapter
from menulayout.io.serialization import config_from_dict, config_to_dict

from tests.fakes import FakeClock, MemoryStore


def sample_config(menu_key: str = "Lunch") -> LayoutConfig:
    return LayoutConfig(
        menu_key=menu_key,
        layout_type=LayoutType.GRID,
        columns=2,
        theme=ThemeTokens(primary_color="#0891b2", elevation=3),
        sections=[
            Section(
                id="category-1",
                kind=SectionKind.CATEGORY,
                position=GridPosition(0, 0),
                size=GridSize(1, 4),
                content=SectionContent(text="Soups", background_color="#0891b2", text_color="#ffffff"),
                category_id="1",
                title="Soups",
            ),
            Section(
                id="items-1",
                kind=SectionKind.ITEMS,
                position=GridPosition(1, 0),
                size=GridSize(2, 4),
                category_id="1",
            ),
            Section(
                id="ad-1",
                kind=SectionKind.AD,
                position=GridPosition(7, 1),
                size=GridSize(2, 3),
                content=SectionContent(
                    text="Happy hour",
                    subtitle="5-7pm",
                    image_url="https://example.test/ad.png",
                    background_color="#10b981",
                    text_color="#ffffff",
                ),
                editable=True,
                title="Advertisement",
            ),
        ],
    )


class SerializationTests(unittest.TestCase):
    def test_round_trip_preserves_positions_sizes_and_content(self) -> None:
        config = sample_config()
        restored = config_from_dict(json.loads(json.dumps(config_to_dict(config))), "Lunch")
        self.assertEqual(restored, config)

    def test_document_uses_camel_case_keys(self) -> None:
        document = config_to_dict(sample_config())
        self.assertEqual(document["layoutType"], "grid")
        self.assertEqual(document["theme"]["primaryColor"], "#0891b2")
        section = document["sections"][2]
        self.assertEqual(section["gridPosition"], {"row": 7, "col": 1})
        self.assertEqual(section["gridSize"], {"rowSpan": 2, "colSpan": 3})
        self.assertEqual(section["content"]["imageUrl"], "https://example.test/ad.png")
        self.assertNotIn("content", document["sections"][1])

    def test_missing_fields_fall_back_individually(self) -> None:
        config = config_from_dict(
            {"sections": [{"id": "ad-1", "kind": "ad", "gridPosition": {"row": 3}}]},
            "Dinner",
        )
        self.assertEqual(config.menu_key, "Dinner")
        self.assertEqual(config.layout_type, LayoutType.LIST)
        self.assertEqual(config.theme, ThemeTokens())
        section = config.sections[0]
        self.assertEqual(section.position, GridPosition(3, 0))
        self.assertEqual(section.size, GridSize(1, 4))
        self.assertTrue(section.editable)

    def test_legacy_snake_case_document(self) -> None:
        config = config_from_dict(
            {
                "selectedMenu": "Brunch",
                "layout_type": "grid",
                "styling": {"bg_color": "#000000", "primary_color": "#ff0000", "card_elevation": 4},
                "sections": [
                    {
                        "id": "items-7",
                        "type": "items",
                        "category_id": 7,
                        "gridPosition": {"row": 1, "col": 0},
                        "gridSize": {"rowSpan": 2, "colSpan": 4},
                    }
                ],
            },
            "ignored",
        )
        self.assertEqual(config.menu_key, "Brunch")
        self.assertEqual(config.layout_type, LayoutType.GRID)
        self.assertEqual(config.theme.background_color, "#000000")
        self.assertEqual(config.theme.elevation, 4)
        self.assertEqual(config.sections[0].category_id, "7")
        self.assertFalse(config.sections[0].editable)

    def test_bad_values_are_replaced_and_bad_sections_dropped(self) -> None:
        config = config_from_dict(
            {
                "layoutType": "masonry",
                "columns": "two",
                "sections": [{"kind": "ad"}, "junk", {"id": "x", "kind": "banner"}],
            },
            "Lunch",
        )
        self.assertEqual(config.layout_type, LayoutType.LIST)
        self.assertEqual(config.columns, 1)
        self.assertEqual(config.sections, [])

    def test_non_object_document_is_malformed(self) -> None:
        with self.assertRaises(MalformedConfig):
            config_from_dict(["not", "a", "layout"], "Lunch")


class DebounceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.store = MemoryStore()
        self.adapter = PersistenceAdapter(self.store, debounce_seconds=0.5, clock=self.clock)

    def test_burst_of_saves_writes_once_with_last_state(self) -> None:
        config = sample_config()
        for row in range(5):
            config.sections[2].position = GridPosition(row + 3, 1)
            self.adapter.save(config)
            self.clock.advance(0.1)
        self.assertIsNone(self.adapter.poll())
        self.assertEqual(self.store.writes, 0)
        self.clock.advance(0.5)
        self.assertEqual(self.adapter.poll(), 1)
        self.assertEqual(self.store.writes, 1)
        stored = self.store.documents["Lunch"]["sections"][2]["gridPosition"]
        self.assertEqual(stored, {"row": 7, "col": 1})
        self.assertFalse(self.adapter.dirty)

    def test_snapshot_is_taken_at_save_time(self) -> None:
        config = sample_config()
        self.adapter.save(config)
        config.sections[2].position = GridPosition(11, 0)
        self.adapter.flush()
        self.assertEqual(self.store.documents["Lunch"]["sections"][2]["gridPosition"], {"row": 7, "col": 1})

    def test_failed_write_is_surfaced_not_retried(self) -> None:
        self.store.fail = True
        self.adapter.save(sample_config())
        self.clock.advance(1)
        with self.assertRaises(PersistenceFailure):
            self.adapter.poll()
        self.assertIsInstance(self.adapter.last_error, PersistenceFailure)
        self.assertIsNone(self.adapter.poll())

    def test_failed_snapshot_is_written_by_next_flush(self) -> None:
        config = sample_config()
        self.adapter.save(config)
        self.store.fail = True
        with self.assertRaises(PersistenceFailure):
            self.adapter.flush()
        self.assertTrue(self.adapter.dirty)
        self.assertTrue(self.adapter.has_pending)

        self.store.fail = False
        self.assertEqual(self.adapter.flush(), 1)
        self.assertFalse(self.adapter.dirty)
        self.assertIsNone(self.adapter.last_error)
        self.assertEqual(self.store.documents["Lunch"]["sections"], config_to_dict(config)["sections"])

    def test_save_after_failure_rearms_debounce(self) -> None:
        self.store.fail = True
        self.adapter.save(sample_config())
        self.clock.advance(1)
        with self.assertRaises(PersistenceFailure):
            self.adapter.poll()
        self.store.fail = False
        self.adapter.save(sample_config())
        self.assertIsNone(self.adapter.poll())
        self.clock.advance(1)
        self.assertEqual(self.adapter.poll(), 1)

    def test_saving_another_menu_flushes_pending_one(self) -> None:
        self.adapter.save(sample_config("Lunch"))
        self.adapter.save(sample_config("Dinner"))
        self.assertIn("Lunch", self.store.documents)
        self.assertNotIn("Dinner", self.store.documents)

    def test_discard_drops_pending(self) -> None:
        self.adapter.save(sample_config())
        self.assertTrue(self.adapter.discard())
        self.clock.advance(1)
        self.assertIsNone(self.adapter.poll())
        self.assertEqual(self.store.writes, 0)

    def test_versions_advance_per_write(self) -> None:
        config = sample_config()
        self.adapter.save(config)
        self.assertEqual(self.adapter.flush(), 1)
        self.adapter.save(config)
        self.assertEqual(self.adapter.flush(), 2)

    def test_concurrent_editor_causes_version_conflict(self) -> None:
        self.adapter.write_now(sample_config())
        other = PersistenceAdapter(self.store, clock=self.clock)
        theirs = other.load("Lunch")
        other.write_now(theirs)
        self.adapter.save(sample_config())
        with self.assertRaises(VersionConflict):
            self.adapter.flush()


class LoadTests(unittest.TestCase):
    def test_missing_layout_yields_default(self) -> None:
        adapter = PersistenceAdapter(MemoryStore())
        config = adapter.load("Lunch")
        self.assertEqual(config, LayoutConfig(menu_key="Lunch"))

    def test_load_is_faithful(self) -> None:
        store = MemoryStore()
        adapter = PersistenceAdapter(store)
        adapter.write_now(sample_config())
        loaded = adapter.load("Lunch")
        expected = sample_config()
        expected.version = 1
        self.assertEqual(loaded, expected)

    def test_malformed_document_yields_default(self) -> None:
        store = MemoryStore()
        store.documents["Lunch"] = "garbage"  # type: ignore[assignment]
        config = PersistenceAdapter(store).load("Lunch")
        self.assertEqual(config.sections, [])


class JsonFileLayoutStoreTests(unittest.TestCase):
    def test_write_read_delete(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = JsonFileLayoutStore(Path(tmpdir))
            document = config_to_dict(sample_config())
            self.assertIsNone(store.read("Lunch"))
            self.assertEqual(store.write("Lunch", document, 0), 1)
            stored = store.read("Lunch")
            self.assertEqual(stored["version"], 1)
            self.assertEqual(stored["sections"], document["sections"])
            wrapper = json.loads(store.path_for("Lunch").read_text(encoding="utf-8"))
            self.assertEqual(wrapper["menu_key"], "Lunch")
            self.assertTrue(store.delete("Lunch"))
            self.assertFalse(store.delete("Lunch"))

    def test_stale_write_is_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = JsonFileLayoutStore(Path(tmpdir))
            document = config_to_dict(sample_config())
            store.write("Lunch", document, 0)
            store.write("Lunch", document, 1)
            with self.assertRaises(VersionConflict):
                store.write("Lunch", document, 1)

    def test_distinct_keys_get_distinct_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = JsonFileLayoutStore(Path(tmpdir))
            self.assertNotEqual(store.path_for("Lunch Menu"), store.path_for("lunch-menu"))

    def test_corrupt_file_reads_as_malformed(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = JsonFileLayoutStore(Path(tmpdir))
            store.path_for("Lunch").write_text("{not json", encoding="utf-8")
            with self.assertRaises(MalformedConfig):
                store.read("Lunch")
            config = PersistenceAdapter(store).load("Lunch")
            self.assertEqual(config.sections, [])


class HttpLayoutStoreTests(unittest.TestCase):
    def make_response(self, status: int, payload: Any = None) -> MagicMock:
        response = MagicMock()
        response.status_code = status
        response.json.return_value = payload
        if status >= 400:
            response.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
        return response

    def test_read_unwraps_config(self) -> None:
        store = HttpLayoutStore(base_url="https://api.example.test", token="secret")
        with patch("menulayout.io.layout_store.requests.request") as request:
            request.return_value = self.make_response(200, {"config": {"version": 3}})
            self.assertEqual(store.read("Lunch Menu"), {"version": 3})
        method, url = request.call_args.args
        self.assertEqual(method, "GET")
        self.assertEqual(url, "https://api.example.test/menus/Lunch%20Menu/layout")
        self.assertEqual(request.call_args.kwargs["headers"], {"Authorization": "Bearer secret"})

    def test_missing_layout_reads_as_none(self) -> None:
        store = HttpLayoutStore(base_url="https://api.example.test")
        with patch("menulayout.io.layout_store.requests.request") as request:
            request.return_value = self.make_response(404)
            self.assertIsNone(store.read("Lunch"))

    def test_conflict_status_raises_version_conflict(self) -> None:
        store = HttpLayoutStore(base_url="https://api.example.test")
        with patch("menulayout.io.layout_store.requests.request") as request:
            request.return_value = self.make_response(409)
            with self.assertRaises(VersionConflict):
                store.write("Lunch", {}, 2)
        self.assertEqual(request.call_args.kwargs["json"], {"config": {}, "expectedVersion": 2})

    def test_network_error_becomes_persistence_failure(self) -> None:
        store = HttpLayoutStore(base_url="https://api.example.test")
        with patch("menulayout.io.layout_store.requests.request") as request:
            request.side_effect = requests.ConnectionError("down")
            with self.assertRaises(PersistenceFailure):
                store.write("Lunch", {}, 0)

    def test_missing_url_is_rejected(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            with self.assertRaises(RuntimeError):
                HttpLayoutStore()


if __name__ == "__main__":
    unittest.main()
