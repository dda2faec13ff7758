import json
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from master_editor.config_loader import StorageConfig
from master_editor.errors import PersistenceError
from master_editor.model import (
    DEFAULT_REQUEST,
    AspectRatio,
    ChapterRequest,
    ChapterResponse,
    GenerationResult,
    HistoryItem,
)
from master_editor.storage import DefaultsStore, HistoryStore, LocalStorage, open_stores


def make_item(item_id: str, timestamp: int) -> HistoryItem:
    text = ChapterResponse(
        title=f"Chapter {item_id}",
        content="**Bold** opening.\n\nSecond paragraph.",
        editor_analysis="Tight pacing.",
        image_prompt="A lighthouse at dusk",
    )
    return HistoryItem(
        id=item_id,
        timestamp=timestamp,
        request=ChapterRequest(book_title="Book", genre="Noir", chapter_name=item_id, plot_summary="Plot"),
        result=GenerationResult(text_data=text, image_url="data:image/png;base64,AAAA"),
    )


class TestLocalStorage(unittest.TestCase):
    def test_missing_key_reads_as_none(self) -> None:
        with TemporaryDirectory() as tmp:
            self.assertIsNone(LocalStorage(tmp).get_item("absent"))

    def test_set_then_get(self) -> None:
        with TemporaryDirectory() as tmp:
            medium = LocalStorage(Path(tmp) / "nested")
            medium.set_item("key", "value ü")
            self.assertEqual(medium.get_item("key"), "value ü")
            self.assertEqual([p.name for p in (Path(tmp) / "nested").iterdir()], ["key.json"])

    def test_remove_item(self) -> None:
        with TemporaryDirectory() as tmp:
            medium = LocalStorage(tmp)
            medium.set_item("key", "value")
            medium.remove_item("key")
            medium.remove_item("key")
            self.assertIsNone(medium.get_item("key"))

    def test_write_failure_raises_persistence_error(self) -> None:
        with TemporaryDirectory() as tmp:
            medium = LocalStorage(tmp)
            with patch("master_editor.storage.os.replace", side_effect=OSError("disk full")):
                with self.assertRaises(PersistenceError):
                    medium.set_item("key", "value")
            self.assertEqual(list(Path(tmp).iterdir()), [])


class TestHistoryStore(unittest.TestCase):
    def test_most_recent_first(self) -> None:
        with TemporaryDirectory() as tmp:
            store = HistoryStore(LocalStorage(tmp))
            for n in (1, 2, 3):
                store.add(make_item(f"t{n}", n))
            self.assertEqual([item.id for item in store.list()], ["t3", "t2", "t1"])
            self.assertEqual(len(store), 3)

    def test_history_survives_reload(self) -> None:
        with TemporaryDirectory() as tmp:
            store = HistoryStore(LocalStorage(tmp))
            store.add(make_item("t1", 1))
            store.add(make_item("t2", 2))

            reloaded = HistoryStore(LocalStorage(tmp))
            reloaded.load()
            self.assertEqual(reloaded.list(), store.list())
            self.assertEqual(reloaded.get("t1").request.image_aspect_ratio, AspectRatio.WIDESCREEN)
            self.assertIsNone(reloaded.warning)

    def test_remove_persists(self) -> None:
        with TemporaryDirectory() as tmp:
            store = HistoryStore(LocalStorage(tmp))
            for n in (1, 2, 3):
                store.add(make_item(f"t{n}", n))
            store.remove("t2")
            store.remove("missing")

            reloaded = HistoryStore(LocalStorage(tmp))
            reloaded.load()
            self.assertEqual([item.id for item in reloaded.list()], ["t3", "t1"])
            self.assertIsNone(reloaded.get("t2"))

    def test_duplicate_id_rejected(self) -> None:
        with TemporaryDirectory() as tmp:
            store = HistoryStore(LocalStorage(tmp))
            store.add(make_item("t1", 1))
            with self.assertRaises(ValueError):
                store.add(make_item("t1", 2))

    def test_removed_id_can_be_added_again(self) -> None:
        with TemporaryDirectory() as tmp:
            store = HistoryStore(LocalStorage(tmp))
            item = make_item("t1", 1)
            store.add(item)
            store.remove("t1")
            store.add(item)
            self.assertEqual([i.id for i in store.list()], ["t1"])

    def test_reloaded_ids_are_tracked(self) -> None:
        with TemporaryDirectory() as tmp:
            HistoryStore(LocalStorage(tmp)).add(make_item("t1", 1))
            reloaded = HistoryStore(LocalStorage(tmp))
            reloaded.load()
            with self.assertRaises(ValueError):
                reloaded.add(make_item("t1", 2))

    def test_corrupt_history_starts_empty(self) -> None:
        with TemporaryDirectory() as tmp:
            (Path(tmp) / "master_editor_history.json").write_text("{not json", encoding="utf-8")
            store = HistoryStore(LocalStorage(tmp))
            store.load()
            self.assertEqual(store.list(), ())
            self.assertIsNotNone(store.warning)

    def test_invalid_entries_start_empty(self) -> None:
        with TemporaryDirectory() as tmp:
            (Path(tmp) / "master_editor_history.json").write_text(
                json.dumps([{"id": "x"}]), encoding="utf-8")
            store = HistoryStore(LocalStorage(tmp))
            store.load()
            self.assertEqual(len(store), 0)
            self.assertIsNotNone(store.warning)

    def test_write_failure_keeps_memory_copy(self) -> None:
        with TemporaryDirectory() as tmp:
            medium = LocalStorage(tmp)
            store = HistoryStore(medium)
            with patch.object(medium, "set_item", side_effect=PersistenceError("quota exceeded")):
                store.add(make_item("t1", 1))
            self.assertEqual([item.id for item in store.list()], ["t1"])
            self.assertIn("could not be saved", store.warning)
            self.assertIsNone(medium.get_item("master_editor_history"))


class TestDefaultsStore(unittest.TestCase):
    def test_nothing_saved_gives_builtin_defaults(self) -> None:
        with TemporaryDirectory() as tmp:
            self.assertEqual(DefaultsStore(LocalStorage(tmp)).load(), DEFAULT_REQUEST)

    def test_saved_values_merge_over_defaults(self) -> None:
        with TemporaryDirectory() as tmp:
            medium = LocalStorage(tmp)
            medium.set_item("master_editor_defaults", json.dumps({"genre": "Space opera"}))
            loaded = DefaultsStore(medium).load()
            self.assertEqual(loaded.genre, "Space opera")
            self.assertEqual(loaded.writing_style, DEFAULT_REQUEST.writing_style)

    def test_save_and_load(self) -> None:
        with TemporaryDirectory() as tmp:
            store = DefaultsStore(LocalStorage(tmp))
            request = ChapterRequest(book_title="Book", image_aspect_ratio=AspectRatio.SQUARE)
            self.assertTrue(store.save(request))
            self.assertEqual(store.load(), request)

    def test_invalid_field_dropped_others_kept(self) -> None:
        with TemporaryDirectory() as tmp:
            medium = LocalStorage(tmp)
            medium.set_item("master_editor_defaults", json.dumps({
                "genre": "Space opera",
                "image_aspect_ratio": "4:3",
                "retired_field": "x",
            }))
            loaded = DefaultsStore(medium).load()
            self.assertEqual(loaded.genre, "Space opera")
            self.assertEqual(loaded.image_aspect_ratio, DEFAULT_REQUEST.image_aspect_ratio)

    def test_corrupt_defaults_ignored(self) -> None:
        with TemporaryDirectory() as tmp:
            medium = LocalStorage(tmp)
            medium.set_item("master_editor_defaults", "[1, 2]")
            self.assertEqual(DefaultsStore(medium).load(), DEFAULT_REQUEST)


class TestOpenStores(unittest.TestCase):
    def test_uses_configured_keys(self) -> None:
        with TemporaryDirectory() as tmp:
            settings = StorageConfig(base_dir=tmp, history_key="h", defaults_key="d")
            history, defaults = open_stores(settings)
            history.add(make_item("t1", 1))
            defaults.save(DEFAULT_REQUEST)
            self.assertTrue((Path(tmp) / "h.json").exists())
            self.assertTrue((Path(tmp) / "d.json").exists())


if __name__ == "__main__":
    unittest.main()
