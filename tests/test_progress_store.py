"""
Tests for saving and restoring questionnaire progress.
"""

import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock

from pipassist.exceptions import StorageError
from pipassist.models import Answer
from pipassist.questionnaire.progress_store import ProgressStore, progress_key
from pipassist.storage import InMemoryStore, YamlFileStore

from fixtures import create_children_module


class TestProgressStore(unittest.TestCase):
    """Test cases for ProgressStore."""

    def setUp(self):
        self.store = InMemoryStore()
        self.progress = ProgressStore(self.store)
        self.module = create_children_module()

    def _save(self, payload):
        self.store.set(progress_key(self.module.module_id), json.dumps(payload))

    def test_key_is_module_scoped(self):
        self.assertEqual(progress_key("pip"), "form-progress-pip")

    def test_round_trip(self):
        answers = self.progress.default_answers(self.module)
        answers["full_name"] = Answer(question_id="full_name", value="Sara", rating=3, length=2)

        self.assertTrue(self.progress.persist(self.module.module_id, answers))
        restored = self.progress.restore(self.module)

        self.assertEqual(restored["full_name"].value, "Sara")
        self.assertEqual(restored["full_name"].rating, 3)
        self.assertEqual(restored["full_name"].length, 2)
        self.assertIsNone(restored["full_name"].ai_response)

    def test_nothing_saved_gives_defaults(self):
        restored = self.progress.restore(self.module)
        self.assertEqual(set(restored), {q.id for q in self.module.questions})
        self.assertEqual(restored["benefits"].value, [])
        self.assertEqual(restored["work"].value, {})

    def test_orphaned_entries_ignored(self):
        self._save(
            [
                {"questionId": "removed_question", "rating": 2, "length": 1, "value": "old"},
                {"questionId": "full_name", "rating": 0, "length": 1, "value": "Sara"},
            ]
        )

        restored = self.progress.restore(self.module)

        self.assertNotIn("removed_question", restored)
        self.assertEqual(restored["full_name"].value, "Sara")

    def test_corrupt_json_gives_defaults(self):
        self.store.set(progress_key(self.module.module_id), "{not json")
        restored = self.progress.restore(self.module)
        self.assertEqual(restored["full_name"].value, "")

    def test_non_list_payload_gives_defaults(self):
        self._save({"full_name": "Sara"})
        self.assertEqual(self.progress.restore(self.module)["full_name"].value, "")

    def test_mismatched_shape_discarded(self):
        self._save(
            [
                {"questionId": "benefits", "rating": 0, "length": 1, "value": "uc"},
                {"questionId": "has_children", "rating": 9, "length": 1, "value": "yes"},
            ]
        )

        restored = self.progress.restore(self.module)

        self.assertEqual(restored["benefits"].value, [])
        self.assertEqual(restored["has_children"].value, "yes")
        self.assertEqual(restored["has_children"].rating, 0)

    def test_restore_is_idempotent(self):
        self._save([{"questionId": "savings", "rating": 0, "length": 1, "value": "£200"}])
        self.assertEqual(self.progress.restore(self.module), self.progress.restore(self.module))

    def test_clear(self):
        self._save([])
        self.progress.clear(self.module.module_id)
        self.assertIsNone(self.store.get(progress_key(self.module.module_id)))

    def test_unreadable_store_gives_defaults(self):
        store = Mock()
        store.get.side_effect = StorageError("unreadable")

        restored = ProgressStore(store).restore(self.module)

        self.assertEqual(restored, self.progress.default_answers(self.module))

    def test_corrupt_store_file_gives_defaults(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "storage.yaml"
            path.write_text("- just\n- a list\n", encoding="utf-8")

            restored = ProgressStore(YamlFileStore(str(path))).restore(self.module)

        self.assertEqual(restored["full_name"].value, "")
        self.assertEqual(restored["benefits"].value, [])
