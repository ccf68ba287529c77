"""Unit tests for mapping stored upload URLs back to files."""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from app.core.config import settings
from app.services import storage


class TestStoredPath(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.root = Path(self.tmp.name) / "uploads"
        self.root.mkdir()
        patcher = patch.object(settings, "UPLOAD_DIR", str(self.root))
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_url_written_by_save_upload_maps_inside_root(self) -> None:
        path = storage.stored_path("/uploads/icons/123-456.png")
        self.assertEqual(path, self.root.resolve() / "icons" / "123-456.png")

    def test_foreign_urls_never_map_to_a_path(self) -> None:
        for url in (
            None,
            "",
            "https://cdn.example.com/uploads/icons/a.png",
            "/uploads/../x/.env",
            "/uploads/../.env",
            "/uploads/icons/../../.env",
            "/uploads/secrets/a.png",
            "/uploads/icons/nested/a.png",
            "/uploads/icons",
            "/static/icons/a.png",
        ):
            with self.subTest(url=url):
                self.assertIsNone(storage.stored_path(url))

    def test_delete_upload_leaves_files_outside_root(self) -> None:
        outside = Path(self.tmp.name) / "keep.env"
        outside.write_text("SECRET=1")
        storage.delete_upload("/uploads/../keep.env")
        storage.delete_upload("/uploads/../x/keep.env")
        self.assertTrue(outside.exists())

    def test_delete_upload_removes_stored_file(self) -> None:
        (self.root / "models").mkdir()
        stored = self.root / "models" / "1-2.glb"
        stored.write_bytes(b"glTF")
        storage.delete_upload("/uploads/models/1-2.glb")
        self.assertFalse(stored.exists())
