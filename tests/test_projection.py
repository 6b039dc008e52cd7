import unittest
from datetime import datetime

from s3_filemanager.models import FileEntry, FileType, FolderEntry, ObjectRecord
from s3_filemanager.projection import natural_key, project, search_entries, sort_entries


class ProjectionTests(unittest.TestCase):
    def setUp(self):
        self.catalog = [
            ObjectRecord(key="docs/report.pdf", size=100),
            ObjectRecord(key="docs/img/pic.png", size=50),
            ObjectRecord(key="readme.txt", size=10),
        ]

    def test_root_projection_groups_keys_into_folders(self):
        entries = project(self.catalog, "")

        self.assertEqual(["docs/", "readme.txt"], [entry.key for entry in entries])
        self.assertIsInstance(entries[0], FolderEntry)
        self.assertEqual("docs", entries[0].name)
        self.assertIsInstance(entries[1], FileEntry)
        self.assertEqual(10, entries[1].size)
        self.assertEqual(FileType.DOCUMENT, entries[1].file_type)

    def test_nested_projection(self):
        entries = project(self.catalog, "docs/")

        self.assertEqual(["docs/img/", "docs/report.pdf"], [entry.key for entry in entries])
        self.assertEqual(["img", "report.pdf"], [entry.name for entry in entries])
        self.assertEqual(FileType.FOLDER, entries[0].file_type)

    def test_path_without_trailing_slash_is_normalised(self):
        entries = project(self.catalog, "docs")

        self.assertEqual(["docs/img/", "docs/report.pdf"], [entry.key for entry in entries])
        self.assertEqual(["img", "report.pdf"], [entry.name for entry in entries])

    def test_empty_catalog_returns_no_entries(self):
        self.assertEqual((), project([], ""))
        self.assertEqual((), project([], "docs/", "report"))

    def test_directory_marker_is_not_shown_as_file(self):
        catalog = [ObjectRecord(key="docs/"), ObjectRecord(key="docs/a.txt")]

        entries = project(catalog, "docs/")

        self.assertEqual(["docs/a.txt"], [entry.key for entry in entries])

    def test_folders_are_deduplicated(self):
        catalog = [
            ObjectRecord(key="a/1.txt"),
            ObjectRecord(key="a/2.txt"),
            ObjectRecord(key="a/b/3.txt"),
            ObjectRecord(key="c.txt"),
        ]

        entries = project(catalog, "")

        self.assertEqual(["a/", "c.txt"], [entry.key for entry in entries])

    def test_every_record_is_represented_exactly_once(self):
        catalog = [
            ObjectRecord(key=key)
            for key in (
                "x/1", "x/y/2", "x/y/z/3", "x/4", "x/w/5", "other/6", "x", "xy/7",
            )
        ]
        for path in ("", "x/", "x/y/", "x/y/z/", "missing/"):
            entries = project(catalog, path)
            keys = [entry.key for entry in entries]
            self.assertEqual(len(keys), len(set(keys)), path)
            for record in catalog:
                if not record.key.startswith(path) or record.key == path:
                    continue
                covering = [
                    key for key in keys
                    if key == record.key or (key.endswith("/") and record.key.startswith(key))
                ]
                self.assertEqual(1, len(covering), (path, record.key))

    def test_entries_outside_current_path_are_ignored(self):
        entries = project(self.catalog, "img/")

        self.assertEqual((), entries)


class SearchProjectionTests(unittest.TestCase):
    def setUp(self):
        self.catalog = [
            ObjectRecord(key="reports/2024/q1.pdf", size=5),
            ObjectRecord(key="reports/2024/annual-report.pdf", size=7),
            ObjectRecord(key="photos/report-day.png", size=3),
            ObjectRecord(key="notes.txt", size=1),
        ]

    def test_search_matches_file_names_case_insensitively(self):
        entries = project(self.catalog, "", "  REPORT ")

        files = [entry for entry in entries if not entry.is_folder]
        self.assertEqual(
            {"reports/2024/annual-report.pdf", "photos/report-day.png"},
            {entry.key for entry in files},
        )
        for entry in files:
            self.assertEqual(entry.key, entry.full_path)

    def test_search_matches_folder_segments(self):
        entries = project(self.catalog, "", "2024")

        self.assertEqual(["reports/2024/"], [entry.key for entry in entries])
        self.assertEqual("2024", entries[0].name)

    def test_search_is_independent_of_current_path(self):
        expected = project(self.catalog, "", "report")
        for path in ("reports/", "reports/2024/", "photos/", "nowhere/"):
            self.assertEqual(expected, project(self.catalog, path, "report"))

    def test_search_results_are_deduplicated(self):
        catalog = self.catalog + [ObjectRecord(key="reports/summary.txt")]

        entries = search_entries(catalog, "reports")

        keys = [entry.key for entry in entries]
        self.assertEqual(keys.count("reports/"), 1)
        self.assertEqual(len(keys), len(set(keys)))

    def test_search_folders_come_first(self):
        entries = project(self.catalog, "", "report")

        self.assertTrue(entries[0].is_folder)
        self.assertEqual("reports/", entries[0].key)
        self.assertTrue(all(not entry.is_folder for entry in entries[1:]))

    def test_blank_query_uses_folder_view(self):
        self.assertEqual(project(self.catalog, ""), project(self.catalog, "", "   "))


class SortTests(unittest.TestCase):
    def setUp(self):
        self.entries = [
            FileEntry(key="b10.txt", name="b10.txt", size=5, last_modified=datetime(2024, 1, 3)),
            FolderEntry(key="zeta/", name="zeta"),
            FileEntry(key="B2.txt", name="B2.txt", size=50),
            FileEntry(key="a.txt", name="a.txt", size=1, last_modified=datetime(2024, 1, 1)),
            FolderEntry(key="alpha/", name="alpha"),
        ]

    def test_name_sort_is_numeric_and_case_insensitive(self):
        ordered = sort_entries(self.entries, "name", "asc")

        self.assertEqual(["alpha", "zeta", "a.txt", "B2.txt", "b10.txt"], [entry.name for entry in ordered])

    def test_descending_keeps_folders_first(self):
        ordered = sort_entries(self.entries, "name", "desc")

        self.assertEqual(["zeta", "alpha", "b10.txt", "B2.txt", "a.txt"], [entry.name for entry in ordered])

    def test_date_sort_treats_missing_dates_as_epoch(self):
        ordered = sort_entries(self.entries, "date", "asc")

        self.assertEqual(["B2.txt", "a.txt", "b10.txt"], [entry.name for entry in ordered[2:]])

    def test_size_sort(self):
        ordered = sort_entries(self.entries, "size", "desc")

        self.assertEqual(["B2.txt", "b10.txt", "a.txt"], [entry.name for entry in ordered[2:]])
        self.assertTrue(all(entry.is_folder for entry in ordered[:2]))

    def test_sorting_is_idempotent(self):
        for field in ("name", "date", "size"):
            for order in ("asc", "desc"):
                once = sort_entries(self.entries, field, order)
                self.assertEqual(once, sort_entries(once, field, order))

    def test_sort_is_stable_for_equal_keys(self):
        entries = [
            FileEntry(key="one", name="one", size=1),
            FileEntry(key="two", name="two", size=1),
            FileEntry(key="three", name="three", size=1),
        ]

        self.assertEqual(["one", "two", "three"], [entry.key for entry in sort_entries(entries, "size")])

    def test_invalid_sort_field_raises(self):
        with self.assertRaises(ValueError):
            sort_entries(self.entries, "colour")

    def test_natural_key_ignores_accents(self):
        self.assertEqual(natural_key("Résumé"), natural_key("resume"))
        self.assertLess(natural_key("file2"), natural_key("file10"))


if __name__ == "__main__":
    unittest.main()
