import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from stroke2font.build_cache.io import save_manifest
from stroke2font.build_cache.models import FileFingerprint, Manifest, SchemaVersion
from stroke2font.build_cache.fingerprints import hash_configuration, list_input_files
from stroke2font.build_cache.planner import manifest_path_for, plan_changes, plan_incremental_build

T1 = 1_700_000_000_000_000_000
T2 = 1_700_000_100_000_000_000
OPTIONS = {"generate_fonts": {"name": "icons", "prefix": "i"}}


def _write(path: Path, size: int, mtime_ns: int) -> None:
    path.write_bytes(b"x" * size)
    os.utime(path, ns=(mtime_ns, mtime_ns))


class PlanChangesTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.input_dir = self.root / "icons"
        self.input_dir.mkdir()
        self.manifest_path = self.root / ".manifest.json"

    async def asyncTearDown(self) -> None:
        self._tmp.cleanup()

    async def _plan(self, previous, options=OPTIONS, **kwargs):
        return await plan_changes(self.input_dir, previous, options, manifest_path=self.manifest_path, **kwargs)

    async def test_first_build_marks_everything_changed(self) -> None:
        _write(self.input_dir / "a.svg", 100, T1)
        _write(self.input_dir / "b.svg", 50, T1)

        plan = await self._plan(None)

        self.assertEqual(plan.changed_files, ["a.svg", "b.svg"])
        self.assertEqual(plan.deleted_files, [])
        self.assertTrue(plan.options_changed)
        self.assertFalse(plan.prior_manifest_existed)
        self.assertEqual(plan.next_manifest.schema_version, SchemaVersion)
        self.assertEqual(plan.next_manifest.options_hash, hash_configuration(OPTIONS))
        self.assertEqual(plan.files_to_clean(), ["a.svg", "b.svg"])

    async def test_identical_fingerprints_are_unchanged(self) -> None:
        _write(self.input_dir / "a.svg", 100, T1)
        _write(self.input_dir / "b.svg", 50, T1)
        first = await self._plan(None)

        plan = await self._plan(first.next_manifest)

        self.assertEqual(plan.changed_files, [])
        self.assertEqual(plan.deleted_files, [])
        self.assertFalse(plan.options_changed)
        self.assertTrue(plan.prior_manifest_existed)
        self.assertTrue(plan.is_noop)

    async def test_modified_file_is_changed_and_manifest_stays_complete(self) -> None:
        _write(self.input_dir / "a.svg", 100, T1)
        _write(self.input_dir / "b.svg", 50, T1)
        first = await self._plan(None)
        _write(self.input_dir / "a.svg", 120, T2)

        plan = await self._plan(first.next_manifest)

        self.assertEqual(plan.changed_files, ["a.svg"])
        self.assertEqual(plan.deleted_files, [])
        self.assertFalse(plan.options_changed)
        self.assertEqual(set(plan.next_manifest.files), {"a.svg", "b.svg"})
        self.assertEqual(plan.next_manifest.files["a.svg"].size_bytes, 120)
        self.assertEqual(plan.files_to_clean(), ["a.svg"])

    async def test_touched_file_with_same_size_is_changed(self) -> None:
        _write(self.input_dir / "a.svg", 100, T1)
        first = await self._plan(None)
        os.utime(self.input_dir / "a.svg", ns=(T2, T2))

        plan = await self._plan(first.next_manifest)

        self.assertEqual(plan.changed_files, ["a.svg"])

    async def test_deleted_file_is_detected(self) -> None:
        _write(self.input_dir / "b.svg", 50, T1)
        previous = Manifest(
            schema_version=SchemaVersion,
            options_hash=hash_configuration(OPTIONS),
            files={
                "a.svg": FileFingerprint(rel_path="a.svg", size_bytes=100, mtime_ms=T1 / 1_000_000),
                "b.svg": FileFingerprint(rel_path="b.svg", size_bytes=50, mtime_ms=T1 / 1_000_000),
            },
        )

        plan = await self._plan(previous)

        self.assertEqual(plan.deleted_files, ["a.svg"])
        self.assertEqual(plan.changed_files, [])
        self.assertNotIn("a.svg", plan.next_manifest.files)
        self.assertFalse(plan.is_noop)
        self.assertEqual(plan.files_to_clean(), [])

    async def test_empty_directory_deletes_everything_known(self) -> None:
        previous = Manifest(
            schema_version=SchemaVersion,
            options_hash=hash_configuration(OPTIONS),
            files={"a.svg": FileFingerprint(rel_path="a.svg", size_bytes=1, mtime_ms=1.0)},
        )

        plan = await self._plan(previous)

        self.assertEqual(plan.next_manifest.files, {})
        self.assertEqual(plan.deleted_files, ["a.svg"])
        self.assertEqual(plan.changed_files, [])

    async def test_options_change_forces_full_clean(self) -> None:
        _write(self.input_dir / "a.svg", 100, T1)
        _write(self.input_dir / "b.svg", 50, T1)
        first = await self._plan(None)

        plan = await self._plan(first.next_manifest, options={"generate_fonts": {"name": "icons", "prefix": "x"}})

        self.assertEqual(plan.changed_files, [])
        self.assertTrue(plan.options_changed)
        self.assertEqual(sorted(plan.files_to_clean()), ["a.svg", "b.svg"])

    async def test_content_hash_mode_detects_same_size_rewrite(self) -> None:
        path = self.input_dir / "a.svg"
        path.write_bytes(b"aaaa")
        os.utime(path, ns=(T1, T1))
        first = await self._plan(None, content_hash=True)
        path.write_bytes(b"bbbb")
        os.utime(path, ns=(T1, T1))

        strict = await self._plan(first.next_manifest, content_hash=True)

        self.assertEqual(strict.changed_files, ["a.svg"])

    async def test_plan_does_not_depend_on_listing_or_manifest_order(self) -> None:
        for name, size in (("a.svg", 10), ("b.svg", 20), ("c.svg", 30), ("d.svg", 40)):
            _write(self.input_dir / name, size, T1)
        mtime_ms = T1 / 1_000_000
        known = {
            "b.svg": FileFingerprint(rel_path="b.svg", size_bytes=20, mtime_ms=mtime_ms),
            "c.svg": FileFingerprint(rel_path="c.svg", size_bytes=99, mtime_ms=mtime_ms),
            "y.svg": FileFingerprint(rel_path="y.svg", size_bytes=1, mtime_ms=mtime_ms),
            "x.svg": FileFingerprint(rel_path="x.svg", size_bytes=1, mtime_ms=mtime_ms),
        }
        forward = Manifest(schema_version=SchemaVersion, options_hash=hash_configuration(OPTIONS), files=known)
        backward = Manifest(
            schema_version=SchemaVersion,
            options_hash=hash_configuration(OPTIONS),
            files=dict(reversed(list(known.items()))),
        )

        plan = await self._plan(forward)
        reversed_listing = list(reversed(list_input_files(self.input_dir)))
        with mock.patch("stroke2font.build_cache.planner.list_input_files", return_value=reversed_listing):
            shuffled = await self._plan(backward)

        self.assertEqual(plan.changed_files, ["a.svg", "c.svg", "d.svg"])
        self.assertEqual(plan.deleted_files, ["x.svg", "y.svg"])
        self.assertEqual(shuffled.changed_files, plan.changed_files)
        self.assertEqual(shuffled.deleted_files, plan.deleted_files)
        self.assertEqual(shuffled.next_manifest, plan.next_manifest)
        self.assertEqual(shuffled.files_to_clean(), plan.files_to_clean())

    async def test_missing_input_directory_raises(self) -> None:
        with self.assertRaises(OSError):
            await plan_changes(self.root / "nope", None, OPTIONS, manifest_path=self.manifest_path)


class PlanIncrementalBuildTests(unittest.IsolatedAsyncioTestCase):
    async def test_reads_previous_manifest_from_output_dir(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            input_dir = root / "icons"
            output_dir = root / "out"
            input_dir.mkdir()
            output_dir.mkdir()
            _write(input_dir / "a.svg", 10, T1)

            first = await plan_incremental_build(input_dir, output_dir, OPTIONS)
            save_manifest(first.manifest_path, first.next_manifest)
            second = await plan_incremental_build(input_dir, output_dir, OPTIONS)

            self.assertEqual(first.manifest_path, manifest_path_for(output_dir))
            self.assertEqual(first.manifest_path.name, ".manifest.json")
            self.assertFalse(first.prior_manifest_existed)
            self.assertTrue(second.prior_manifest_existed)
            self.assertTrue(second.is_noop)

    async def test_corrupt_manifest_is_treated_as_first_build(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            input_dir = root / "icons"
            output_dir = root / "out"
            input_dir.mkdir()
            output_dir.mkdir()
            _write(input_dir / "a.svg", 10, T1)
            manifest_path_for(output_dir).write_text("garbage", encoding="utf-8")

            plan = await plan_incremental_build(input_dir, output_dir, OPTIONS)

            self.assertFalse(plan.prior_manifest_existed)
            self.assertTrue(plan.options_changed)
            self.assertEqual(plan.changed_files, ["a.svg"])


if __name__ == "__main__":
    unittest.main()
