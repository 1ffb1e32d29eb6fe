import asyncio
import os
import stat
import tempfile
import unittest
from pathlib import Path

from stroke2font.config.models import SvgFixerOptions
from stroke2font.errors import SvgFixerError
from stroke2font.transforms.svg_fixer import InkscapeSvgFixer

COPYING_INKSCAPE = """#!/bin/sh
for arg in "$@"; do
  case "$arg" in
    --export-filename=*) dst="${arg#--export-filename=}" ;;
  esac
  src="$arg"
done
cp "$src" "$dst"
"""

FAILING_INKSCAPE = """#!/bin/sh
echo "boom" >&2
exit 3
"""

HANGING_INKSCAPE = """#!/bin/sh
for arg in "$@"; do
  case "$arg" in
    --export-filename=*) dst="${arg#--export-filename=}" ;;
  esac
done
echo $$ > "$dst.pid"
exec sleep 30
"""


def _script(path: Path, body: str) -> str:
    path.write_text(body, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return str(path)


@unittest.skipUnless(os.name == "posix", "shell scripts stand in for Inkscape")
class InkscapeSvgFixerTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.source_dir = self.root / "tmp-input"
        self.dest_dir = self.root / "cleaned"
        self.source_dir.mkdir()
        (self.source_dir / "a.svg").write_text("<svg>a</svg>", encoding="utf-8")
        (self.source_dir / "b.svg").write_text("<svg>b</svg>", encoding="utf-8")

    async def asyncTearDown(self) -> None:
        self._tmp.cleanup()

    async def test_fixes_every_file_into_destination(self) -> None:
        fixer = InkscapeSvgFixer(inkscape_path=_script(self.root / "inkscape", COPYING_INKSCAPE))

        with self.assertLogs("stroke2font.transforms.svg_fixer", level="INFO") as logs:
            await fixer.fix(self.source_dir, self.dest_dir, SvgFixerOptions())

        self.assertEqual((self.dest_dir / "a.svg").read_text(encoding="utf-8"), "<svg>a</svg>")
        self.assertEqual((self.dest_dir / "b.svg").read_text(encoding="utf-8"), "<svg>b</svg>")
        self.assertEqual(len(logs.records), 2)

    async def test_missing_destination_is_an_error_when_requested(self) -> None:
        fixer = InkscapeSvgFixer(inkscape_path=_script(self.root / "inkscape", COPYING_INKSCAPE))

        with self.assertRaises(SvgFixerError):
            await fixer.fix(
                self.source_dir,
                self.dest_dir,
                SvgFixerOptions(throw_if_destination_does_not_exist=True),
            )

    async def test_inkscape_failure_is_raised(self) -> None:
        fixer = InkscapeSvgFixer(inkscape_path=_script(self.root / "inkscape", FAILING_INKSCAPE))

        with self.assertRaises(SvgFixerError) as ctx:
            await fixer.fix(self.source_dir, self.dest_dir, SvgFixerOptions(show_progress_bar=False))

        self.assertIn("boom", str(ctx.exception))

    async def test_cancelled_fix_kills_inkscape_processes(self) -> None:
        fixer = InkscapeSvgFixer(inkscape_path=_script(self.root / "inkscape", HANGING_INKSCAPE), concurrency=2)

        with self.assertRaises(asyncio.TimeoutError):
            await asyncio.wait_for(
                fixer.fix(self.source_dir, self.dest_dir, SvgFixerOptions(show_progress_bar=False)),
                timeout=2,
            )

        pid_files = sorted(self.dest_dir.glob("*.pid"))
        self.assertEqual([p.name for p in pid_files], ["a.svg.pid", "b.svg.pid"])
        for pid_file in pid_files:
            with self.assertRaises(ProcessLookupError):
                os.kill(int(pid_file.read_text(encoding="utf-8")), 0)

    async def test_missing_executable_is_raised(self) -> None:
        fixer = InkscapeSvgFixer(inkscape_path=str(self.root / "no-such-inkscape"))

        with self.assertRaises(SvgFixerError):
            await fixer.fix(self.source_dir, self.dest_dir, SvgFixerOptions())


if __name__ == "__main__":
    unittest.main()
