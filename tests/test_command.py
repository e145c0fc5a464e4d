# Copyright Red Hat
#
# tests/test_command.py - CLI layer tests
#
# This file is part of the treesync project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from unittest.mock import MagicMock, patch
from contextlib import redirect_stdout
from io import StringIO
from pathlib import Path
import tempfile
import logging
import signal
import os

log = logging.getLogger()

import treesync
import treesync.command as command
from treesync.compare import ChangesSearcher, CompareOptions, EqualityLevel
from treesync.handlers import InfoHandler, SyncHandler

from tests import MockArgs
from tests._util import make_tree


class CommandTestsBase(unittest.TestCase):
    def setUp(self):
        log.debug("Preparing %s", self._testMethodName)
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.dir1 = self.root / "a"
        self.dir2 = self.root / "b"
        self.dir1.mkdir()
        self.dir2.mkdir()
        # Never read the invoking user's configuration file.
        self._cfg_patch = patch(
            "treesync.command.TREESYNC_CFG_PATH", str(self.root / "none.conf")
        )
        self._cfg_patch.start()

    def tearDown(self):
        log.debug("Tearing down %s", self._testMethodName)
        self._cfg_patch.stop()
        treesync.set_debug_mask(0)
        self._tmp.cleanup()

    def get_main_args(self):
        """
        Return an argument array (in the form of sys.argv) reflecting the
        ``bin/treesync`` command.

        :returns: A list of command arguments.
        """
        return [os.path.join(os.getcwd(), "bin/treesync")]

    def get_debug_main_args(self):
        """
        Return an argument array (in the form of sys.argv) reflecting the
        ``bin/treesync`` command, with verbose logging and debug enabled.

        :returns: A list of command arguments.
        """
        return self.get_main_args() + ["-vv", "--debug=all"]

    def make_example_trees(self):
        make_tree(self.dir1, {"uno": "UNO", "dos": "DOS", "cuatro": "CUATRO"})
        make_tree(self.dir2, {"uno": "UNO", "dos": "DOS\nDOS", "tres": "TRES"})

    def run_main(self, *args, debug=False):
        main_args = self.get_debug_main_args() if debug else self.get_main_args()
        out = StringIO()
        with redirect_stdout(out):
            status = command.main(main_args + list(args))
        return status, out.getvalue()


class CommandTests(CommandTestsBase):
    def test_main_info(self):
        self.make_example_trees()
        status, out = self.run_main("-i", str(self.dir1), str(self.dir2))
        self.assertEqual(status, 0)
        self.assertIn("MISSING FILE:  cuatro", out)
        self.assertIn("SYNC REQUIRED: dos", out)
        self.assertIn("MISSING FILE:  tres", out)

    def test_main_info_debug(self):
        self.make_example_trees()
        status, out = self.run_main("-i", str(self.dir1), str(self.dir2), debug=True)
        self.assertEqual(status, 0)
        self.assertIn("COMPARING:     uno", out)

    def test_main_summary(self):
        self.make_example_trees()
        status, out = self.run_main("-i", "-t", str(self.dir1), str(self.dir2))
        self.assertEqual(status, 0)
        self.assertIn("compared: 2, missing: 2, different: 1, errors: 0", out)

    def test_main_size_level(self):
        make_tree(self.dir1, {"f": "abc"})
        make_tree(self.dir2, {"f": "xyz"})
        status, out = self.run_main("-i", "-l", "size", str(self.dir1), str(self.dir2))
        self.assertEqual(status, 0)
        self.assertNotIn("SYNC REQUIRED", out)

    def test_main_exclude(self):
        self.make_example_trees()
        status, out = self.run_main(
            "-i", "-x", "cuatro", "-x", "tres", str(self.dir1), str(self.dir2)
        )
        self.assertEqual(status, 0)
        self.assertNotIn("MISSING FILE", out)

    def test_main_nested_roots(self):
        nested = self.dir1 / "sub"
        nested.mkdir()
        status, _out = self.run_main("-i", str(self.dir1), str(nested))
        self.assertEqual(status, 1)
        status, _out = self.run_main("-i", "-x", "sub", str(self.dir1), str(nested))
        self.assertEqual(status, 0)

    def test_main_missing_root(self):
        status, _out = self.run_main("-i", str(self.root / "nope"), str(self.dir2))
        self.assertEqual(status, 1)

    def test_main_bad_debug_option(self):
        status, out = self.run_main(
            "--debug=bogus", "-i", str(self.dir1), str(self.dir2)
        )
        self.assertEqual(status, 1)
        self.assertIn("Unknown debug option: bogus", out)

    def test_main_config_file(self):
        self.make_example_trees()
        cfg = self.root / "treesync.conf"
        cfg.write_text("[Global]\nExclude = cuatro\n")
        status, out = self.run_main(
            "-i", "-c", str(cfg), str(self.dir1), str(self.dir2)
        )
        self.assertEqual(status, 0)
        self.assertNotIn("cuatro", out)
        self.assertIn("MISSING FILE:  tres", out)

    def test_main_missing_config_file(self):
        status, _out = self.run_main(
            "-i", "-c", str(self.root / "missing.conf"), str(self.dir1), str(self.dir2)
        )
        self.assertEqual(status, 1)

    def test_main_invalid_config_file(self):
        cfg = self.root / "treesync.conf"
        cfg.write_text("[Global]\nLevel = checksum\n")
        status, _out = self.run_main(
            "-i", "-c", str(cfg), str(self.dir1), str(self.dir2)
        )
        self.assertEqual(status, 1)

    def test_main_sync_abort(self):
        self.make_example_trees()
        with patch("sys.stdin", StringIO("a\n")):
            status, out = self.run_main(str(self.dir1), str(self.dir2))
        self.assertEqual(status, 1)
        self.assertIn("Stopped by the user", out)

    def test_main_sync_copy(self):
        make_tree(self.dir1, {"cuatro": "CUATRO"})
        with patch("sys.stdin", StringIO("c\n")):
            status, _out = self.run_main(str(self.dir1), str(self.dir2))
        self.assertEqual(status, 0)
        self.assertEqual((self.dir2 / "cuatro").read_text(), "CUATRO")

    def test_main_cancelled(self):
        self.make_example_trees()
        with patch.object(
            ChangesSearcher, "search", side_effect=treesync.TreesyncCancelledError
        ):
            status, _out = self.run_main("-i", str(self.dir1), str(self.dir2))
        self.assertEqual(status, 2)

    def test_main_sigint_at_prompt_does_not_copy(self):
        make_tree(self.dir1, {"cuatro": "CUATRO"})
        stdin = MagicMock()

        def _readline():
            os.kill(os.getpid(), signal.SIGINT)
            return "c\n"

        stdin.readline.side_effect = _readline
        with patch("sys.stdin", stdin):
            status, out = self.run_main(str(self.dir1), str(self.dir2))

        self.assertEqual(status, 2)
        self.assertNotIn("COPIED", out)
        self.assertFalse((self.dir2 / "cuatro").exists())

    def test_main_system_error(self):
        self.make_example_trees()
        with patch.object(
            ChangesSearcher, "search", side_effect=treesync.TreesyncSystemError("eio")
        ):
            status, _out = self.run_main("-i", str(self.dir1), str(self.dir2))
        self.assertEqual(status, 1)

    def test_main_version(self):
        with self.assertRaises(SystemExit) as cm:
            self.run_main("--version")
        self.assertEqual(cm.exception.code, 0)

    def test_main_missing_paths(self):
        with self.assertRaises(SystemExit) as cm:
            self.run_main("-i")
        self.assertEqual(cm.exception.code, 2)


class ProceduralTests(CommandTestsBase):
    def test_compare_trees(self):
        self.make_example_trees()
        out = StringIO()
        options = CompareOptions(info=True, level=EqualityLevel.SIZE)
        handler = command.create_handler(self.dir1, self.dir2, options, out=out)
        searcher = command.compare_trees(self.dir1, self.dir2, handler, options)

        self.assertEqual(searcher.level, EqualityLevel.SIZE)
        self.assertEqual(handler.nr_missing, 2)
        self.assertEqual(handler.nr_different, 1)

    def test_compare_trees_fix_last_modified(self):
        make_tree(self.dir1, {"f": "same"})
        make_tree(self.dir2, {"f": "same"})
        os.utime(self.dir2 / "f", ns=(0, 1_500_000_000_000_000_000))
        options = CompareOptions(info=True, fix_last_modified=True)
        handler = command.create_handler(self.dir1, self.dir2, options, out=StringIO())
        command.compare_trees(self.dir1, self.dir2, handler, options)

        self.assertEqual(
            os.stat(self.dir1 / "f").st_mtime_ns // 1000000,
            os.stat(self.dir2 / "f").st_mtime_ns // 1000000,
        )

    def test_create_handler(self):
        out = StringIO()
        handler = command.create_handler(
            self.dir1, self.dir2, CompareOptions(info=True), out=out
        )
        self.assertIsInstance(handler, InfoHandler)
        handler = command.create_handler(self.dir1, self.dir2, CompareOptions(), out=out)
        self.assertIsInstance(handler, SyncHandler)

    def test_compare_trees_sync_handler_sees_cancellation(self):
        make_tree(self.dir1, {"cuatro": "CUATRO"})
        options = CompareOptions()
        handler = command.create_handler(self.dir1, self.dir2, options, out=StringIO())
        self.assertIsNone(handler.cancelled)
        handler.input = StringIO("i\n")

        searcher = command.compare_trees(self.dir1, self.dir2, handler, options)

        self.assertFalse(handler.cancelled())
        searcher.cancel()
        self.assertTrue(handler.cancelled())

    def test_compare_cmd(self):
        self.make_example_trees()
        args = MockArgs()
        args.info = True
        args.summary = True
        args.path1 = str(self.dir1)
        args.path2 = str(self.dir2)
        out = StringIO()
        with redirect_stdout(out):
            status = command._compare_cmd(args)
        self.assertEqual(status, 0)
        self.assertIn("different: 1", out.getvalue())


class SetDebugTests(CommandTestsBase):
    def test_set_debug(self):
        command.set_debug("compare,handlers")
        self.assertEqual(
            treesync.get_debug_mask(),
            treesync.TREESYNC_DEBUG_COMPARE | treesync.TREESYNC_DEBUG_HANDLERS,
        )

    def test_set_debug_all(self):
        command.set_debug("all")
        self.assertEqual(treesync.get_debug_mask(), treesync.TREESYNC_DEBUG_ALL)

    def test_set_debug_none(self):
        command.set_debug(None)
        self.assertEqual(treesync.get_debug_mask(), 0)

    def test_set_debug_unknown(self):
        with self.assertRaises(ValueError):
            command.set_debug("compare,bogus")

    def test_setup_logging(self):
        args = MockArgs()
        args.verbose = 2
        command.setup_logging(args)
        treesync_log = logging.getLogger("treesync")
        self.assertEqual(treesync_log.level, logging.DEBUG)
        self.assertEqual(len(treesync_log.handlers), 1)
        args.verbose = 0
        command.setup_logging(args)
        self.assertEqual(treesync_log.level, logging.WARNING)
