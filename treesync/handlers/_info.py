# Copyright Red Hat
#
# treesync/handlers/_info.py - Directory tree synchronizer report handler
#
# This file is part of the treesync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Report-only change handler.
"""
from pathlib import Path

from ._base import ReportHandler


class InfoHandler(ReportHandler):
    """
    Report missing paths and different files without changing either tree.
    """

    def missing_path(self, existing_path: Path, missing_path: Path):
        self._report_missing(existing_path, missing_path, self.verbose)

    def different_files(self, path1: Path, path2: Path):
        self._report_different(path1, path2, self.verbose)
