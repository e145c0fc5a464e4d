# Copyright Red Hat
#
# tests/__init__.py - Directory tree synchronizer test package
#
# This file is part of the treesync project.
#
# SPDX-License-Identifier: Apache-2.0
import logging
import os
import time

log = logging.getLogger()
log.setLevel(logging.DEBUG)
formatter = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
file_handler = logging.FileHandler("test.log")
file_handler.setFormatter(formatter)
console_handler = logging.StreamHandler()
console_handler.setFormatter(formatter)
log.addHandler(file_handler)
log.addHandler(console_handler)

os.environ["TZ"] = "UTC"
time.tzset()


class MockArgs(object):
    debug = None
    verbose = 0
    config = None
    info = False
    fix_last_modified = False
    level = None
    exclude = None
    summary = False
    file_types = False
    color = None
    path1 = None
    path2 = None
