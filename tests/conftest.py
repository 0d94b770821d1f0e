"""Shared test setup.

Log files and snapshots go to a throwaway directory: modules configure
logging when they are imported, which happens before any fixture runs.
"""

import os
import tempfile

os.environ.setdefault("NEYWA_DATA_DIR", tempfile.mkdtemp(prefix="neywa-test-"))
os.environ.setdefault("NEYWA_LOG_DIR", os.path.join(os.environ["NEYWA_DATA_DIR"], "logs"))
