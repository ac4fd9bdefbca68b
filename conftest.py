"""Test configuration for ensuring the top-level modules import."""

import os
import sys

# The modules live at the repository root (no package directory), so make
# sure the root is importable no matter where pytest is started from.
ROOT_DIR = os.path.abspath(os.path.dirname(__file__))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)
