# brahma_muhurat/version.py
from __future__ import annotations
import os

# Single place to bump the package version (overridable via env for CI/preview)
VERSION = os.getenv("BM_VERSION", "1.0.0")
