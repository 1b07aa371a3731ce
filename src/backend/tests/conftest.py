import os
import sys


# `src/backend` holds the importable roots (common, pipelines, scripts); pytest runs from the repo root.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)
