#!/usr/bin/env python3
"""
Launcher for the blame-view viewer.
Usage: python run_viewer.py [/path/to/project]
"""
from __future__ import annotations

import os
import sys

# Ensure the directory containing backend/ is importable
VIEWER_ROOT = os.path.dirname(os.path.abspath(__file__))
if VIEWER_ROOT not in sys.path:
    sys.path.insert(0, VIEWER_ROOT)

from backend.main import main

if __name__ == "__main__":
    main()
