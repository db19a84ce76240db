"""Pytest configuration for Chatkin tests.

Ensures the project root is in sys.path so imports work correctly, and the
tests directory too so nested test packages can share ``fakes``.
"""

import sys
from pathlib import Path

# Add project root to sys.path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

tests_root = Path(__file__).parent
if str(tests_root) not in sys.path:
    sys.path.insert(1, str(tests_root))
