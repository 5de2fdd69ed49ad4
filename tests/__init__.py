"""Test package for keywarden.

Making `tests/` a package ensures fully-qualified module names and prevents
`import file mismatch` collection errors between same-named test files.
"""

import sys
from pathlib import Path

# Ensure src directory is in Python path for all test modules
_src_path = Path(__file__).resolve().parent.parent / "src"
if str(_src_path) not in sys.path:
    sys.path.insert(0, str(_src_path))
