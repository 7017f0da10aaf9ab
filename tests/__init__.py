"""
Test suite for Gift Composer.

This package contains unit tests and Flask integration tests for the
image composition pipeline and its quality validator.
"""

import sys
from pathlib import Path

# Add the project root to the Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
