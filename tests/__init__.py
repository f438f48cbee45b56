"""
Test suite for Catalog Studio.

This package contains unit tests for the catalog model, rendering
pipeline and exporter, plus integration tests for the HTTP API.
"""

import sys
from pathlib import Path

# Add the project root to the Python path for imports
project_dir = Path(__file__).parent.parent
if str(project_dir) not in sys.path:
    sys.path.insert(0, str(project_dir))
