"""Pytest configuration for branchgen test suite."""

import sys
from pathlib import Path

# Add project root to path for branchgen imports
sys.path.insert(0, str(Path(__file__).parent.parent))
