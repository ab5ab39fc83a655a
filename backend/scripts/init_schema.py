"""
Create the tour store tables.
Run: python scripts/init_schema.py --help
"""

import os
import sys

# Add parent directory to path for tourseed imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tourseed.cli import init_schema_main


if __name__ == "__main__":
    sys.exit(init_schema_main())
