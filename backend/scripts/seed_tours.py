"""
Create placeholder published tours for catalog titles missing from the store.
Run: python scripts/seed_tours.py --help
"""

import os
import sys

# Add parent directory to path for tourseed imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tourseed.cli import seed_main


if __name__ == "__main__":
    sys.exit(seed_main())
