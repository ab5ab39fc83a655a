"""
Reconcile published tours with the tour catalog.
Run: python scripts/reconcile_tours.py --help
"""

import os
import sys

# Add parent directory to path for tourseed imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tourseed.cli import reconcile_main


if __name__ == "__main__":
    sys.exit(reconcile_main())
