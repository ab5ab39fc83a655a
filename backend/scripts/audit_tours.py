"""
Audit the day/block/item structure of published tours.
Run: python scripts/audit_tours.py --help
"""

import os
import sys

# Add parent directory to path for tourseed imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tourseed.cli import audit_main


if __name__ == "__main__":
    sys.exit(audit_main())
