"""
Entry point for prep-plan-sync.

Run with:
    python main.py migrate 42 --user-id <uuid>
    prepsync migrate 42 --user-id <uuid>      (after pip install -e .)
"""
import sys
from pathlib import Path

# Make the root config module importable when run from a checkout
sys.path.insert(0, str(Path(__file__).parent))

from prepsync.cli.main import main

if __name__ == "__main__":
    main()
