#!/usr/bin/env python3
"""
Run One Publish Sweep
=====================
Promote every due scheduled post once and exit. Safe to run while the API
server's own scheduler is active.

Usage:
    python scripts/publish_due.py [--database-url sqlite:///./postline.db] [--batch-size 100]
"""

import argparse
import json

from postline.config import get_settings
from postline.database import Database
from postline.services.publisher import PublicationEngine


def main():
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Publish due scheduled posts once")
    parser.add_argument("--database-url", default=settings.database_url)
    parser.add_argument("--batch-size", type=int, default=settings.publish_batch_size)
    args = parser.parse_args()

    database = Database(args.database_url)
    try:
        database.create_all()
        result = PublicationEngine(database, batch_size=args.batch_size).run_sweep()
        print(json.dumps(result.to_dict()))
    finally:
        database.dispose()


if __name__ == "__main__":
    main()
