#!/usr/bin/env python3
"""CLI tool to load bookable services into the record store."""
import json
import sys

from drs_care.config import load_settings
from drs_care.errors import DuplicateRecordError
from drs_care.store import RecordStore


def main():
    """Insert services from a JSON file of [{"name": ..., "slots": [...]}, ...]."""
    if len(sys.argv) < 2:
        print("Usage: python scripts/seed_services.py <services.json>")
        print("\nExample file:")
        print('  [{"name": "Teeth Cleaning", "slots": ["08.00 AM - 08.30 AM", "08.30 AM - 09.00 AM"]}]')
        sys.exit(1)

    with open(sys.argv[1], encoding="utf-8") as f:
        services = json.load(f)

    settings = load_settings()
    store = RecordStore(settings.database_url)
    try:
        for service in services:
            try:
                store.add_service(service["name"], service.get("slots", []))
                print(f"✅ {service['name']} ({len(service.get('slots', []))} slots)")
            except DuplicateRecordError:
                print(f"⚠️  {service['name']} already exists, skipped")
    finally:
        store.close()


if __name__ == "__main__":
    main()
