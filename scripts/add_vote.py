#!/usr/bin/env python3
"""
Add a vote directly to the JSON data file (no running server needed).

Usage:
  python scripts/add_vote.py --title "Lunch on Friday?" [--content "Pizza or tacos"] [--data-file votes.json]
"""
from __future__ import annotations

import argparse
import sys

from votes_api.core.config import get_settings
from votes_api.core.log_config import configure_logging
from votes_api.repositories.json_storage import JsonStorage
from votes_api.services.vote_service import VoteStore


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    ap = argparse.ArgumentParser(description="Add a vote to the data file")
    ap.add_argument("--title", required=True, help="Vote title (required, non-empty)")
    ap.add_argument("--content", help="Optional vote content")
    ap.add_argument("--data-file", default=str(settings.data_file), help="Path to votes.json")
    args = ap.parse_args(argv)

    configure_logging("WARNING")
    store = VoteStore.open(JsonStorage(args.data_file))
    record = store.create(args.title, args.content)
    print("OK: vote created")
    print(f"  ID: {record.id}")
    print(f"  Title: {record.title}")
    if record.content:
        print(f"  Content: {record.content}")
    print(f"  Created: {record.created_at}")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
