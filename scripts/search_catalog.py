#!/usr/bin/env python3
"""
Run the local catalog search from the terminal:
- load the product catalog (config/chat_config.yml -> catalog.path)
- score products against a query
- print the fallback text the chat endpoint would send

Chat mode: run with --chat for an interactive back-and-forth in the terminal.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv
load_dotenv()

from catalog_chat.catalog import CatalogStore, find_products, format_product_fallback_text
from catalog_chat.utils.config_loader import load_chat_config

# Commands that exit chat mode
CHAT_EXIT = frozenset({"quit", "exit", "q", "bye"})


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def run_one_query(query: str, catalog: CatalogStore, limit: int) -> None:
    matches = find_products(query, catalog, limit=limit)
    if not matches:
        print("(no products matched)")
        return
    for m in matches:
        print(f"### score={m.match_score}")
        print(format_product_fallback_text(m.product))


def main() -> int:
    parser = argparse.ArgumentParser(description="Search the local product catalog")
    parser.add_argument("query", nargs="?", help="Search text (omit with --chat)")
    parser.add_argument("--catalog", type=Path, default=None, help="Catalog JSON (default: from config)")
    parser.add_argument("--limit", type=int, default=None, help="Max results (default: from config)")
    parser.add_argument("--chat", action="store_true", help="Interactive mode")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    setup_logging(args.verbose)
    cfg = load_chat_config()
    catalog = CatalogStore.load(args.catalog or cfg.catalog.resolved_path())
    limit = args.limit or cfg.catalog.max_results

    if args.chat:
        print("Local catalog search. Type 'quit' to exit.")
        while True:
            try:
                query = input("\n> ").strip()
            except (EOFError, KeyboardInterrupt):
                print()
                return 0
            if query.lower() in CHAT_EXIT:
                return 0
            run_one_query(query, catalog, limit)

    if not args.query:
        parser.error("query is required unless --chat is given")
    run_one_query(args.query, catalog, limit)
    return 0


if __name__ == "__main__":
    sys.exit(main())
