"""Single-query entrypoint.

This script runs one query through the full pipeline (search fan-out,
ingestion, retrieval, generation) and prints the answer, optionally followed
by the grounding context and run statistics.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from lucidsearch.app.api import configure_logging
from lucidsearch.app.container import build_container
from lucidsearch.common.errors import LucidSearchError
from lucidsearch.config import GlobalConfig


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Answer one query with search-grounded RAG")

    parser.add_argument(
        "--query",
        "-q",
        required=True,
        type=str,
        help="Query to answer.",
    )

    parser.add_argument(
        "--config-file",
        "-c",
        required=False,
        type=str,
        default=os.environ.get("LUCIDSEARCH_CONFIG", str(REPO_ROOT / "config" / "config.yaml")),
        help="Path to the YAML configuration file (default: $LUCIDSEARCH_CONFIG or config/config.yaml).",
    )

    parser.add_argument(
        "--qdrant-collection-name",
        "--collection-name",
        required=False,
        type=str,
        default=None,
        help="Override Qdrant collection name from config (optional).",
    )

    parser.add_argument(
        "--keep-collection",
        action="store_true",
        help="Reuse an existing collection instead of recreating it.",
    )

    parser.add_argument(
        "--show-context",
        action="store_true",
        help="Print the assembled context and run statistics after the answer.",
    )

    return parser.parse_args()


def _override_vector_store(cfg: GlobalConfig, collection_name: str | None, keep: bool) -> None:
    vector_store = cfg.raw.setdefault("vector_store", {})
    if not isinstance(vector_store, dict):
        raise TypeError("'vector_store' config must be a mapping to apply overrides.")

    if collection_name:
        vector_store["collection_name"] = collection_name
    if keep:
        vector_store["recreate_on_startup"] = False


def main() -> int:
    args = parse_args()

    cfg = GlobalConfig.load(args.config_file)
    _override_vector_store(cfg, args.qdrant_collection_name, args.keep_collection)
    configure_logging(cfg.logging.get("level", "INFO"))

    container = build_container(cfg)
    try:
        container.startup()
        result = container.pipeline.run(args.query.replace("+", " ").strip())
    except LucidSearchError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(result["answer"])

    if args.show_context:
        stats = result["stats"]
        print("\n--- context ---")
        print(result["context"])
        print("--- stats ---")
        for key in ("results", "documents_ingested", "documents_failed", "vectors_stored"):
            print(f"{key}: {stats[key]}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
