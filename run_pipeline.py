#!/usr/bin/env python3
"""
Figma Parser - Command Line Pipeline

Parses one Figma file and stores it with its components and instances:
1. Fetch the file from the Figma API
2. Extract components, instances and canvas dimensions
3. Persist file, components and resolved instances
4. Print the batch summary (and optionally the stored details)

Usage:
    python run_pipeline.py <figma-url> [--store mock|neo4j] [--store-path PATH] [--details]

The Figma token is read from FIGMA_API_TOKEN (environment or .env).
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from figma_parser.config import FigmaCredentials, configure_logging, load_config
from figma_parser.errors import ExtractionError, PersistenceFailure
from figma_parser.orchestrator import build_service

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Parse a Figma file and store its components")
    parser.add_argument("figma_url", help="Figma file or design URL")
    parser.add_argument("--store", choices=["mock", "neo4j"], help="Storage backend override")
    parser.add_argument("--store-path", help="JSON file used by the mock store")
    parser.add_argument("--details", action="store_true",
                        help="Print the stored file with its components and instances")
    return parser.parse_args(argv)


def print_separator(title: str = "") -> None:
    """Print a formatted separator line."""
    if title:
        print(f"\n{'='*70}")
        print(f"  {title}")
        print(f"{'='*70}\n")
    else:
        print(f"{'='*70}")


def main(argv: Optional[List[str]] = None) -> int:
    """Run the pipeline for one URL."""
    args = parse_args(argv)

    config = load_config()
    updates = {}
    if args.store:
        updates["storage_backend"] = args.store
    if args.store_path:
        updates["mock_store_path"] = args.store_path
    if updates:
        config = config.model_copy(update=updates)
    configure_logging(config.log_level)

    credentials = FigmaCredentials.from_token(os.getenv("FIGMA_API_TOKEN"))
    if credentials.is_empty():
        print("FIGMA_API_TOKEN is not set. Add it to the environment or to .env.")
        return 1

    print_separator("FIGMA PARSER")

    try:
        service = build_service(config)
    except Exception as e:
        logger.error(f"Failed to initialize {config.storage_backend} storage: {e}", exc_info=True)
        print(f"\nError: {e}")
        return 1

    try:
        summary = service.parse_and_persist_with_summary(args.figma_url, credentials)

        print_separator("Batch Summary")
        print(json.dumps(summary.model_dump(mode="json"), indent=2))
        print(f"\nComponents saved:  {summary.components_saved}")
        print(f"Instances saved:   {summary.instances_saved}")
        print(f"Instances skipped: {summary.instances_skipped}")

        if args.details:
            details = service.get_file_details(summary.file.id)
            print_separator("Stored File")
            print(json.dumps(details.model_dump(mode="json"), indent=2))

        print_separator("Pipeline Complete")
        return 0

    except PersistenceFailure as e:
        logger.error(f"Pipeline failed at {e.stage} stage: {e}")
        if e.summary is not None:
            print(json.dumps(e.summary.model_dump(mode="json"), indent=2))
        print(f"\nError: {e}")
        return 1

    except ExtractionError as e:
        logger.error(f"Pipeline failed: {e}")
        print(f"\nError: {e}")
        return 1

    finally:
        service.repository.close()


if __name__ == '__main__':
    sys.exit(main())
