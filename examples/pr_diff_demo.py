#!/usr/bin/env python3
"""
PR Diff Demo

Demonstrates how to build the compressed, context-extended diff of a
pull request for a review prompt.

Usage:
    python examples/pr_diff_demo.py <owner/repo> <pr_number> [model]

Example:
    GITHUB_TOKEN=... python examples/pr_diff_demo.py microsoft/vscode 12345 gpt-4o
"""

import sys
import logging

from pr_diff_pipeline.api import DiffContextAPI
from pr_diff_pipeline.config import AppConfig
from pr_diff_pipeline.models.review import CompressOptions


def setup_logging():
    """Set up logging configuration."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def main():
    """Main demo function."""
    setup_logging()

    if len(sys.argv) not in (3, 4):
        print("Usage: python pr_diff_demo.py <owner/repo> <pr_number> [model]")
        sys.exit(1)

    repository = sys.argv[1]
    try:
        pr_number = int(sys.argv[2])
    except ValueError:
        print("Error: PR number must be an integer")
        sys.exit(1)

    config = AppConfig.from_env()
    if not config.github.token:
        print("Error: GitHub token not found. Set GITHUB_TOKEN environment variable.")
        sys.exit(1)

    options = CompressOptions(model=sys.argv[3]) if len(sys.argv) == 4 else None
    result = DiffContextAPI(config=config).build_context(repository, pr_number, options=options)

    if result.status != "completed":
        print(f"❌ Failed: {result.metadata.get('error')}")
        sys.exit(1)

    print(result.context.diff)
    print()
    print("📊 Summary:")
    for key, value in result.metadata.items():
        print(f"   - {key}: {value}")
    print(f"   - processing_time: {result.processing_time:.2f}s")

    if result.context.result.nothing_to_process:
        print("⚠️  Nothing fits the model's token budget")


if __name__ == "__main__":
    main()
