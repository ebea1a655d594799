#!/usr/bin/env python3
"""Run a full brand sentiment analysis from the command line.

Searches Reddit for the entity, filters and scores the mentions, clusters
them into prioritized topics and drafts recommendations, then writes the
resulting snapshot as JSON.

Usage:
    python scripts/run_analysis.py "Tesla" [-o data/tesla.json] [--history smooth]

Requires env var: OPENAI_API_KEY
"""

import argparse
import asyncio
import dataclasses
import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from brandpulse.ai_client import OpenAIClient
from brandpulse.backend.utils.logging_config import setup_logging
from brandpulse.config import load_dotenv, load_settings
from brandpulse.pipeline import AnalysisPipeline
from brandpulse.reddit import RedditClient


async def run(entity: str, output_path: str, history_mode: str = None):
    """Run the pipeline for one entity and write the snapshot to output_path."""
    settings = load_settings()
    if history_mode:
        settings.history_mode = history_mode

    setup_logging(log_dir=settings.log_dir, log_filename="pipeline.log")

    ai_client = OpenAIClient(model=settings.openai_model)
    async with RedditClient(user_agent=settings.reddit_user_agent) as reddit:
        pipeline = AnalysisPipeline(ai_client, reddit, settings)
        print(f"Analyzing Reddit sentiment for {entity!r}...")
        snapshot = await pipeline.run_analysis(entity)

    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(dataclasses.asdict(snapshot), f, indent=2)

    if snapshot.error:
        print(f"\nAnalysis failed: {snapshot.error}")
    print(f"\nSnapshot for {entity}:")
    print(f"  Score: {snapshot.score:.1f}")
    print(f"  Mentions: {snapshot.total} ({snapshot.positive_count} positive, "
          f"{snapshot.neutral_count} neutral, {snapshot.negative_count} negative)")
    for cluster in snapshot.topics:
        print(f"  [{cluster.priority:>6}] {cluster.topic}: {cluster.mention_count} mentions, "
              f"avg {cluster.average_sentiment:.1f}")
    if snapshot.recommendation_summary:
        print(f"\n{snapshot.recommendation_summary}")
    if snapshot.warnings:
        print(f"\nWarnings: {', '.join(w['type'] for w in snapshot.warnings)}")
    print(f"\nWritten to {output_path}")

    return snapshot


def main():
    parser = argparse.ArgumentParser(
        description="Run Reddit brand sentiment analysis for one entity"
    )
    parser.add_argument("entity", help="Brand or company name, e.g. Tesla")
    parser.add_argument("-o", "--output", default=None, help="Output JSON path (default: data/<entity>.json)")
    parser.add_argument("--history", choices=["random", "smooth"], default=None,
                        help="History generator (default: $HISTORY_MODE or random)")
    args = parser.parse_args()

    load_dotenv(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env"))

    if not os.environ.get("OPENAI_API_KEY"):
        print("Error: OPENAI_API_KEY environment variable not set.")
        print("Set it in your .env file or export it in your shell.")
        sys.exit(1)

    entity = args.entity.strip()
    if not entity:
        print("Error: entity must not be blank.")
        sys.exit(1)

    output = args.output or os.path.join("data", f"{entity.lower().replace(' ', '_')}.json")
    asyncio.run(run(entity, output, args.history))


if __name__ == "__main__":
    main()
