#!/usr/bin/env python
"""CLI for the Ojas Pulse topic-to-article pipeline."""

import argparse
import asyncio
import logging
import random
import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from ojas_pulse.config import create_from_config, get_default_config_path, load_config
from ojas_pulse.data import Usage
from ojas_pulse.query import QueryTemplateEngine

logger = logging.getLogger(__name__)

Command = Literal["run", "discover", "research", "collect", "synthesize", "queries"]


class CLIArgs(BaseModel):
    """Validated CLI arguments."""

    command: Command
    config: Path
    region: str | None = None
    categories: list[str] | None = None
    max_topics: int | None = Field(default=None, ge=1)
    topic: str | None = None
    category: str = "health"
    count: int = Field(default=100, ge=1)
    limit: int = Field(default=10, ge=1)
    seed: int | None = None
    log: bool = False
    log_dir: str = "logs"

    @field_validator("config")
    @classmethod
    def config_must_exist(cls, v: Path) -> Path:
        if not v.exists():
            raise ValueError(f"Config file not found: {v}")
        return v


def log_usage(usage: Usage) -> None:
    logger.info("\n--- Usage Summary ---")
    logger.info(f"API calls: {len(usage.api_calls)}")
    logger.info(f"Input tokens: {usage.input_tokens:,}")
    logger.info(f"Output tokens: {usage.output_tokens:,}")
    if usage.web_searches:
        logger.info(f"Web searches: {usage.web_searches}")
    if usage.search_requests:
        logger.info(f"Search API requests: {usage.search_requests}")
    logger.info(f"Estimated cost: ${usage.estimated_cost:.4f}")


async def run(args: CLIArgs) -> None:
    """Execute one CLI command against the configured pipeline.

    Args:
        args: Validated CLI arguments.
    """
    config = load_config(args.config)
    region = args.region or config.pipeline.region
    categories = args.categories or config.pipeline.categories
    max_topics = args.max_topics or config.pipeline.max_topics
    engine = QueryTemplateEngine(random.Random(args.seed))

    if args.command == "queries":
        for query in engine.generate_balanced_queries(args.count):
            print(f"[{query.priority}] {query.category}: {query.text}")
        return

    orchestrator, run_logger, price_cache = create_from_config(
        config,
        log_override=args.log if args.log else None,
        log_dir_override=args.log_dir if args.log_dir != "logs" else None,
    )
    logger.info(f"Config: {args.config}")

    if args.command == "discover":
        report = await orchestrator.discover_topics(region, categories, max_topics)
        for outcome in report.outcomes:
            if not outcome.ok:
                logger.info(f"Category {outcome.category} failed: {outcome.error}")
        print(f"\nDiscovered {len(report.topics)} topics:\n")
        for i, topic in enumerate(report.topics, 1):
            print(f"{i}. [{topic.priority}] {topic.topic} ({topic.category})")
            if topic.reasoning:
                logger.info(f"   {topic.reasoning}")
        usage = report.usage

    elif args.command == "research":
        if not args.topic:
            raise ValueError("research needs --topic")
        research = await orchestrator.research_topic(args.topic, region, category=args.category)
        logger.info(f"Queries ({research.plan.kind}):")
        for query in research.plan.queries:
            logger.info(f"  - {query}")
        print(f"\n{len(research.collection.sources)} sources, {len(research.clusters)} clusters:\n")
        for cluster in research.clusters:
            print(f"* {cluster.claim} ({len(cluster.items)} sources) [{cluster.id}]")
        usage = research.usage

    elif args.command == "collect":
        queries = engine.generate_balanced_queries(args.count)
        collection = await orchestrator.collect_queries(queries, region=region)
        print(
            f"\nCollected sources for {len(collection.saved)} queries "
            f"({len(collection.empty)} empty, {len(collection.errored)} errored)"
        )
        usage = collection.usage

    elif args.command == "synthesize":
        articles, usage = await orchestrator.synthesize_pending(args.limit)
        print(f"\nSynthesized {len(articles)} articles:\n")
        for article in articles:
            print(f"* {article.title} [{article.category}, {article.urgency}]")

    else:
        result = await orchestrator.run(region, categories, max_topics)
        print(f"\nGenerated {len(result.articles)} articles from {len(result.topics)} topics:\n")
        for i, article in enumerate(result.articles, 1):
            logger.info(f"{i}. {article.title}")
            logger.info(f"   Category: {article.category}  Urgency: {article.urgency}")
            logger.info(f"   Sources: {len(article.sources)}")
            if article.quality_flags:
                logger.info(f"   Flags: {', '.join(article.quality_flags)}")
        usage = result.usage

    price_cache.stamp_usage(usage)
    log_usage(usage)

    if run_logger and run_logger.last_log_path:
        logger.info(f"\nRun log written to: {run_logger.last_log_path}")


def main() -> None:
    """Entry point for the CLI."""
    parser = argparse.ArgumentParser(description="Turn trending health topics into articles.")
    parser.add_argument(
        "command",
        choices=["run", "discover", "research", "collect", "synthesize", "queries"],
        help="Pipeline stage to run",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to YAML config file (default: configs/default.yaml)",
    )
    parser.add_argument("--region", "-r", help="Region code, e.g. IN (default: from config)")
    parser.add_argument(
        "--category",
        action="append",
        dest="categories",
        help="Category to discover in; repeat for several (default: from config)",
    )
    parser.add_argument("--max-topics", type=int, help="Maximum topics to research")
    parser.add_argument("--topic", "-t", help="Topic text for the research command")
    parser.add_argument(
        "--topic-category",
        default="health",
        help="Category of --topic (default: health)",
    )
    parser.add_argument(
        "--count",
        "-n",
        type=int,
        default=100,
        help="Number of template queries for queries/collect (default: 100)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Pending queries to synthesize (default: 10)",
    )
    parser.add_argument("--seed", type=int, help="Random seed for template queries")
    parser.add_argument(
        "--log",
        action="store_true",
        default=False,
        help="Enable intermediate pipeline logging to JSON file",
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default="logs",
        help="Directory for log files (default: logs/)",
    )

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    ns = parser.parse_args()
    config_path: Path = ns.config if ns.config else get_default_config_path()

    try:
        args = CLIArgs(
            command=ns.command,
            config=config_path,
            region=ns.region,
            categories=ns.categories,
            max_topics=ns.max_topics,
            topic=ns.topic,
            category=ns.topic_category,
            count=ns.count,
            limit=ns.limit,
            seed=ns.seed,
            log=ns.log,
            log_dir=ns.log_dir,
        )
    except Exception as e:
        logger.error(str(e))
        sys.exit(1)

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        sys.exit(130)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(2)


if __name__ == "__main__":
    main()
