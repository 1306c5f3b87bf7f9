#!/usr/bin/env python
"""CLI for the Ellen chat and retrieval core."""

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Literal

import httpx
from pydantic import BaseModel, field_validator

from ellen_core.chat import ChatSessionController
from ellen_core.config import (
    EllenComponents,
    create_from_config,
    get_default_config_path,
    load_config,
)
from ellen_core.errors import ChatRequestError
from ellen_core.materials import MaterialCatalog

logger = logging.getLogger(__name__)


class CLIArgs(BaseModel):
    """Validated CLI arguments."""

    command: Literal["chat", "related", "search-docs"]
    config: Path
    text: str = ""
    session_id: str | None = None
    news_id: str | None = None
    document_name: str | None = None
    log: bool = False
    log_dir: str = "logs"

    @field_validator("config")
    @classmethod
    def config_must_exist(cls, v: Path) -> Path:
        if not v.exists():
            raise ValueError(f"Config file not found: {v}")
        return v


async def run_chat(args: CLIArgs, components: EllenComponents) -> None:
    """Send one message and print the streamed answer."""
    try:
        catalog = await MaterialCatalog.from_store(components.store)
    except Exception as e:
        logger.warning(f"Materials catalog unavailable: {e}")
        catalog = None

    controller = ChatSessionController(
        components.chat_client,
        components.store,
        catalog=catalog,
        project_id=components.project_id,
        run_logger=components.run_logger,
    )
    if args.session_id:
        await controller.load(args.session_id)

    thread = await controller.send_message(args.text)

    print(f"\n{thread.assistant_message.content}\n")
    if thread.error:
        logger.error(f"Stream error: {thread.error}")
    for i, source in enumerate(thread.sources, 1):
        logger.info(f"{i}. {source.title} ({source.url})")
    if thread.related_materials:
        logger.info("Materials: " + ", ".join(m.name for m in thread.related_materials))
    for question in thread.suggested_questions:
        logger.info(f"  ? {question}")


async def run_related(args: CLIArgs, components: EllenComponents) -> None:
    """Print the articles related to a news item."""
    focal = await components.store.get_news_item(args.news_id or "")
    run_logger = components.run_logger
    if run_logger:
        run_logger.start_run("related", focal)

    t0 = time.monotonic()
    related = await components.related_finder.find(focal)
    if run_logger:
        run_logger.log_stage(
            stage="related_ranking",
            component=type(components.related_finder).__name__,
            input_data=focal,
            output_data=related,
            duration_seconds=time.monotonic() - t0,
        )
        run_logger.finish_run(len(related))

    print(f"\nRelated to: {focal.headline}\n")
    for i, item in enumerate(related, 1):
        logger.info(f"{i}. {item.headline}")
        logger.info(f"   Source: {item.source}")
        if item.published_at:
            logger.info(f"   Published: {item.published_at.isoformat()}")


async def run_search_docs(args: CLIArgs, components: EllenComponents) -> None:
    """Search the documents uploaded to a session."""
    run_logger = components.run_logger
    if run_logger:
        run_logger.start_run("document_search", {"query": args.text, "session_id": args.session_id})

    t0 = time.monotonic()
    result = await components.document_searcher.search(
        args.text,
        session_id=args.session_id or "",
        document_name=args.document_name,
    )
    if run_logger:
        run_logger.log_stage(
            stage="document_search",
            component=type(components.document_searcher).__name__,
            input_data={"query": args.text},
            output_data=result,
            duration_seconds=time.monotonic() - t0,
        )
        run_logger.finish_run(len(result.hits))

    if not result.success:
        logger.error(result.error)
        sys.exit(1)

    print(f"\n{result.message}\n")
    for i, hit in enumerate(result.hits, 1):
        logger.info(f"{i}. [{hit.score:.1f}] {hit.document_name}#{hit.chunk_id}")
        logger.info(f"   {hit.content[:160]}")


async def run(args: CLIArgs) -> None:
    """Execute the selected command with the given configuration.

    Args:
        args: Validated CLI arguments.
    """
    config = load_config(args.config)
    components = create_from_config(
        config,
        log_override=args.log if args.log else None,
        log_dir_override=args.log_dir if args.log_dir != "logs" else None,
    )
    logger.info(f"Config: {args.config}")

    if args.command == "chat":
        await run_chat(args, components)
    elif args.command == "related":
        await run_related(args, components)
    else:
        await run_search_docs(args, components)

    run_logger = components.run_logger
    if run_logger and run_logger.last_log_path:
        logger.info(f"\nRun log written to: {run_logger.last_log_path}")


def main() -> None:
    """Entry point for the CLI."""
    parser = argparse.ArgumentParser(description="Chat with Ellen and rank related content.")
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to YAML config file (default: configs/default.yaml)",
    )
    parser.add_argument(
        "--log",
        action="store_true",
        default=False,
        help="Enable run logging to JSON file",
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default="logs",
        help="Directory for log files (default: logs/)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    chat = subparsers.add_parser("chat", help="Send a message and stream the answer")
    chat.add_argument("text", help="Message to send")
    chat.add_argument("--session", dest="session_id", help="Continue an existing session")

    related = subparsers.add_parser("related", help="List articles related to a news item")
    related.add_argument("news_id", help="Id of the news item being read")

    search = subparsers.add_parser("search-docs", help="Keyword search over uploaded documents")
    search.add_argument("text", help="Search query")
    search.add_argument("--session", dest="session_id", required=True, help="Active session id")
    search.add_argument("--document", dest="document_name", help="Filename filter")

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    ns = parser.parse_args()
    config_path: Path = ns.config if ns.config else get_default_config_path()

    try:
        args = CLIArgs(
            command=ns.command,
            config=config_path,
            text=getattr(ns, "text", ""),
            session_id=getattr(ns, "session_id", None),
            news_id=getattr(ns, "news_id", None),
            document_name=getattr(ns, "document_name", None),
            log=ns.log,
            log_dir=ns.log_dir,
        )
    except Exception as e:
        logger.error(str(e))
        sys.exit(1)

    try:
        asyncio.run(run(args))
    except (ChatRequestError, LookupError, ValueError, httpx.HTTPError) as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
