#!/usr/bin/env python3
"""
Reader AI - Main Entry Point
AI chapter summaries and book recommendations for an e-reader

Usage:
    python main.py summarize --book-id B --chapter-id C --book-name N --chapter-title T --file chapter.txt
    python main.py summarize ... --regenerate   # Ignore the cached summary
    python main.py recommend "slow-burn fantasy with a magic school"
    python main.py chat                          # Interactive recommendation chat
    python main.py chat-history                  # Print the saved chat transcript
    python main.py clear-history
    python main.py purge-book --book-id B
    python main.py serve                         # HTTP API
"""

import sys
import argparse
from pathlib import Path

# Ensure we can import from project root
sys.path.insert(0, str(Path(__file__).parent))

import config
from core.logger import setup_logging, log_startup_banner, log_config, log_section, log_error
from core.database import Database, init_database
from concurrency.locks import init_lock_manager, get_lock_manager
from concurrency.worker_pool import init_worker_pool, get_worker_pool
from llm.errors import AIServiceError
from llm.router import init_provider_router, display_name
from memory.summary_cache import init_summary_cache
from memory.chat_session import init_chat_session
from prompt_builder import get_prompt_builder
from assistant.summaries import get_summary_service
from assistant.recommendations import get_recommendation_conversation


def initialize_system(verbose: bool = True) -> bool:
    """
    Initialize all system components.

    Returns:
        True if successful, False otherwise
    """
    setup_logging(
        log_file_path=config.DIAGNOSTIC_LOG_PATH,
        level=config.LOG_LEVEL,
        log_to_file=config.LOG_TO_FILE,
        log_to_console=config.LOG_TO_CONSOLE and verbose
    )

    log_startup_banner(config.VERSION, config.PROJECT_NAME)

    database = init_database(
        db_path=config.DATABASE_PATH,
        busy_timeout_ms=config.DB_BUSY_TIMEOUT_MS
    )
    if not database.is_initialized:
        log_error("Failed to initialize database")
        return False

    init_lock_manager()
    init_worker_pool(max_workers=config.WORKER_POOL_SIZE)
    init_provider_router()
    init_summary_cache(database)
    init_chat_session()
    get_prompt_builder()

    print_configuration(database)
    return True


def print_configuration(database: Database) -> None:
    """Print configuration summary."""
    log_section("Configuration", "⚙️")
    log_config("Provider", display_name(config.AI_PROVIDER), indent=1)
    log_config("API key", "configured" if config.AI_API_KEY else "missing", indent=1)
    log_config("Timeouts", f"connect {config.AI_CONNECT_TIMEOUT:.0f}s / read {config.AI_READ_TIMEOUT:.0f}s", indent=1)
    log_config("Summary input limit", f"{config.SUMMARY_CONTENT_LIMIT} chars", indent=1)
    log_config("Worker pool", f"{config.WORKER_POOL_SIZE} threads", indent=1)

    stats = database.get_stats()
    log_config(
        "Cached summaries",
        f"{stats['total_summaries']} chapters in {stats['books_with_summaries']} books",
        indent=1
    )


def shutdown_system() -> None:
    """Stop background workers and report lock usage."""
    get_worker_pool().shutdown(wait=True)
    get_lock_manager().log_stats()


def cmd_summarize(args: argparse.Namespace) -> int:
    from interface.cli import render_summary
    from rich.console import Console

    content = Path(args.file).read_text(encoding="utf-8")
    service = get_summary_service()
    call_args = (
        args.provider, args.api_key,
        args.book_id, args.chapter_id,
        args.book_name, args.chapter_title, content
    )

    if args.regenerate:
        record = service.regenerate_summary(*call_args)
    else:
        record = service.get_or_generate_summary(*call_args)

    render_summary(Console(), record)
    return 0


def cmd_recommend(args: argparse.Namespace) -> int:
    from interface.cli import render_recommendations
    from rich.console import Console

    conversation = get_recommendation_conversation()
    recommendations = conversation.service.recommend_books(args.provider, args.api_key, args.query)
    render_recommendations(Console(), recommendations)
    return 0


def cmd_chat(args: argparse.Namespace) -> int:
    from interface.cli import ChatCLI

    ChatCLI(provider=args.provider, api_key=args.api_key).start()
    return 0


def cmd_history(args: argparse.Namespace) -> int:
    from interface.cli import render_message
    from rich.console import Console

    console = Console()
    for message in get_recommendation_conversation().open():
        render_message(console, message)
    return 0


def cmd_clear_history(args: argparse.Namespace) -> int:
    get_recommendation_conversation().clear_history()
    return 0


def cmd_purge_book(args: argparse.Namespace) -> int:
    service = get_summary_service()
    removed = service.count_for_book(args.book_id)
    service.purge_book(args.book_id)
    print(f"Removed {removed} cached summaries for {args.book_id}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    from interface.http_api import init_http_server

    server = init_http_server(host=args.host, port=args.port)
    server.start()
    try:
        server.join()
    except KeyboardInterrupt:
        pass
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Reader AI - chapter summaries and book recommendations",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--provider", default=config.AI_PROVIDER,
                        help="AI provider: deepseek, glm or gemini")
    parser.add_argument("--api-key", default=config.AI_API_KEY,
                        help="API key for the provider (default: AI_API_KEY)")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Only log to the diagnostic file")

    sub = parser.add_subparsers(dest="command", required=True)

    summarize = sub.add_parser("summarize", help="Summarize a chapter")
    summarize.add_argument("--book-id", required=True)
    summarize.add_argument("--chapter-id", required=True)
    summarize.add_argument("--book-name", required=True)
    summarize.add_argument("--chapter-title", required=True)
    summarize.add_argument("--file", required=True, help="UTF-8 text file with the chapter content")
    summarize.add_argument("--regenerate", action="store_true",
                           help="Call the provider even if a summary is cached")
    summarize.set_defaults(handler=cmd_summarize)

    recommend = sub.add_parser("recommend", help="One-off book recommendations")
    recommend.add_argument("query")
    recommend.set_defaults(handler=cmd_recommend)

    sub.add_parser("chat", help="Interactive recommendation chat").set_defaults(handler=cmd_chat)
    sub.add_parser("chat-history", help="Print the saved chat transcript").set_defaults(handler=cmd_history)
    sub.add_parser("clear-history", help="Clear the chat transcript").set_defaults(handler=cmd_clear_history)

    purge = sub.add_parser("purge-book", help="Delete all cached summaries of a book")
    purge.add_argument("--book-id", required=True)
    purge.set_defaults(handler=cmd_purge_book)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=config.HTTP_API_HOST)
    serve.add_argument("--port", type=int, default=config.HTTP_API_PORT)
    serve.set_defaults(handler=cmd_serve)

    return parser


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    args = build_parser().parse_args()

    if not initialize_system(verbose=not args.quiet):
        return 1

    try:
        return args.handler(args)
    except AIServiceError as e:
        log_error(str(e))
        return 2
    finally:
        shutdown_system()


if __name__ == "__main__":
    sys.exit(main())
