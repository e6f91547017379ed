"""Command-line interface for generating, revising and archiving articles."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import signal
import sys
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Sequence

from ..ai import AIServiceError, ArticleGenerator, ArticleReviser, RequestCancelled
from ..core.cancellation import CancellationToken
from ..core.drafts import NoActiveDraftError
from ..core.models import LANGUAGES, LIBRARY_LANGUAGES, TOPICS, Article, Draft
from ..services.exporter import EXPORT_FORMATS, export_draft
from ..settings import AppConfig, load_config
from ..storage import StorageError
from ..utils.logging import configure_logging, get_logger
from .session import AIRequestInProgressError, AuthoringSession

LOGGER = get_logger(__name__)

EXIT_CANCELLED = 130


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(structured=not args.log_plain)

    handler: Callable[[argparse.Namespace], int] | None = getattr(args, "handler", None)
    if handler is None:
        parser.print_help(sys.stderr)
        return 1
    try:
        return handler(args)
    except NoActiveDraftError as exc:
        LOGGER.error("%s", exc, extra={"event": "cli.error", "command": args.command})
        return 1
    except (StorageError, FileNotFoundError, ValueError) as exc:
        LOGGER.error(
            "Command failed: %s",
            exc,
            extra={"event": "cli.error", "command": args.command, "error_type": type(exc).__name__},
        )
        return 2
    except (RuntimeError, OSError) as exc:
        LOGGER.error(
            "Command failed: %s",
            exc,
            extra={"event": "cli.error", "command": args.command, "error_type": type(exc).__name__},
        )
        return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fitblog", description="Fitness equipment blog authoring")
    parser.add_argument("--config", help="Path to configuration file", default=None)
    parser.add_argument(
        "--log-plain",
        action="store_true",
        help="Use plain-text logs instead of JSON",
    )
    parser.add_argument(
        "--api-key",
        dest="api_key",
        help="Gemini API key (falls back to config, then GEMINI_API_KEY)",
        default=None,
    )

    subparsers = parser.add_subparsers(dest="command")

    _add_generate_command(subparsers)
    _add_draft_commands(subparsers)
    _add_library_commands(subparsers)

    return parser


def _add_generate_command(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    generate_parser = subparsers.add_parser("generate", help="Generate a new draft article")
    generate_parser.add_argument("--topic", choices=TOPICS, required=True)
    generate_parser.add_argument("--language", choices=LANGUAGES, default=LANGUAGES[0])
    generate_parser.add_argument(
        "--instructions",
        default="",
        help="Extra free-text requirements for the article",
    )
    generate_parser.set_defaults(handler=_handle_generate)


def _add_draft_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    draft_parser = subparsers.add_parser("draft", help="Work on the current draft")
    draft_subparsers = draft_parser.add_subparsers(dest="draft_command", required=True)

    show_parser = draft_subparsers.add_parser("show", help="Print the current draft")
    show_parser.add_argument("--format", choices=("text", "json"), default="text")
    show_parser.set_defaults(handler=_handle_draft_show)

    edit_parser = draft_subparsers.add_parser("edit", help="Overwrite draft fields")
    edit_parser.add_argument("--title")
    edit_parser.add_argument("--topic", choices=TOPICS)
    edit_parser.add_argument("--language", choices=LANGUAGES)
    edit_parser.add_argument("--content-file", type=Path, help="File holding the new content ('-' for stdin)")
    edit_parser.add_argument("--translation-file", type=Path, help="File holding the new Chinese translation")
    edit_parser.set_defaults(handler=_handle_draft_edit)

    revise_parser = draft_subparsers.add_parser("revise", help="Ask the AI to revise the draft")
    revise_parser.add_argument("request", help="What should change")
    revise_parser.set_defaults(handler=_handle_draft_revise)

    export_parser = draft_subparsers.add_parser("export", help="Write the draft to a file")
    export_parser.add_argument("--format", choices=EXPORT_FORMATS, default="md")
    export_parser.add_argument("--output-dir", type=Path, default=None)
    export_parser.set_defaults(handler=_handle_draft_export)

    save_parser = draft_subparsers.add_parser("save", help="Archive the draft into the library")
    save_parser.set_defaults(handler=_handle_draft_save)

    discard_parser = draft_subparsers.add_parser("discard", help="Throw the draft away")
    discard_parser.set_defaults(handler=_handle_draft_discard)


def _add_library_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    library_parser = subparsers.add_parser("library", help="Manage archived and reference articles")
    library_subparsers = library_parser.add_subparsers(dest="library_command", required=True)

    list_parser = library_subparsers.add_parser("list", help="List articles, newest first")
    list_parser.add_argument("--topic", choices=TOPICS)
    list_parser.add_argument("--search", help="Case-insensitive match on title or topic")
    list_parser.add_argument("--format", choices=("table", "json"), default="table")
    list_parser.set_defaults(handler=_handle_library_list)

    show_parser = library_subparsers.add_parser("show", help="Print one article")
    show_parser.add_argument("article_id")
    show_parser.set_defaults(handler=_handle_library_show)

    add_parser = library_subparsers.add_parser("add", help="Add a reference article by hand")
    add_parser.add_argument("--title", required=True)
    add_parser.add_argument("--topic", choices=TOPICS, default=TOPICS[0])
    add_parser.add_argument("--language", choices=LIBRARY_LANGUAGES, default=LIBRARY_LANGUAGES[0])
    add_parser.add_argument("--content-file", type=Path, required=True, help="'-' reads stdin")
    add_parser.set_defaults(handler=_handle_library_add)

    remove_parser = library_subparsers.add_parser("remove", help="Delete an article")
    remove_parser.add_argument("article_id")
    remove_parser.set_defaults(handler=_handle_library_remove)


def _handle_generate(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    session = AuthoringSession.from_config(
        config,
        generator=ArticleGenerator.from_stage(config.ai.generate, api_key=_api_key(args, config)),
    )
    LOGGER.info(
        "Generating article",
        extra={"event": "cli.command", "command": "generate", "topic": args.topic},
    )
    status = _run_ai_call(
        session,
        lambda token: session.generate(
            topic=args.topic,
            language=args.language,
            instructions=args.instructions,
            token=token,
        ),
        command="generate",
    )
    if status == 0 and session.draft is not None:
        _print_draft(session.draft)
    return status


def _handle_draft_show(args: argparse.Namespace) -> int:
    session = AuthoringSession.from_config(load_config(args.config))
    draft = session.draft
    if draft is None:
        print("<no-draft>")
        return 0
    if args.format == "json":
        print(json.dumps(draft.to_dict(), ensure_ascii=False, indent=2))
    else:
        _print_draft(draft)
    return 0


def _handle_draft_edit(args: argparse.Namespace) -> int:
    session = AuthoringSession.from_config(load_config(args.config))
    patch: dict[str, str] = {}
    if args.title is not None:
        patch["title"] = args.title
    if args.topic is not None:
        patch["topic"] = args.topic
    if args.language is not None:
        patch["language"] = args.language
    if args.content_file is not None:
        patch["content"] = _read_input(args.content_file)
    if args.translation_file is not None:
        patch["chinese_translation"] = _read_input(args.translation_file)
    if not patch:
        LOGGER.error("Nothing to edit", extra={"event": "cli.error", "command": "draft.edit"})
        return 2
    draft = session.edit_draft(**patch)
    LOGGER.info(
        "Draft updated",
        extra={"event": "cli.command", "command": "draft.edit", "fields": sorted(patch)},
    )
    print(draft.id)
    return 0


def _handle_draft_revise(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    session = AuthoringSession.from_config(
        config,
        reviser=ArticleReviser.from_stage(config.ai.revise, api_key=_api_key(args, config)),
    )
    session.drafts.require()
    status = _run_ai_call(
        session,
        lambda token: session.revise(args.request, token=token),
        command="draft.revise",
    )
    if status == 0 and session.draft is not None:
        entry = session.draft.revision_history[-1]
        print(entry.notes)
    return status


def _handle_draft_export(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    session = AuthoringSession.from_config(config)
    draft = session.drafts.require()
    path = export_draft(draft, args.output_dir or config.paths.export_dir, args.format)
    print(path)
    return 0


def _handle_draft_save(args: argparse.Namespace) -> int:
    session = AuthoringSession.from_config(load_config(args.config))
    article = session.save_to_library()
    print(article.id)
    return 0


def _handle_draft_discard(args: argparse.Namespace) -> int:
    session = AuthoringSession.from_config(load_config(args.config))
    session.discard_draft()
    LOGGER.info("Draft discarded", extra={"event": "cli.command", "command": "draft.discard"})
    return 0


def _handle_library_list(args: argparse.Namespace) -> int:
    session = AuthoringSession.from_config(load_config(args.config))
    articles = list(session.library)
    if args.topic:
        articles = [article for article in articles if article.topic == args.topic]
    if args.search:
        matches = {article.id for article in session.library.search(args.search)}
        articles = [article for article in articles if article.id in matches]
    if args.format == "json":
        print(json.dumps([article.to_dict() for article in articles], ensure_ascii=False, indent=2))
    else:
        _print_article_table(articles)
    return 0


def _handle_library_show(args: argparse.Namespace) -> int:
    session = AuthoringSession.from_config(load_config(args.config))
    article = session.library.get(args.article_id)
    if article is None:
        LOGGER.error(
            "Article not found",
            extra={"event": "cli.error", "command": "library.show", "article_id": args.article_id},
        )
        return 1
    print(f"# {article.title}\n")
    print(article.content)
    if article.chinese_translation:
        print(f"\n---\n\n{article.chinese_translation}")
    return 0


def _handle_library_add(args: argparse.Namespace) -> int:
    session = AuthoringSession.from_config(load_config(args.config))
    article = session.library.add_reference(
        title=args.title,
        content=_read_input(args.content_file),
        topic=args.topic,
        language=args.language,
    )
    print(article.id)
    return 0


def _handle_library_remove(args: argparse.Namespace) -> int:
    session = AuthoringSession.from_config(load_config(args.config))
    removed = session.library.remove(args.article_id)
    if not removed:
        LOGGER.warning(
            "No article removed",
            extra={"event": "cli.command", "command": "library.remove", "article_id": args.article_id},
        )
    return 0


def _run_ai_call(
    session: AuthoringSession,
    call: Callable[[CancellationToken], Awaitable[Draft]],
    *,
    command: str,
) -> int:
    try:
        asyncio.run(_cancellable(session, call))
    except RequestCancelled:
        LOGGER.info("Request cancelled by user", extra={"event": "cli.cancelled", "command": command})
        return EXIT_CANCELLED
    except (AIServiceError, AIRequestInProgressError) as exc:
        LOGGER.error(
            "AI request failed: %s",
            exc,
            extra={"event": "cli.error", "command": command, "error_type": type(exc).__name__},
        )
        return 1
    return 0


async def _cancellable(
    session: AuthoringSession,
    call: Callable[[CancellationToken], Awaitable[Draft]],
) -> Draft:
    """Run ``call`` with Ctrl+C wired to its cancellation token and autosave running."""
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, token.cancel)
    try:
        async with session.autosave():
            return await call(token)
    finally:
        with contextlib.suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)


def _api_key(args: argparse.Namespace, config: AppConfig) -> str | None:
    return args.api_key or config.ai.api_key


def _read_input(path: Path) -> str:
    if str(path) == "-":
        return sys.stdin.read()
    return path.read_text(encoding="utf-8")


def _format_timestamp(value: int) -> str:
    return datetime.fromtimestamp(value / 1000).strftime("%Y-%m-%d %H:%M:%S")


def _print_draft(draft: Draft) -> None:
    print(f"# {draft.title}")
    print(f"[{draft.topic}] [{draft.language}] last saved {_format_timestamp(draft.last_saved)}\n")
    print(draft.content)
    print("\n---\n")
    print(draft.chinese_translation)
    if draft.logic_check_notes:
        print("\n== 逻辑与质量检查 ==\n")
        print(draft.logic_check_notes)
    if draft.references:
        print("\n== 参考来源 ==")
        for ref in draft.references:
            print(f"- {ref.title} ({ref.url})" if ref.url else f"- [文章库] {ref.title}")
    if draft.revision_history:
        print("\n== 修改历史 ==")
        for index, entry in enumerate(draft.revision_history, start=1):
            print(f"{index}. {entry.request}\n   {entry.notes}")


def _print_article_table(articles: Sequence[Article]) -> None:
    if not articles:
        print("<no-articles>")
        return
    width = max(len(article.topic) for article in articles)
    for article in articles:
        marker = "ref" if article.is_reference else "gen"
        print(
            article.id,
            article.topic.ljust(width),
            article.language,
            marker,
            _format_timestamp(article.created_at),
            article.title,
            sep="  ",
        )


__all__ = ["main"]
