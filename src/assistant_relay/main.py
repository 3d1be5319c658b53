from __future__ import annotations

import argparse
import asyncio
import json
import logging

from assistant_relay.config.settings import get_settings
from assistant_relay.orchestrator.outcomes import ConversationResult, Outcome
from assistant_relay.session_store import SessionStore, build_session_store

DEFAULT_SESSION_KEY = "default"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _resolve_session_id(
    store: SessionStore, key: str, explicit: str | None, new_session: bool
) -> str | None:
    if explicit:
        return explicit
    if new_session:
        return None
    return store.get(key)


def _remember_session(store: SessionStore, key: str, result: ConversationResult) -> None:
    # A timeout keeps the thread so the next turn can retry on it.
    if result.session_id:
        store.set(key, result.session_id)


def _print_result(result: ConversationResult) -> int:
    if result.outcome is Outcome.TIMEOUT or result.outcome is Outcome.ERROR:
        print(f"[error] {result.error}")
    else:
        print(result.reply)
    if result.session_id:
        print(f"\n[session_id] {result.session_id}")
    print(f"[outcome] {result.outcome.value}")
    return 0 if result.ok else 1


async def _run_search(query: str) -> None:
    from assistant_relay.search import TavilySearchClient

    settings = get_settings()
    client = TavilySearchClient.from_settings(settings)
    result = await client.search(query, include_domains=settings.search_domains)
    print(json.dumps(result.model_dump(), indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Converse with the configured remote assistant"
    )
    parser.add_argument("prompt", nargs="?", help="Message to send to the assistant")
    parser.add_argument(
        "--session-id",
        help="Continue an explicit thread instead of the remembered one",
    )
    parser.add_argument(
        "--session-key",
        default=DEFAULT_SESSION_KEY,
        help="Name under which the thread id is remembered between turns",
    )
    parser.add_argument(
        "--new-session", action="store_true", help="Start a new thread for this turn"
    )
    parser.add_argument(
        "--forget-session",
        action="store_true",
        help="Forget the remembered thread id for --session-key",
    )
    parser.add_argument(
        "--search",
        action="store_true",
        help="Run the prompt as a direct web search instead of a conversation",
    )
    parser.add_argument("--list-tools", action="store_true", help="List available tools")
    parser.add_argument(
        "--show-tool-definitions",
        action="store_true",
        help="Print the function definitions to register on the assistant",
    )
    parser.add_argument(
        "--show-graph",
        action="store_true",
        help="Print the run state machine as a Mermaid diagram",
    )
    parser.add_argument("--server", action="store_true", help="Start the API server")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind the server to")
    parser.add_argument(
        "--port", type=int, default=8000, help="Port to run the server on"
    )
    parser.add_argument("--reload", action="store_true", help="Enable hot reloading")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)

    if args.server:
        import uvicorn

        print(
            f"Starting server on {args.host}:{args.port} (reload={'on' if args.reload else 'off'})"
        )
        if args.reload:
            # When reloading, pass the import string instead of the app object
            uvicorn.run(
                "assistant_relay.api:app", host=args.host, port=args.port, reload=True
            )
        else:
            from assistant_relay.api import app

            uvicorn.run(app, host=args.host, port=args.port)
        return

    if args.list_tools or args.show_tool_definitions:
        from assistant_relay.tools.registry import ToolRegistry

        if args.show_tool_definitions:
            print(json.dumps(ToolRegistry.openai_definitions(), indent=2))
            return
        for name, spec in ToolRegistry.all_tools().items():
            print(f"- {name}: {spec.intent or spec.description}")
        return

    if args.show_graph:
        from assistant_relay.orchestrator import Orchestrator

        print(Orchestrator(settings).mermaid())
        return

    store = build_session_store()
    if args.forget_session:
        store.delete(args.session_key)
        print(f"Forgot session for key {args.session_key!r}")
        return

    if not args.prompt:
        raise SystemExit(
            "Provide a prompt or use --list-tools / --show-tool-definitions / --server"
        )

    if args.search:
        asyncio.run(_run_search(args.prompt))
        return

    from assistant_relay.orchestrator import Orchestrator

    orchestrator = Orchestrator(settings)
    session_id = _resolve_session_id(
        store, args.session_key, args.session_id, args.new_session
    )
    result = asyncio.run(orchestrator.converse(args.prompt, session_id=session_id))
    _remember_session(store, args.session_key, result)
    raise SystemExit(_print_result(result))


if __name__ == "__main__":
    main()
