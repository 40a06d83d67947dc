"""Command-line entry point for the incident assistant.

Usage:
    uv run python -m src.cli serve --port 8080
    uv run python -m src.cli summarize /var/log/app.log
    uv run python -m src.cli health
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from src.ai.factory import create_client
from src.config import build_client_config, get_settings
from src.errors import AIError, IncidentAssistantError
from src.incidents.service import IncidentService
from src.incidents.store import IncidentStore

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
)


def _build_service() -> IncidentService:
    config = build_client_config(get_settings())
    return IncidentService(IncidentStore(), ai_client=create_client(config), ai_timeout=config.timeout_seconds)


async def _summarize(path: Path) -> int:
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        print(f"Error: cannot read {path}: {exc.strerror or exc}", file=sys.stderr)
        return 1
    logs = [line for line in text.splitlines() if line.strip()]
    if not logs:
        print(f"No log lines in {path}", file=sys.stderr)
        return 1

    summary = await _build_service().summarize_logs(logs)
    print(f"Summary ({summary.provider}/{summary.model}):\n{summary.summary}\n")
    if summary.key_insights:
        print("Key insights:")
        for insight in summary.key_insights:
            print(f"  - {insight}")
    if summary.alerts:
        print("Alerts:")
        for alert in summary.alerts:
            print(f"  ! {alert}")
    return 0


async def _health() -> int:
    service = _build_service()
    try:
        await service.check_ai_health()
    except AIError as exc:
        print(f"AI provider unhealthy: {exc}", file=sys.stderr)
        return 1
    client = service.ai_client
    print(f"AI provider healthy: {client.provider_name}/{client.model_name}" if client else "AI provider healthy")
    return 0


def _serve(host: str, port: int) -> int:
    import uvicorn

    uvicorn.run("src.api.main:app", host=host, port=port)
    return 0


def main() -> None:
    """Parse args and dispatch to a subcommand."""
    parser = argparse.ArgumentParser(description="Incident assistant")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8080)

    summarize = sub.add_parser("summarize", help="Summarize a log file with the configured AI provider")
    summarize.add_argument("path", type=Path)

    sub.add_parser("health", help="Check the configured AI provider")

    args = parser.parse_args()
    try:
        if args.command == "serve":
            code = _serve(args.host, args.port)
        elif args.command == "summarize":
            code = asyncio.run(_summarize(args.path))
        else:
            code = asyncio.run(_health())
    except IncidentAssistantError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
