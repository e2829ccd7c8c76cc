from __future__ import annotations

import argparse
import asyncio
import sys

from chains.agent_configs import available_agents
from chains.events import EndEvent, ErrorEvent, ResponseEvent, SourcesEvent, to_json
from chains.rag_pipeline import create_pipeline
from common.logger import get_logger

log = get_logger(__name__)


async def _ask(agent: str, question: str, as_json: bool, no_rephrase: bool) -> int:
    pipeline = create_pipeline(agent, use_fast_llm=not no_rephrase)
    sources = []
    status = 0
    async for event in pipeline.stream(question):
        if as_json:
            sys.stdout.write(to_json(event).decode("utf-8") + "\n")
            sys.stdout.flush()
            if isinstance(event, ErrorEvent):
                status = 1
            continue

        if isinstance(event, SourcesEvent):
            sources = event.documents
            print("\n=== ANSWER ===\n")
        elif isinstance(event, ResponseEvent):
            print(event.text, end="", flush=True)
        elif isinstance(event, ErrorEvent):
            print(f"\n[error] {event.message}", file=sys.stderr)
            status = 1
        elif isinstance(event, EndEvent):
            print()

    if sources and not as_json:
        print("\n=== SOURCES ===\n")
        for i, d in enumerate(sources, start=1):
            print(f"[{i}] {d.metadata.get('title') or 'Unknown'} - {d.metadata.get('url')}")
    return status


def main():
    parser = argparse.ArgumentParser(
        description="Ask a question against an indexed documentation collection."
    )
    parser.add_argument("question", type=str, help="Your question")
    parser.add_argument(
        "--agent", type=str, default="cairo_book", choices=available_agents()
    )
    parser.add_argument(
        "--json", action="store_true", help="Print raw pipeline events as JSON lines"
    )
    parser.add_argument(
        "--no_rephrase",
        action="store_true",
        help="Skip the query rephrasing model and use keyword heuristics",
    )
    args = parser.parse_args()

    raise SystemExit(asyncio.run(_ask(args.agent, args.question, args.json, args.no_rephrase)))


if __name__ == "__main__":
    main()
