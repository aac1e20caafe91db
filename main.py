"""Opportunity Brief - research pipeline CLI

Generates one brief for a company and prints it as JSON, or serves the HTTP API.
"""

import argparse
import asyncio
import json
import sys

import uvicorn

from oppbrief.agents.orchestrator import run_research_pipeline
from oppbrief.config import settings
from oppbrief.errors import ConfigurationError, PipelineError


async def run_research(name: str, website: str) -> int:
    """Run the pipeline for one company."""
    print(f"Researching: {name} ({website})", file=sys.stderr)
    print("-" * 50, file=sys.stderr)

    try:
        result = await run_research_pipeline(name, website)
    except ConfigurationError as exc:
        print(f"[!] Configuration error: {exc}", file=sys.stderr)
        return 2
    except PipelineError as exc:
        print(f"[!] {exc.user_message(production=settings.is_production)}", file=sys.stderr)
        return 1

    brief = result.brief
    print(f"[*] Brief complete in {result.runtime_ms}ms", file=sys.stderr)
    print(f"   Competitors: {len(brief.competitors)}", file=sys.stderr)
    print(f"   Citations: {len(brief.citations)}", file=sys.stderr)
    if brief.synthesized_fields:
        print(f"   Synthesized: {', '.join(brief.synthesized_fields)}", file=sys.stderr)
    print(json.dumps(brief.model_dump(), indent=2, ensure_ascii=False))
    return 0


def serve(host: str, port: int) -> int:
    """Serve the HTTP API until interrupted."""
    print(f"Serving on http://{host}:{port}", file=sys.stderr)
    uvicorn.run("oppbrief.main:app", host=host, port=port, log_level=settings.app_log_level.lower())
    return 0


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="AI opportunity brief generator")
    parser.add_argument("--name", "-n", help="Company name")
    parser.add_argument("--website", "-w", help="Company website")
    parser.add_argument("--serve", action="store_true", help="Run the HTTP API instead")
    parser.add_argument("--host", default=settings.api_host, help="API bind address")
    parser.add_argument("--port", type=int, default=settings.api_port, help="API port")

    args = parser.parse_args(argv)

    if args.serve:
        sys.exit(serve(args.host, args.port))
    if not args.name or not args.website:
        parser.error("--name and --website are required unless --serve is given")

    sys.exit(asyncio.run(run_research(args.name, args.website)))


if __name__ == "__main__":
    main()
