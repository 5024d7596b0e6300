#!/usr/bin/env python3
"""
Command line entry point for the feed ranking service.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from pydantic import ValidationError

from anthology.config import get_config
from anthology.logging_setup import configure_logging
from anthology.models import RankingRequest
from anthology.orchestration.ranking_orchestrator import RankingOrchestrator
from anthology.orchestration.ranking_service_factory import RankingServiceFactory

# Set up logging
logger = logging.getLogger(__name__)
configure_logging()


def load_request(path: str) -> RankingRequest:
    """Read and validate a ranking request JSON file."""
    raw = Path(path).read_text(encoding="utf-8")
    return RankingRequest.model_validate_json(raw)


def run_rank(orchestrator: RankingOrchestrator, request: RankingRequest, snapshot: bool = False):
    """Print the ranking (or the full snapshot) as JSON."""
    result = orchestrator.rank_request(request)

    if snapshot:
        print(result.model_dump_json(by_alias=True, indent=2))
    else:
        print(json.dumps([r.model_dump(by_alias=True) for r in result.rankings], indent=2))


def run_explain(orchestrator: RankingOrchestrator, request: RankingRequest):
    """Print a readable score breakdown per item."""
    explanations = orchestrator.explain_request(request)

    print(f"\n📊 Ranking for user {request.user_id} ({len(explanations)} items)")
    print("=" * 60)

    for i, explanation in enumerate(explanations):
        print(f"\n#{i+1} - {explanation.content_id}")
        print(f"Reason: {explanation.reason}")
        print(f"Age: {explanation.age_days:.1f} days | Final Score: {explanation.final_score:.3f}")
        print(f"Components:")
        print(f"  • Recency:    {explanation.components.recency:.3f}")
        print(f"  • Time match: {explanation.components.time_match:.3f}")
        print(f"  • Completion: {explanation.components.completion:.3f}")
        print(f"  • Freshness:  {explanation.components.freshness:.3f}")
        print(f"  • Type pref:  {explanation.components.type_preference:.3f}")
        print(f"  • Explore:    {explanation.components.exploration:.3f}")
        print(f"Formula: {explanation.formula}")
        print("-" * 60)


def run_server(host: str, port: int):
    """Serve the ranking API with uvicorn."""
    logger.info(f"🚀 Starting ranking API on {host}:{port}")
    uvicorn.run("anthology.api.api:app", host=host, port=port, log_level="info")


def main(argv=None) -> int:
    """Main function."""
    cfg = get_config()
    logging.getLogger().setLevel(cfg.logging.level)

    parser = argparse.ArgumentParser(description="Anthology Feed Ranking")
    subparsers = parser.add_subparsers(dest='command', required=True)

    rank_parser = subparsers.add_parser('rank', help='Rank a request file and print the result')
    rank_parser.add_argument('request_file', help='Path to a ranking request JSON file')
    rank_parser.add_argument('--snapshot', action='store_true',
                             help='Print the versioned snapshot instead of the bare ranking')

    explain_parser = subparsers.add_parser('explain', help='Explain the score of every item')
    explain_parser.add_argument('request_file', help='Path to a ranking request JSON file')

    serve_parser = subparsers.add_parser('serve', help='Run the HTTP API')
    serve_parser.add_argument('--host', default=cfg.api.host,
                              help=f'Bind address (default: {cfg.api.host})')
    serve_parser.add_argument('--port', type=int, default=cfg.api.port,
                              help=f'Port (default: {cfg.api.port})')

    args = parser.parse_args(argv)

    if args.command == 'serve':
        run_server(args.host, args.port)
        return 0

    try:
        request = load_request(args.request_file)
    except OSError as e:
        print(f"❌ Cannot read request file: {e}", file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"❌ Invalid ranking request:\n{e}", file=sys.stderr)
        return 2

    orchestrator = RankingServiceFactory.create_orchestrator()

    if args.command == 'rank':
        run_rank(orchestrator, request, snapshot=args.snapshot)

    elif args.command == 'explain':
        run_explain(orchestrator, request)

    return 0


if __name__ == "__main__":
    load_dotenv()
    sys.exit(main())
