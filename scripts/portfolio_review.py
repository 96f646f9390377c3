"""Run the weekly portfolio review once and print the report as JSON.

Schedule externally, for example with cron: ``0 9 * * MON python scripts/portfolio_review.py``.
"""

import argparse
import sys
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Summarize stored investment proposals by risk level."
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=None,
        help="Pretty-print the JSON report with this indent.",
    )
    args = parser.parse_args(argv)

    from src.api.observability import configure_logging
    from src.api.routers.investment_proposals_config import build_repository
    from src.core.investments import PortfolioQueryService

    configure_logging()
    service = PortfolioQueryService(repository=build_repository())
    report = service.run_portfolio_review()
    print(report.model_dump_json(indent=args.indent))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
