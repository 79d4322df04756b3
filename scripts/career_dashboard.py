"""
Print career dashboard payloads for a user as JSON.

Usage:
    python scripts/career_dashboard.py --user-id USER                      # Full dashboard from MongoDB
    python scripts/career_dashboard.py --user-id USER --view metrics       # Summary cards only
    python scripts/career_dashboard.py --fixture tests/fixtures/career_fixture.json --view financial
    python scripts/career_dashboard.py --user-id USER --view insights --debug
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.analytics.dashboard import CareerDashboardService
from src.common.config import Config
from src.common.error_handling import CareerMetricsError
from src.common.logger import get_logger, setup_logging
from src.common.repositories import InMemoryCareerDataRepository, get_career_repository
from version import __version__

FIXTURE_USER_ID = "fixture-user"

VIEWS = ("dashboard", "metrics", "financial", "applications", "progression", "insights", "timeline")


async def fetch_view(service: CareerDashboardService, user_id: str, view: str):
    """Run the service call behind a view and return JSON-ready data."""
    if view == "dashboard":
        return (await service.get_career_dashboard_data(user_id)).to_dict()
    if view == "metrics":
        return (await service.get_dashboard_metrics(user_id)).to_dict()
    if view == "financial":
        return await service.get_financial_chart_data(user_id)
    if view == "applications":
        return await service.get_job_application_chart_data(user_id)
    if view == "progression":
        return await service.get_career_progression_chart_data(user_id)
    if view == "insights":
        return await service.get_application_insights(user_id)
    if view == "timeline":
        return await service.get_career_timeline(user_id)
    raise ValueError(f"Unknown view: {view}")


def build_service(user_id: str, fixture_path=None) -> CareerDashboardService:
    """Service over a JSON fixture file, or over MongoDB when no fixture is given."""
    if fixture_path:
        fixture = json.loads(Path(fixture_path).read_text())
        repository = InMemoryCareerDataRepository.from_fixture(user_id, fixture)
    else:
        Config.validate()
        repository = get_career_repository()
    return CareerDashboardService(repository)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Print career dashboard data as JSON")
    parser.add_argument("--user-id", help="User to report on (required without --fixture)")
    parser.add_argument("--fixture", help="JSON file with work_experiences, career_events, job_applications")
    parser.add_argument("--view", choices=VIEWS, default="dashboard", help="Payload to print")
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)

    if not args.user_id and not args.fixture:
        parser.error("--user-id is required unless --fixture is given")

    debug = args.debug or Config.DEBUG_MODE
    setup_logging(level="DEBUG" if debug else Config.LOG_LEVEL, format=Config.LOG_FORMAT)

    user_id = args.user_id or FIXTURE_USER_ID
    cli_logger = get_logger(__name__, user_id=user_id, component="cli")
    cli_logger.debug(Config.summary())

    try:
        service = build_service(user_id, args.fixture)
        payload = asyncio.run(fetch_view(service, user_id, args.view))
    except (CareerMetricsError, ValueError, OSError) as e:
        cli_logger.exception(f"Failed to build '{args.view}' view: {e}")
        print(f"❌ ERROR: {e}", file=sys.stderr)
        return 1

    print(json.dumps(payload, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
