"""RecoveryFinder CLI — search nearby recovery resources from the terminal."""

import asyncio
import logging
import sys

from recoveryfinder.config import settings
from recoveryfinder.core.errors import RecoveryFinderError
from recoveryfinder.observability.tracing import configure_tracing
from recoveryfinder.pipeline.categories import CATEGORY_FILTERS

USAGE = """Usage: recoveryfinder <location> [--category KEY] [--radius MILES]
  Example: recoveryfinder 10001
  Example: recoveryfinder "Austin, TX" --category fitness --radius 10
  Categories: all, """ + ", ".join(CATEGORY_FILTERS)


def parse_args(argv: list[str]) -> tuple[str, str | None, float | None]:
    """Split argv into (location, category, radius). Raises ValueError on bad input."""
    category = None
    radius = None
    words = []

    args = iter(argv)
    for arg in args:
        if arg in ("--category", "-c"):
            category = next(args, None)
            if category is None:
                raise ValueError("--category needs a value")
        elif arg in ("--radius", "-r"):
            value = next(args, None)
            if value is None:
                raise ValueError("--radius needs a value")
            radius = float(value)
        else:
            words.append(arg)

    location = " ".join(words).strip()
    if not location:
        raise ValueError("location is required")
    return location, category, radius


def main() -> None:
    """Run a resource search: recoveryfinder <location>"""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    configure_tracing(
        settings.tracing_enabled,
        settings.mlflow_tracking_uri,
        settings.mlflow_experiment_name,
    )

    if len(sys.argv) < 2 or sys.argv[1] == "--help":
        print(USAGE)
        sys.exit(0 if sys.argv[1:] == ["--help"] else 1)

    try:
        location, category, radius = parse_args(sys.argv[1:])
    except ValueError as e:
        print(f"Error: {e}\n")
        print(USAGE)
        sys.exit(1)

    sys.exit(asyncio.run(_search(location, category, radius)))


async def _search(location: str, category: str | None, radius: float | None) -> int:
    """Location → geocode → fan-out search, printed as a table."""
    from recoveryfinder.pipeline.lookup import find_resources
    from recoveryfinder.retrieval.geoapify import GeoapifyClient

    try:
        provider = GeoapifyClient.from_settings(settings)
    except RecoveryFinderError as e:
        print(f"Error: {e.message} (set GEOAPIFY_API_KEY)")
        return 1

    try:
        search = await find_resources(provider, location, category, radius, settings=settings)
    except RecoveryFinderError as e:
        print(f"Error: {e.message}")
        return 1
    finally:
        await provider.aclose()

    print("\nRecoveryFinder")
    print(f"{'=' * 60}")
    print(f"Location: {search.location}")
    print(f"Centre:   {search.center.lat:.5f}, {search.center.lng:.5f}")
    print(f"Radius:   {search.radius_miles:g} mi   Categories: {', '.join(search.categories)}")
    print(f"{'─' * 60}")

    if not search.resources:
        print("No resources found. Try expanding your search radius.")
        return 0

    for r in search.resources:
        print(f"{r.distance:5.1f} mi  {r.name}  [{r.type}]")
        print(f"          {r.address}")
        if r.phone:
            print(f"          Phone:   {r.phone}")
        if r.website:
            print(f"          Website: {r.website}")

    print(f"{'─' * 60}")
    print(f"{len(search.resources)} resource(s)")
    return 0


if __name__ == "__main__":
    main()
