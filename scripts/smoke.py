# scripts/smoke.py
"""
Smoke Test Script for calctl.

Seeds a throwaway calendar, exercises the service end to end and prints the
resulting agenda, without touching the real ``~/.calctl/events.json``.

Usage
-----
1. Run against a temporary file (deleted afterwards):
    $ uv run python scripts/smoke.py

2. Keep the seeded file for inspection with the CLI:
    $ uv run python scripts/smoke.py --file /tmp/events.json
    $ uv run calctl --data-file /tmp/events.json list
"""

import argparse
import logging
import sys
import tempfile
from datetime import date, timedelta
from pathlib import Path

from dotenv import load_dotenv

from calctl.core.errors import CalctlError, ConflictError
from calctl.services.calendar import CalendarService, week_bounds

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

# --------------------------------------------------------------------------- #
# Test Data
# --------------------------------------------------------------------------- #
SEED = [
    # (day offset from Monday, title, time, duration, description)
    (0, "Standup", "09:00", "15m", "Daily sync"),
    (0, "Design review", "14:00", "1h 30m", "Storage format"),
    (2, "Lunch with Sam", "12:30", "1h", None),
    (4, "Retro", "16:00", "1h", "Team retrospective"),
]


def run(path: Path) -> int:
    """Seed `path`, run a few queries and print a summary. Returns an exit code."""
    svc = CalendarService.open(path)
    monday, _ = week_bounds(date.today())

    print(f"\n📂 Using event file: {path}")
    for offset, title, start, dur, desc in SEED:
        day = (monday + timedelta(days=offset)).isoformat()
        event = svc.add_event(title, day, start, dur, description=desc, force=True)
        print(f"  + {event.id}  {day} {start}  {title}")

    # A deliberate clash must be rejected without --force.
    try:
        svc.add_event("Clash", monday.isoformat(), "14:30", "30m")
    except ConflictError as exc:
        print(f"\n✅ Conflict detected: {[e.title for e in exc.conflicts]}")
    else:
        print("\n❌ Expected a conflict for 'Clash'")
        return 1

    print("\n🗓️  This week:")
    for event in svc.agenda(week=True):
        print(f"  {event.start_date_time:%a %H:%M}  {event.title} ({event.duration})")

    hits = svc.search(keyword="team")
    print(f"\n🔎 Search 'team': {[e.title for e in hits]}")
    return 0


def main() -> None:
    """Execute the smoke test workflow."""
    parser = argparse.ArgumentParser(description="Run calctl Smoke Test")
    parser.add_argument("--file", "-f", type=str, help="Event file to seed (kept afterwards)")
    args = parser.parse_args()

    try:
        if args.file:
            code = run(Path(args.file).expanduser())
        else:
            with tempfile.TemporaryDirectory() as tmp:
                code = run(Path(tmp) / "events.json")
    except CalctlError as exc:
        print(f"\n❌ Smoke test failed: {exc}")
        sys.exit(1)

    print("\n" + "=" * 60)
    print("✅ Smoke test finished" if code == 0 else "❌ Smoke test failed")
    print("=" * 60)
    sys.exit(code)


if __name__ == "__main__":
    main()
