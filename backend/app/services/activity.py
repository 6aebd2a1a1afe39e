"""Time-of-day and per-week activity derived from public events and commits."""
import math
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from ..schemas.insights import ActivityProfile

CODE_EVENT_TYPES = frozenset({"PushEvent", "PullRequestEvent", "IssuesEvent"})

NIGHT_HOURS = list(range(20, 24)) + list(range(0, 5))
EARLY_HOURS = list(range(5, 12))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a GitHub ISO-8601 timestamp into an aware UTC datetime.

    Returns None for anything that does not parse.
    """
    try:
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, str) and value:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        else:
            return None
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        # Offsets can push year 1 or year 9999 out of range
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def commit_time_distribution(
    events: Iterable[dict], timezone_offset: int = 0
) -> ActivityProfile:
    """Bucket code events into 24 hourly counters.

    ``timezone_offset`` is in minutes east of UTC (-300 for EST, 330 for IST).
    """
    hours = [0] * 24
    for event in events or []:
        if event.get("type") not in CODE_EVENT_TYPES:
            continue
        created = parse_timestamp(event.get("created_at"))
        if created is None:
            continue
        total_minutes = created.hour * 60 + created.minute + timezone_offset
        hours[(total_minutes // 60) % 24] += 1

    night = sum(hours[h] for h in NIGHT_HOURS)
    early = sum(hours[h] for h in EARLY_HOURS)
    profile = "night-coder" if night > early else "early-bird"
    return ActivityProfile(hours=hours, profile=profile)


def week_key(moment: datetime) -> str:
    """Naive ``YYYY-Www`` key used by the weekly histogram.

    Not ISO-8601 week numbering: week = ceil((days since Jan 1 + weekday of
    Jan 1 + 1) / 7), with Sunday as weekday 0 and fractional days kept.
    Existing cached histograms depend on this exact formula.
    """
    moment = moment.astimezone(timezone.utc)
    jan1 = datetime(moment.year, 1, 1, tzinfo=timezone.utc)
    days = (moment - jan1).total_seconds() / 86400
    jan1_weekday = (jan1.weekday() + 1) % 7
    week = math.ceil((days + jan1_weekday + 1) / 7)
    return f"{moment.year}-W{week:02d}"


def _commit_date(commit: dict) -> Any:
    info = commit.get("commit") or {}
    author = info.get("author") or {}
    committer = info.get("committer") or {}
    return author.get("date") or committer.get("date")


def weekly_activity(
    events: Iterable[dict], commits: Iterable[dict] = ()
) -> list[tuple[str, int]]:
    """Count events and commits per week, newest week first."""
    counts: dict[str, int] = {}
    timestamps = [event.get("created_at") for event in events or []]
    timestamps += [_commit_date(commit) for commit in commits or []]

    for raw in timestamps:
        moment = parse_timestamp(raw)
        if moment is None:
            continue
        key = week_key(moment)
        counts[key] = counts.get(key, 0) + 1

    return sorted(counts.items(), key=lambda item: item[0], reverse=True)
