"""
Habit Analytics - Pure computations over habits and their logs

Nothing here touches the database; the service layer fetches rows and
passes them in, which keeps these functions easy to test.
"""
from collections import defaultdict
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Set

from app.core.constants import STREAK_BREAKS_LIMIT, STREAK_HISTORY_LIMIT, TREND_STABLE_THRESHOLD
from app.utils.timezone import parse_timestamp, to_ist

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def _as_date(value: Any) -> date:
    return value if isinstance(value, date) else date.fromisoformat(str(value)[:10])


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


# ============================================================================
# STREAKS
# ============================================================================

def compute_streaks(completed_dates: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Group completion dates into runs of consecutive days

    Args:
        completed_dates: Dates (or YYYY-MM-DD strings) with at least one completion

    Returns:
        Chronological list of {"start", "end", "length"}
    """
    days = sorted({_as_date(d) for d in completed_dates})
    streaks: List[Dict[str, Any]] = []

    for day in days:
        if streaks and day - streaks[-1]["end"] == timedelta(days=1):
            streaks[-1]["end"] = day
            streaks[-1]["length"] += 1
        else:
            streaks.append({"start": day, "end": day, "length": 1})

    return streaks


def compute_current_streak(completed_dates: Iterable[Any], today: date) -> int:
    """
    Length of the run of completion days ending today or yesterday

    A streak that ended yesterday is still alive because today can still
    be completed.
    """
    run = current_streak_run(completed_dates, today)
    return run["length"] if run else 0


def current_streak_run(completed_dates: Iterable[Any], today: date) -> Optional[Dict[str, Any]]:
    """
    The live run of completion days ending today or yesterday

    Returns:
        {"start", "end", "length"} or None when there is no live streak
    """
    days: Set[date] = {_as_date(d) for d in completed_dates}
    end = today if today in days else today - timedelta(days=1)
    cursor = end
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    if not streak:
        return None
    return {"start": cursor + timedelta(days=1), "end": end, "length": streak}


def streak_analysis(completed_dates: Iterable[Any], today: date) -> Dict[str, Any]:
    """
    Summarize streak history

    Returns:
        Dict with current, longest, average, history (last streaks) and
        breaks (first missed day after each finished streak)
    """
    dates = list(completed_dates)
    streaks = compute_streaks(dates)
    current = compute_current_streak(dates, today)

    breaks = []
    for streak in streaks:
        missed = streak["end"] + timedelta(days=1)
        if missed < today:
            breaks.append({"date": missed.isoformat(), "streak_length": streak["length"]})

    lengths = [s["length"] for s in streaks]
    return {
        "current": current,
        "longest": max(lengths, default=0),
        "average": round(sum(lengths) / len(lengths), 1) if lengths else 0.0,
        "history": [
            {"start": s["start"].isoformat(), "end": s["end"].isoformat(), "length": s["length"]}
            for s in streaks[-STREAK_HISTORY_LIMIT:]
        ],
        "breaks": breaks[-STREAK_BREAKS_LIMIT:]
    }


# ============================================================================
# PERFECT DAYS
# ============================================================================

def is_perfect_day(active_habit_ids: Iterable[Any], day_logs: List[Dict[str, Any]]) -> bool:
    """True when every active habit has a completed log in day_logs"""
    required = {str(h) for h in active_habit_ids}
    if not required:
        return False
    done = {str(log["habit_id"]) for log in day_logs if log.get("completed")}
    return required <= done


def count_perfect_days(active_habit_ids: Iterable[Any], logs: List[Dict[str, Any]]) -> int:
    """Number of distinct days on which every active habit was completed"""
    required = [str(h) for h in active_habit_ids]
    by_day = defaultdict(list)
    for log in logs:
        by_day[log["date"]].append(log)
    return sum(1 for day_logs in by_day.values() if is_perfect_day(required, day_logs))


# ============================================================================
# DISTRIBUTIONS AND TRENDS
# ============================================================================

def day_of_week_distribution(logs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Completions and success rate per weekday, Monday first"""
    totals = [0] * 7
    completions = [0] * 7
    for log in logs:
        weekday = _as_date(log["date"]).weekday()
        totals[weekday] += 1
        if log.get("completed"):
            completions[weekday] += 1

    return [
        {
            "day": name,
            "completions": completions[i],
            "total": totals[i],
            "success_rate": _rate(completions[i], totals[i])
        }
        for i, name in enumerate(WEEKDAYS)
    ]


def hour_distribution(logs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Completions per IST hour of day, based on completed_at

    Hours without any timestamped log are omitted.
    """
    buckets = defaultdict(lambda: {"completions": 0, "total": 0, "focus_minutes": 0})
    for log in logs:
        completed_at = log.get("completed_at")
        if not completed_at:
            continue
        hour = to_ist(parse_timestamp(completed_at)).hour
        bucket = buckets[hour]
        bucket["total"] += 1
        bucket["focus_minutes"] += log.get("duration_minutes") or 0
        if log.get("completed"):
            bucket["completions"] += 1

    return [
        {
            "hour": hour,
            "completions": b["completions"],
            "success_rate": _rate(b["completions"], b["total"]),
            "avg_focus_minutes": round(b["focus_minutes"] / b["total"])
        }
        for hour, b in sorted(buckets.items())
    ]


def classify_trend(current_rate: float, previous_rate: float) -> str:
    """improving / declining / stable for completion rates in 0..1"""
    change = current_rate - previous_rate
    if abs(change) < TREND_STABLE_THRESHOLD:
        return "stable"
    return "improving" if change > 0 else "declining"


def habit_trends(habits: List[Dict[str, Any]], logs: List[Dict[str, Any]],
                 today: date, days: int) -> List[Dict[str, Any]]:
    """
    Compare each habit's completion rate with the previous period of equal length

    Args:
        habits: Habit rows
        logs: Logs covering at least the last 2 * days days
        today: Last day of the current period
        days: Period length

    Returns:
        One entry per habit with rates, trend and change_percent
    """
    current_start = today - timedelta(days=days - 1)
    previous_start = current_start - timedelta(days=days)

    current_done = defaultdict(int)
    previous_done = defaultdict(int)
    for log in logs:
        if not log.get("completed"):
            continue
        day = _as_date(log["date"])
        habit_id = str(log["habit_id"])
        if current_start <= day <= today:
            current_done[habit_id] += 1
        elif previous_start <= day < current_start:
            previous_done[habit_id] += 1

    trends = []
    for habit in habits:
        habit_id = str(habit["id"])
        current_rate = current_done[habit_id] / days
        previous_rate = previous_done[habit_id] / days
        trends.append({
            "habit_id": habit["id"],
            "name": habit.get("name"),
            "category": habit.get("category"),
            "completions": current_done[habit_id],
            "completion_rate": round(current_rate * 100, 1),
            "previous_completion_rate": round(previous_rate * 100, 1),
            "trend": classify_trend(current_rate, previous_rate),
            "change_percent": round((current_rate - previous_rate) * 100, 1)
        })
    return trends


def build_analytics(habits: List[Dict[str, Any]], logs: List[Dict[str, Any]],
                    today: date, days: int = 30,
                    completed_dates: Optional[List[str]] = None) -> Dict[str, Any]:
    """
    Assemble the analytics report for a period ending today

    Args:
        habits: All of the user's habits
        logs: Logs covering the current and previous period
        today: Verified current date
        days: Period length
        completed_dates: All-time completion dates for streaks; defaults to
            those found in logs

    Returns:
        Dict with period, overview, trends, day_of_week, hourly and streaks
    """
    start = today - timedelta(days=days - 1)
    period_logs = [log for log in logs if start <= _as_date(log["date"]) <= today]
    active_ids = [h["id"] for h in habits if h.get("is_active", True)]
    completed = [log for log in period_logs if log.get("completed")]

    if completed_dates is None:
        completed_dates = [log["date"] for log in logs if log.get("completed")]
    streaks = streak_analysis(completed_dates, today)

    overview = {
        "total_habits": len(habits),
        "active_habits": len(active_ids),
        "total_logs": len(period_logs),
        "total_completions": len(completed),
        "completion_rate": _rate(len(completed), len(active_ids) * days),
        "perfect_days": count_perfect_days(active_ids, period_logs),
        "current_streak": streaks["current"],
        "longest_streak": streaks["longest"],
        "total_focus_minutes": sum(log.get("duration_minutes") or 0 for log in period_logs)
    }

    return {
        "period": {"start": start.isoformat(), "end": today.isoformat(), "days": days},
        "overview": overview,
        "trends": habit_trends(habits, logs, today, days),
        "day_of_week": day_of_week_distribution(period_logs),
        "hourly": hour_distribution(period_logs),
        "streaks": streaks
    }
