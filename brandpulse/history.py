"""Synthetic sentiment history.

Reddit search only gives a current snapshot, so the hourly trend shown next
to it is generated: older points are mostly random, newer points converge on
the current score, and the newest point equals the (clamped) current score.
Both generators are pure given `rng` and `now`.
"""

import math
import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from brandpulse.models.content_models import HistoryPoint


SCORE_MIN = -100.0
SCORE_MAX = 100.0


def _clamp(score: float) -> float:
    return max(SCORE_MIN, min(SCORE_MAX, score))


def _timestamp(now: datetime, hours_ago: int) -> str:
    return (now - timedelta(hours=hours_ago)).isoformat()


def generate_history(
    current_score: float,
    hours: int = 24,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> List[HistoryPoint]:
    """Generate `hours` points one hour apart, oldest first, ending at `now`.

    For the point `i` hours old, with weight w = i / hours:
        variance = (r1 - 0.5) * 30 * w
        base     = current_score * (1 - w)
        noise    = (r2 - 0.5) * 100 * w
        score    = clamp(base + noise + variance, -100, 100)

    Args:
        current_score: Score the series converges to (may be out of range)
        hours: Number of points (default: 24)
        rng: Random source (default: a fresh random.Random)
        now: Timestamp of the newest point (default: current UTC time)

    Example:
        >>> points = generate_history(42.0, hours=3, rng=random.Random(7))
        >>> len(points), points[-1].score
        (3, 42.0)
    """
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)

    history = []
    for i in range(hours - 1, -1, -1):
        weight = i / hours
        variance = (rng.random() - 0.5) * 30 * weight
        base = current_score * (1 - weight)
        noise = (rng.random() - 0.5) * 100 * weight
        history.append(HistoryPoint(timestamp=_timestamp(now, i), score=_clamp(base + noise + variance)))

    return history


def generate_smooth_history(
    current_score: float,
    hours: int = 24,
    now: Optional[datetime] = None,
) -> List[HistoryPoint]:
    """Generate a sine-wave trend rising from 0 toward current_score.

    For the point `i` hours old, progress = 1 - i / hours and
    score = clamp(current_score * progress + sin(2*pi*progress) * 20).
    """
    now = now or datetime.now(timezone.utc)

    history = []
    for i in range(hours - 1, -1, -1):
        progress = 1 - i / hours
        wave = math.sin(progress * math.pi * 2) * 20
        history.append(HistoryPoint(timestamp=_timestamp(now, i), score=_clamp(current_score * progress + wave)))

    return history
