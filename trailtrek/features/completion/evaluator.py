"""
Trail completion evaluator.

Pure functions: no I/O, no state. Given a finalized Recording and
CompletionCriteria, decides completion, reward and NFT eligibility.

Reward formula:
    reward = 10 + 5 * floor(distance_km) + 2 * floor(elevation_gain / 100)
    (only when completed, else 0)
"""

import math
from typing import Optional

from trailtrek.features.recording.models import Recording
from trailtrek.shared.constants import Difficulty
from trailtrek.shared.formatters import format_distance
from .schemas import CompletionCriteria, CompletionResult

# Reward parameters
BASE_REWARD = 10
REWARD_PER_KM = 5
REWARD_PER_100M_ELEVATION = 2

# Difficulty thresholds: (exclusive lower bound, points)
DISTANCE_POINTS_KM = [(20, 3), (10, 2), (5, 1)]
ELEVATION_POINTS_M = [(1000, 3), (500, 2), (200, 1)]
PACE_POINTS_KMH = [(2, 2), (3, 1)]  # pace below bound adds points


def calculate_reward(distance: float, elevation_gain: float, completed: bool) -> int:
    """
    TREK tokens for a trail.

    Args:
        distance: Meters
        elevation_gain: Meters
        completed: Whether the trail passed completion checks

    Returns:
        Token amount, 0 when not completed
    """
    if not completed:
        return 0
    distance_bonus = math.floor(max(0.0, distance) / 1000) * REWARD_PER_KM
    elevation_bonus = math.floor(max(0.0, elevation_gain) / 100) * REWARD_PER_100M_ELEVATION
    return BASE_REWARD + distance_bonus + elevation_bonus


def is_nft_eligible(
    completed: bool,
    distance: float,
    duration: float,
    criteria: CompletionCriteria,
) -> bool:
    """Completed and above the (stricter) NFT distance/duration thresholds."""
    return (
        completed
        and distance >= criteria.nft_minimum_distance
        and duration >= criteria.nft_minimum_duration
    )


def calculate_completion_percentage(
    distance: float,
    duration: float,
    criteria: CompletionCriteria,
) -> float:
    """min(distance ratio, duration ratio) as percent, each capped at 100."""
    distance_pct = _capped_percent(distance, criteria.minimum_distance)
    duration_pct = _capped_percent(duration, criteria.minimum_duration)
    return min(distance_pct, duration_pct)


def verify_trail_completion(
    recording: Recording,
    criteria: Optional[CompletionCriteria] = None,
) -> CompletionResult:
    """
    Verify a recording against completion criteria.

    All checks run; every failing check contributes a reason.

    Args:
        recording: Recording to evaluate (should be finalized)
        criteria: Thresholds, defaults to CompletionCriteria()

    Returns:
        CompletionResult
    """
    criteria = criteria or CompletionCriteria()
    reasons: list[str] = []

    if recording.total_distance < criteria.minimum_distance:
        reasons.append(
            f"Minimum distance not met ("
            f"{format_distance(recording.total_distance, 'meters')} < "
            f"{format_distance(criteria.minimum_distance, 'meters')})"
        )

    if recording.total_duration < criteria.minimum_duration:
        reasons.append(
            f"Minimum duration not met ("
            f"{int(recording.total_duration // 60)}min < "
            f"{int(criteria.minimum_duration // 60)}min)"
        )

    if recording.is_active:
        reasons.append("Trail recording is still active")

    if len(recording.coordinates) < criteria.minimum_points:
        reasons.append(
            f"Insufficient GPS tracking data "
            f"({len(recording.coordinates)} < {criteria.minimum_points} points)"
        )

    completed = not reasons

    return CompletionResult(
        completed=completed,
        distance=recording.total_distance,
        duration=recording.total_duration,
        elevation_gain=recording.elevation_gain,
        trek_tokens_earned=calculate_reward(
            recording.total_distance, recording.elevation_gain, completed
        ),
        nft_eligible=is_nft_eligible(
            completed, recording.total_distance, recording.total_duration, criteria
        ),
        completion_percentage=calculate_completion_percentage(
            recording.total_distance, recording.total_duration, criteria
        ),
        reasons=reasons,
    )


def classify_difficulty(
    distance: float,
    elevation_gain: float,
    duration: float,
) -> Difficulty:
    """
    Classify trail difficulty with an additive score.

    distance > 5/10/20 km     -> +1/+2/+3
    elevation > 200/500/1000 m -> +1/+2/+3
    pace < 3 / < 2 km/h       -> +1/+2

    Score >= 6 Expert, >= 4 Hard, >= 2 Moderate, else Easy.
    """
    distance_km = distance / 1000
    score = 0

    score += _threshold_points(distance_km, DISTANCE_POINTS_KM)
    score += _threshold_points(elevation_gain, ELEVATION_POINTS_M)

    if duration > 0:
        pace_kmh = distance_km / (duration / 3600)
        for bound, points in PACE_POINTS_KMH:
            if pace_kmh < bound:
                score += points
                break

    if score >= 6:
        return Difficulty.EXPERT
    if score >= 4:
        return Difficulty.HARD
    if score >= 2:
        return Difficulty.MODERATE
    return Difficulty.EASY


def _threshold_points(value: float, thresholds: list[tuple[float, int]]) -> int:
    for bound, points in thresholds:
        if value > bound:
            return points
    return 0


def _capped_percent(value: float, minimum: float) -> float:
    if minimum <= 0:
        return 100.0
    return min(100.0, value / minimum * 100)
