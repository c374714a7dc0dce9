"""User statistics and achievements derived from completed trails."""

from __future__ import annotations

from collections import Counter
from typing import Sequence

from trailtrek.shared.constants import Difficulty
from .schemas import Achievement, CompletedTrail, UserStats

# (threshold meters, id, name)
DISTANCE_ACHIEVEMENTS = [
    (100_000, "distance_100k", "100km Explorer"),
    (50_000, "distance_50k", "50km Adventurer"),
    (10_000, "distance_10k", "10km Hiker"),
]

# (threshold trails, id, name)
TRAIL_COUNT_ACHIEVEMENTS = [
    (50, "trails_50", "Trail Master"),
    (20, "trails_20", "Trail Enthusiast"),
    (5, "trails_5", "Trail Explorer"),
]

NFT_COLLECTOR_THRESHOLD = 10


def calculate_user_stats(trails: Sequence[CompletedTrail]) -> UserStats:
    """Aggregate stats for one wallet; a pure function of its trails."""
    if not trails:
        return UserStats()

    stats = UserStats(
        total_trails=len(trails),
        total_distance=sum(t.distance for t in trails),
        total_duration=sum(t.duration for t in trails),
        total_elevation_gain=sum(t.elevation_gain for t in trails),
        trek_tokens_earned=sum(t.trek_tokens_earned for t in trails),
        nfts_minted=sum(1 for t in trails if t.nft_minted),
        # Most completed trail; ties go to the first completed
        favorite_trail=Counter(t.name for t in trails).most_common(1)[0][0],
        longest_trail=max(trails, key=lambda t: t.distance).name,
    )
    stats.achievements = calculate_achievements(trails, stats)
    return stats


def calculate_achievements(
    trails: Sequence[CompletedTrail], stats: UserStats
) -> list[Achievement]:
    """Achievements unlocked by the given aggregate."""
    achievements = []

    for threshold, achievement_id, name in DISTANCE_ACHIEVEMENTS:
        if stats.total_distance >= threshold:
            achievements.append(Achievement(
                id=achievement_id, name=name, category="distance",
                description=f"Hiked {threshold // 1000} km in total",
            ))

    for threshold, achievement_id, name in TRAIL_COUNT_ACHIEVEMENTS:
        if stats.total_trails >= threshold:
            achievements.append(Achievement(
                id=achievement_id, name=name, category="trails",
                description=f"Completed {threshold} trails",
            ))

    if any(t.difficulty == Difficulty.EXPERT for t in trails):
        achievements.append(Achievement(
            id="expert_trail", name="Expert Climber", category="special",
            description="Completed an Expert trail",
        ))

    if stats.nfts_minted >= NFT_COLLECTOR_THRESHOLD:
        achievements.append(Achievement(
            id="nft_collector", name="NFT Collector", category="special",
            description=f"Minted {NFT_COLLECTOR_THRESHOLD} trail NFTs",
        ))

    return achievements
