from dataclasses import dataclass
from typing import List


MIN_SCORE = 0
MAX_SCORE = 1000


@dataclass(frozen=True)
class AffectionLevel:
    min: int
    max: int
    level: int
    title: str

    def to_dict(self) -> dict:
        return {
            "min": self.min,
            "max": self.max,
            "level": self.level,
            "title": self.title,
        }


# Contiguous bands covering 0..1000
AFFECTION_LEVELS = (
    AffectionLevel(0, 50, 1, "陌生人"),
    AffectionLevel(51, 100, 2, "点头之交"),
    AffectionLevel(101, 200, 3, "普通朋友"),
    AffectionLevel(201, 350, 4, "好朋友"),
    AffectionLevel(351, 500, 5, "密友"),
    AffectionLevel(501, 650, 6, "暧昧中"),
    AffectionLevel(651, 800, 7, "恋人"),
    AffectionLevel(801, 900, 8, "热恋"),
    AffectionLevel(901, 1000, 9, "挚爱"),
)


def clamp_score(score: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def calculate_level(score: int) -> AffectionLevel:
    """Band of a score; out-of-range scores are clamped first."""
    score = clamp_score(score)
    for level in AFFECTION_LEVELS:
        if level.min <= score <= level.max:
            return level
    return AFFECTION_LEVELS[0]


def get_affection_levels() -> List[AffectionLevel]:
    return list(AFFECTION_LEVELS)
