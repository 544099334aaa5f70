from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Literal, Optional, Tuple, Union


class BandCategory(str, Enum):
    TRADITIONAL = "TRADITIONAL"
    ALL_STAR = "ALL_STAR"

    @classmethod
    def parse(cls, value: object) -> "BandCategory":
        text = str(value or "").strip().upper().replace("-", "_")
        if text in {"ALL_STAR", "ALLSTAR"}:
            return cls.ALL_STAR
        # Stores written by older seeders label institutional bands "HBCU"
        if text in {"TRADITIONAL", "HBCU", ""}:
            return cls.TRADITIONAL
        raise ValueError(f"Unknown band category: {value!r}")


MatchType = Literal["exact_band_name", "school_name", "partial", "abbreviation", "all_star", "event"]

OutcomeKind = Literal["excluded", "no_match", "low_confidence", "single", "battle"]


@dataclass(frozen=True, slots=True)
class Band:
    id: str
    name: str
    school_name: str
    category: BandCategory = BandCategory.TRADITIONAL
    keywords: Tuple[str, ...] = ()

    @property
    def is_all_star(self) -> bool:
        return self.category is BandCategory.ALL_STAR


@dataclass(frozen=True, slots=True)
class BandAliases:
    band: Band
    aliases: Tuple[str, ...]

    @property
    def band_id(self) -> str:
        return self.band.id


AliasTable = Tuple[BandAliases, ...]


@dataclass(frozen=True, slots=True)
class VideoText:
    video_id: str
    title: Optional[str] = None
    description: Optional[str] = None
    channel_title: Optional[str] = None
    channel_id: Optional[str] = None
    verified_creator: bool = False

    @property
    def search_text(self) -> str:
        return " ".join([self.title or "", self.description or "", self.channel_title or ""])


@dataclass(frozen=True, slots=True)
class MatchCandidate:
    band_id: str
    band_name: str
    category: BandCategory
    score: int
    matched_alias: str
    match_type: MatchType


@dataclass(frozen=True, slots=True)
class VideoAssignment:
    """Fields written back to the video record for a matched outcome."""

    band_id: str
    opponent_band_id: Optional[str]
    quality_score: int


@dataclass(frozen=True, slots=True)
class Excluded:
    reason: str
    kind: OutcomeKind = "excluded"


@dataclass(frozen=True, slots=True)
class NoMatch:
    kind: OutcomeKind = "no_match"


@dataclass(frozen=True, slots=True)
class LowConfidence:
    top_score: int
    kind: OutcomeKind = "low_confidence"


@dataclass(frozen=True, slots=True)
class SingleMatch:
    band_id: str
    score: int
    kind: OutcomeKind = "single"

    @property
    def assignment(self) -> VideoAssignment:
        return VideoAssignment(band_id=self.band_id, opponent_band_id=None, quality_score=self.score)


@dataclass(frozen=True, slots=True)
class BattleMatch:
    band_id: str
    opponent_band_id: str
    score: int
    kind: OutcomeKind = "battle"

    @property
    def assignment(self) -> VideoAssignment:
        return VideoAssignment(
            band_id=self.band_id,
            opponent_band_id=self.opponent_band_id,
            quality_score=self.score,
        )


ClassificationOutcome = Union[Excluded, NoMatch, LowConfidence, SingleMatch, BattleMatch]


@dataclass(slots=True)
class Classification:
    """Outcome of one video plus the candidates it was decided from."""

    video: VideoText
    outcome: ClassificationOutcome
    candidates: List[MatchCandidate] = field(default_factory=list)
    threshold: int = 0

    @property
    def top_candidate(self) -> Optional[MatchCandidate]:
        return self.candidates[0] if self.candidates else None

    @property
    def assignment(self) -> Optional[VideoAssignment]:
        if isinstance(self.outcome, (SingleMatch, BattleMatch)):
            return self.outcome.assignment
        return None


@dataclass(slots=True)
class RunStats:
    processed: int = 0
    excluded: int = 0
    no_match: int = 0
    low_confidence: int = 0
    single: int = 0
    battle: int = 0
    matched_traditional: int = 0
    matched_all_star: int = 0
    event_matches: int = 0
    updated: int = 0
    exclusion_reasons: Counter = field(default_factory=Counter)
    band_counts: Counter = field(default_factory=Counter)
    errors: List[str] = field(default_factory=list)
    duration: float = 0.0

    @property
    def matched(self) -> int:
        return self.single + self.battle

    @property
    def match_rate(self) -> float:
        if not self.processed:
            return 0.0
        return self.matched / self.processed * 100

    def register(self, classification: Classification) -> None:
        self.processed += 1
        outcome = classification.outcome
        if isinstance(outcome, Excluded):
            self.excluded += 1
            self.exclusion_reasons[outcome.reason] += 1
            return
        if isinstance(outcome, NoMatch):
            self.no_match += 1
            return
        if isinstance(outcome, LowConfidence):
            self.low_confidence += 1
            return

        top = classification.top_candidate
        if isinstance(outcome, BattleMatch):
            self.battle += 1
        else:
            self.single += 1
        if top is not None:
            if top.category is BandCategory.ALL_STAR:
                self.matched_all_star += 1
            else:
                self.matched_traditional += 1
            if top.match_type == "event":
                self.event_matches += 1
            self.band_counts[top.band_name] += 1

    def register_error(self, message: str) -> None:
        self.errors.append(message)

    def top_bands(self, limit: int = 15) -> List[Tuple[str, int]]:
        return sorted(self.band_counts.items(), key=lambda item: (-item[1], item[0]))[:limit]
