from dataclasses import asdict, dataclass, field

from matchprob.rules.conditions import ActionType
from matchprob.utils.typing import Market


@dataclass(frozen=True)
class Recommendation:
    """Active recommendation of one market for one match.

    Attributes:
        match_id (str): Identifier for the match.
        market (Market): '1x2', 'btts' or 'ou25'.
        action (ActionType | str): Action of the rule that fired.
        rule_id (str): Identifier of that rule.
        selection (str): Resolved outcome label, e.g. 'home', 'yes', '1X'.
        probability (float): Fair probability of the selection.
        odds (float | None): Bookmaker odds of the selection, if quoted.
        confidence (float): Display-stable confidence percentage.
        priority (int): Priority of the rule that fired.

    """

    match_id: str
    market: Market
    action: ActionType | str
    rule_id: str
    selection: str
    probability: float
    odds: float | None
    confidence: float
    priority: int

    @property
    def edge(self) -> float | None:
        """Expected return of a unit stake, ``p * (odds - 1) - (1 - p)``."""
        if self.odds is None:
            return None
        return self.probability * (self.odds - 1) - (1 - self.probability)

    def to_dict(self) -> dict:
        record = asdict(self)
        record["market"] = self.market.value
        record["action"] = getattr(self.action, "value", self.action)
        return record

    def __str__(self) -> str:
        odds = f"{self.odds:.2f}" if self.odds is not None else "n/a"
        return (
            f"[{self.match_id} | {self.market.value}] {self.selection} "
            f"odds={odds}, p={self.probability:.3f}, confidence={self.confidence:.1f}%"
        )


@dataclass
class MatchOdds:
    """Bookmaker odds of one match, per market.

    ``odds`` maps a market to its outcome/odds mapping, e.g.
    ``{"1x2": {"home": 2.1, "draw": 3.3, "away": 3.6}, "btts": {"yes": 1.8, "no": 2.0}}``.
    Missing markets or outcomes are simply not quoted.
    """

    home_team: str
    away_team: str
    odds: dict[str, dict[str, float | None]] = field(default_factory=dict)
    identifier: str | None = None

    @property
    def match_id(self) -> str:
        return self.identifier or f"{self.home_team} - {self.away_team}"
