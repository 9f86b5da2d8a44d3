"""Display-stable confidence scores.

The score is a pseudo-random value seeded by the match identifier, not a
statistical confidence interval. Its only contract is reproducibility: the
same match identifier always yields the same value, in any process, and the
values match those computed by the dashboard from the same identifier.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Any

_INT32_MASK = 0xFFFFFFFF


@lru_cache(maxsize=4096)
def match_seed(match_id: str) -> int:
    """Absolute value of the 32-bit signed rolling hash ``h = h * 31 + code``.

    Characters are read as UTF-16 code units.
    """
    data = match_id.encode("utf-16-le", errors="surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code_unit) & _INT32_MASK
    if h & 0x80000000:
        h -= 1 << 32
    return abs(h)


def seeded_unit(seed: int, index: int = 0) -> float:
    """``frac(sin(seed + index) * 10000)``, in ``[0, 1)``."""
    x = math.sin(seed + index) * 10000
    return x - math.floor(x)


def _round_one_decimal(value: float) -> float:
    return float(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _explicit_confidence(recommendation: Any) -> float | None:
    if recommendation is None:
        return None
    if isinstance(recommendation, Mapping):
        raw = recommendation.get("confidence")
    else:
        raw = getattr(recommendation, "confidence", None)
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    # Fractions only: a percentage (e.g. a Recommendation.confidence) is ignored.
    if not math.isfinite(raw) or not 0 < raw <= 1:
        return None
    return float(raw)


@dataclass(frozen=True, slots=True)
class ConfidenceScorer:
    """Maps a match identifier to a score in ``[low, low + span]``.

    Attributes:
        low (float): lower bound of the score.
        span (float): width of the score range.
        index (int): offset added to the seed before the sine.

    """

    low: float = 70.0
    span: float = 19.5
    index: int = 2

    @property
    def high(self) -> float:
        return self.low + self.span

    def score(self, match_id: str, recommendation: Any = None) -> float:
        """Confidence percentage of a recommendation for a match.

        A recommendation carrying a numeric ``confidence`` fraction in ``(0, 1]``
        (attribute or mapping key) is used directly, clamped to the score range.
        Any other value is ignored. Otherwise the score is seeded from ``match_id`` only.

        Args:
            match_id (str): stable match identifier.
            recommendation: optional recommendation descriptor.

        Returns:
            float: score rounded to one decimal.

        """
        explicit = _explicit_confidence(recommendation)
        if explicit is not None:
            return _round_one_decimal(min(max(explicit * 100, self.low), self.high))
        unit = seeded_unit(match_seed(match_id), self.index)
        return _round_one_decimal(self.low + unit * self.span)


_DEFAULT_SCORER = ConfidenceScorer()


def confidence_score(match_id: str, recommendation: Any = None) -> float:
    """Confidence in ``[70.0, 89.5]`` for a match, see :meth:`ConfidenceScorer.score`."""
    return _DEFAULT_SCORER.score(match_id, recommendation)
