import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Callable, cast

import numpy as np
from scipy import optimize

from matchprob.config import DevigMethod
from matchprob.utils.typing import ArrayLikeF, Market

logger = logging.getLogger(name=__name__)

# The array methods below follow the ones of the penaltyblog package
# https://github.com/martineastwood/penaltyblog/tree/master


def _assert_odds(odds: ArrayLikeF, axis: None | int = None) -> None:
    if (not isinstance(odds, list)) and (not isinstance(odds, np.ndarray)):
        raise TypeError("Odds must be a list or an numpy array.")
    odds = np.asarray(odds, dtype=float)
    n_outcomes = odds.shape[axis] if axis is not None else odds.shape[0]
    if n_outcomes < 2:
        raise ValueError("At least 2 odds are needed to remove the margin.")
    if not np.isfinite(odds).all():
        raise ValueError("All odds must be finite.")
    if (odds <= 1.0).any():
        raise ValueError("All odds must be greater than 1.")


def multiplicative_method(
    odds: ArrayLikeF, axis: int = -1
) -> tuple[np.ndarray, float | np.ndarray]:
    """Proportional (multiplicative) normalization of the odds. Work for
    multidimensionnal array.

    Args:
        odds (list or np.array): list of odds
        axis (int) : axis where compute the probabilities

    Returns:
        tuple: fair probabilities with the shape of ``odds`` and the margin
        (``sum(1/odds) - 1``) along ``axis``.

    """
    _assert_odds(odds, axis=axis)
    odds = np.asarray(odds, dtype=float)
    if len(odds.shape) > 1:
        normalization = np.sum(1.0 / odds, axis=axis, keepdims=True)
    else:
        normalization = np.sum(1.0 / odds, axis=axis)
    margin = normalization - 1.0
    return 1.0 / (normalization * odds), margin


def power_method(
    odds: ArrayLikeF, *, max_iter: int = 50, tol: float = 1e-9
) -> tuple[np.ndarray, float]:
    """Compute fair probabilities using the power-margin method.

    Each inverse odd is raised to a common exponent ``k`` chosen so that the
    results sum to one. ``k`` is found by Newton iteration in log-space:

        f(k) = sum(exp(k * log(1 / odds_i))) - 1 = 0

    Parameters
    ----------
    odds : ArrayLike
        One-dimensional decimal odds, each strictly greater than 1.
    max_iter : int, default=50
        Maximum number of Newton steps.
    tol : float, default=1e-9
        Stop when ``|f(k)| < tol``.

    Returns
    -------
    probs : np.ndarray
        Fair probabilities summing to 1.
    margin : float
        The bookmaker over-round ``sum(1/odds) - 1``.

    Raises
    ------
    RuntimeError
        If the iteration does not converge within ``max_iter`` steps.

    """
    _assert_odds(odds)
    odds = np.asarray(odds, dtype=float)
    inv_odds = 1.0 / odds
    margin = cast(float, np.sum(inv_odds) - 1.0)
    log_inv = np.log(inv_odds)

    def f(k: float) -> float:
        return np.exp(k * log_inv).sum() - 1.0

    def fprime(k: float) -> float:
        y = np.exp(k * log_inv)
        return (y * log_inv).sum()

    k = 1.0
    for _ in range(max_iter):
        fk = f(k)
        if abs(fk) < tol:
            break
        k -= fk / fprime(k)
    else:
        raise RuntimeError("Power root-finder did not converge.")

    probs = np.exp(k * log_inv)
    return probs / probs.sum(), margin


def shin_method(odds: ArrayLikeF, *, tol: float = 1e-12) -> tuple[np.ndarray, float]:
    """Compute fair probabilities and bookmaker margin using Shin's method.

    Shin's model (Shin, 1992; 1993) attributes the over-round to the share ``z``
    of insider money. With ``q_i = 1 / odds_i`` and ``Q = sum(q_i)``:

        p_i(z) = (sqrt(z^2 + 4 (1 - z) q_i^2 / Q) - z) / (2 (1 - z))

    and ``z`` is the root of ``sum(p_i(z)) - 1`` in ``(0, 1)``, found with
    Brent's method. A book without positive margin has no insider share to
    remove; the proportional probabilities are returned instead.

    Parameters
    ----------
    odds : array-like of float
        Decimal odds of mutually exclusive outcomes.
    tol : float, optional
        Absolute tolerance of the Brent solver.

    Returns
    -------
    implied : ndarray
        Shin-adjusted probabilities summing to 1.
    margin : float
        ``sum(1 / odds_i) - 1``.

    """
    _assert_odds(odds)
    odds_arr = np.asarray(odds, dtype=float)
    inv_odds = 1.0 / odds_arr
    margin: float = cast(float, inv_odds.sum() - 1.0)
    if margin <= 0.0:
        logger.debug("Shin method on a book without margin, using proportional weights.")
        return inv_odds / inv_odds.sum(), margin

    inv_sq = inv_odds**2
    total_inv = inv_odds.sum()

    def _objective(z: float) -> float:
        root_term = np.sqrt(z * z + 4.0 * (1.0 - z) * inv_sq / total_inv)
        prob_sum = ((root_term - z) / (2.0 * (1.0 - z))).sum()
        return prob_sum - 1.0

    # 0 < z < 1; the bracket is shrunk to avoid the division by 1 - z.
    z_star = optimize.brentq(_objective, 1e-12, 1.0 - 1e-12, xtol=tol)
    implied = _shin_probabilities(inv_odds, z_star)  # type: ignore
    return implied / implied.sum(), margin


def _shin_probabilities(inv_odds: np.ndarray, z: float) -> np.ndarray:
    """Vectorised Shin probability transform."""
    total_inv = inv_odds.sum()
    root_term = np.sqrt(z * z + 4.0 * (1.0 - z) * inv_odds**2 / total_inv)
    return (root_term - z) / (2.0 * (1.0 - z))


_DEVIG_METHODS: dict[str, Callable[[np.ndarray], tuple[np.ndarray, float | np.ndarray]]] = {
    "proportional": multiplicative_method,
    "power": power_method,
    "shin": shin_method,
}


@dataclass(frozen=True)
class NormalizedOdds:
    """Fair probabilities of one market.

    Attributes:
        implied (dict[str, float]): ``1 / odds`` per quoted outcome.
        fair (dict[str, float]): de-vigged probabilities, summing to 1.
        vigorish (float): ``sum(implied) - 1``.
        method (str): name of the de-vig method used.
        negative_vigorish (bool): advisory flag raised when ``vigorish < 0``,
            i.e. malformed or arbitrage odds.

    """

    implied: dict[str, float]
    fair: dict[str, float]
    vigorish: float
    method: str = "proportional"
    negative_vigorish: bool = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "negative_vigorish", self.vigorish < 0.0)

    @property
    def ok(self) -> bool:
        return True

    def __str__(self) -> str:
        probs = ", ".join(f"{k}={v:.3f}" for k, v in self.fair.items())
        return f"NormalizedOdds({probs}, vig={self.vigorish:.2%}, method={self.method})"


@dataclass(frozen=True)
class InsufficientOdds:
    """Failure variant: fewer than two usable quotes were supplied for a market."""

    outcomes: tuple[str, ...]
    valid_quotes: int
    market: str | None = None

    @property
    def ok(self) -> bool:
        return False

    def __str__(self) -> str:
        where = f" for market {self.market}" if self.market else ""
        return (
            f"Insufficient odds{where}: {self.valid_quotes} valid quote(s) "
            f"among {list(self.outcomes)}"
        )


OddsResult = NormalizedOdds | InsufficientOdds


def is_valid_quote(odds: float | None) -> bool:
    """A decimal quote is usable when it is a finite number strictly above 1."""
    if odds is None:
        return False
    try:
        value = float(odds)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value > 1.0


def normalize_odds(
    market_odds: Mapping[str, float | None],
    method: DevigMethod = "proportional",
    *,
    market: str | None = None,
) -> OddsResult:
    """Convert the decimal odds of one market into fair probabilities.

    Outcomes whose quote is missing or not above 1.0 are ignored: they are
    "not quoted", never a zero probability. Proportional de-vig
    (``fair = implied / sum(implied)``) is the baseline; ``"power"`` and
    ``"shin"`` are available as alternatives.

    Args:
        market_odds (Mapping[str, float | None]): outcome name to decimal odds.
        method (str): ``"proportional"``, ``"power"`` or ``"shin"``.
        market (str, optional): market label, only used in logs and failures.

    Returns:
        NormalizedOdds | InsufficientOdds: ``InsufficientOdds`` when fewer than
        two valid quotes are available.

    Example:
        >>> normalize_odds({"yes": 1.91, "no": 1.91}).fair
        {'yes': 0.5, 'no': 0.5}

    """
    if method not in _DEVIG_METHODS:
        raise ValueError(
            f"Unknown de-vig method {method!r}, expected one of {sorted(_DEVIG_METHODS)}"
        )
    valid = {name: float(odd) for name, odd in market_odds.items() if is_valid_quote(odd)}  # type: ignore[arg-type]
    if len(valid) < 2:
        logger.debug("Market %s has %d usable quote(s), skipping", market, len(valid))
        return InsufficientOdds(
            outcomes=tuple(market_odds.keys()), valid_quotes=len(valid), market=market
        )

    names = list(valid)
    odds_arr = np.array([valid[name] for name in names])
    implied = 1.0 / odds_arr
    # Vigorish is always sum(implied) - 1, whatever the de-vig method.
    vigorish = float(implied.sum() - 1.0)
    if method == "proportional":
        fair_arr = implied / implied.sum()
    else:
        fair_arr, _ = _DEVIG_METHODS[method](odds_arr)

    result = NormalizedOdds(
        implied={name: float(p) for name, p in zip(names, implied)},
        fair={name: float(p) for name, p in zip(names, fair_arr)},
        vigorish=vigorish,
        method=method,
    )
    if result.negative_vigorish:
        logger.warning(
            "Negative vigorish %.4f for market %s: odds %s imply an arbitrage",
            vigorish,
            market,
            valid,
        )
    return result


def normalize_match_odds(
    odds_by_market: Mapping[Market | str, Mapping[str, float | None]],
    method: DevigMethod = "proportional",
) -> dict[Market, OddsResult]:
    """Normalize every market of a match.

    Args:
        odds_by_market: market (``"1x2"``, ``"btts"``, ``"ou25"``) to the
            outcome/odds mapping of that market.
        method (str): de-vig method shared by all markets.

    Returns:
        dict[Market, OddsResult]: one result per supplied market.

    """
    results: dict[Market, OddsResult] = {}
    for market_key, market_odds in odds_by_market.items():
        market = Market(market_key)
        results[market] = normalize_odds(market_odds, method=method, market=market.value)
    return results
