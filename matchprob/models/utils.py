import numpy as np
import scipy.stats as stats

from matchprob.utils.typing import ProbaResult


def poisson_proba(lambda_param: float, k: int) -> np.ndarray:
    """Calculate the probability of scoring 0 to k - 1 goals given a lambda parameter.

    Args:
        lambda_param (float): The expected number of goals.
        k (int): The number of goal counts to evaluate.

    Returns:
        np.ndarray: ``P(X = i)`` for ``i`` in ``0 .. k - 1``.

    """
    poisson = stats.poisson(mu=lambda_param)
    k_list = np.arange(k)
    return poisson.pmf(k=k_list)  # type:ignore


def as_proba_result(probas) -> ProbaResult:
    """Coerce a 1X2 probability triple into a :class:`ProbaResult`.

    Accepts a ``ProbaResult``, a mapping with ``home``/``draw``/``away`` keys or
    any sequence of three floats in home, draw, away order.
    """
    if isinstance(probas, ProbaResult):
        return probas
    if hasattr(probas, "keys"):
        try:
            return ProbaResult(
                proba_home=float(probas["home"]),
                proba_draw=float(probas["draw"]),
                proba_away=float(probas["away"]),
            )
        except KeyError as exc:
            raise ValueError(f"1X2 probabilities are missing the {exc} outcome") from exc
    values = np.asarray(probas, dtype=float)
    if values.shape != (3,):
        raise ValueError(f"1X2 probabilities must have 3 values, got shape {values.shape}")
    return ProbaResult(*(float(v) for v in values))
