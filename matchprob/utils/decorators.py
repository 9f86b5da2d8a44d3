from __future__ import annotations

from functools import wraps
from typing import (
    Callable,
    Iterable,
    ParamSpec,
    TypeVar,
)

import pandas as pd

P = ParamSpec("P")
R = TypeVar("R")


def verify_required_column(
    column_names: Iterable[str],
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator that validates the presence of required columns in a pandas DataFrame.

    The first positional ``pd.DataFrame`` argument is checked, falling back to the
    first DataFrame passed by keyword. A :class:`ValueError` listing the missing
    columns is raised before the wrapped function runs. Calls without any
    DataFrame argument are passed through untouched.

    Parameters
    ----------
    column_names : Iterable[str]
        Column names that must exist in the DataFrame.

    Returns
    -------
    Callable[[Callable[P, R]], Callable[P, R]]
        The wrapped function.
    """
    required = tuple(column_names)

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            df = next((a for a in args if isinstance(a, pd.DataFrame)), None)
            if df is None:
                df = next((v for v in kwargs.values() if isinstance(v, pd.DataFrame)), None)

            if df is None:
                return func(*args, **kwargs)

            missing_columns = [col for col in required if col not in df.columns]
            if missing_columns:
                missing_str = ", ".join(missing_columns)
                raise ValueError(f"The following required columns are missing: {missing_str}")

            return func(*args, **kwargs)

        return wrapper

    return decorator
