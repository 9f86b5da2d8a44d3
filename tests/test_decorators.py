import pandas as pd
import pytest

from matchprob.utils.decorators import verify_required_column


@verify_required_column(["match_id", "odds_home", "odds_away"])
def count_matches(df: pd.DataFrame) -> int:
    return len(df)


def test_required_columns_present():
    df = pd.DataFrame(
        {
            "match_id": ["m1", "m2"],
            "odds_home": [1.9, 2.4],
            "odds_away": [4.1, 3.0],
        }
    )
    assert count_matches(df) == 2


def test_missing_columns_message():
    df = pd.DataFrame({"match_id": ["m1"], "odds_draw": [3.4]})
    with pytest.raises(ValueError) as exc:
        count_matches(df)
    assert str(exc.value) == "The following required columns are missing: odds_home, odds_away"


def test_no_df_passed():
    @verify_required_column(["A"])
    def func(x):
        return x

    assert func(5) == 5


def test_positional_second_arg():
    @verify_required_column(["col"])
    def func(a, df):
        return a

    assert func(1, pd.DataFrame({"col": [1]})) == 1
    with pytest.raises(ValueError):
        func(1, pd.DataFrame({"other": [1]}))


def test_keyword_df():
    @verify_required_column(["col"])
    def func(a, **kwargs):
        return a

    with pytest.raises(ValueError, match="col"):
        func(1, df=pd.DataFrame({"other": [1]}))
