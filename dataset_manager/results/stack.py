"""
Reshape segment results into long and wide tables.

stack(results, conds)   -> long: subject, <conds...>, variable, value
unstack(long_df, conds) -> wide: variable, <conds...>, <one column per subject>

Every record contributes one row per variable found in any record; values
a record lacks are NaN.
"""

from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from .segment import SegmentResult, resultsvariables


LONG_COLUMNS = ("subject", "variable", "value")


def stack(
    results: Sequence[SegmentResult],
    conds: Iterable[str],
    variables: Optional[Iterable[str]] = None,
) -> pd.DataFrame:
    """
    Compile results into a stacked, long form DataFrame.

    Args:
        results: Segment results
        conds: Condition names to include as columns
        variables: Result variables to include (default: all, sorted)

    Returns:
        DataFrame with columns subject, <conds...>, variable, value; subject
        and condition columns are categorical
    """
    conds = list(conds)
    variables = resultsvariables(list(results)) if variables is None else list(variables)
    id_cols = ["subject"] + conds

    if not results or not variables:
        return pd.DataFrame(columns=id_cols + ["variable", "value"])

    wide = pd.DataFrame({"subject": pd.Categorical([r.subject for r in results])})
    for cond in conds:
        wide[cond] = pd.Categorical([r.conditions.get(cond) for r in results])
    for var in variables:
        wide[var] = pd.Series([r.results.get(var, np.nan) for r in results], dtype=object)

    long = pd.melt(
        wide,
        id_vars=id_cols,
        value_vars=variables,
        var_name="variable",
        value_name="value",
    )
    for col in id_cols:
        long[col] = long[col].astype("category")
    return long.sort_values(["variable"] + id_cols, kind="stable").reset_index(drop=True)


def unstack(
    df: pd.DataFrame,
    conds: Iterable[str],
    variables: Optional[Iterable[str]] = None,
) -> pd.DataFrame:
    """
    Pivot a long results table so each subject is a column.

    Args:
        df: Long form table from `stack`
        conds: Condition columns identifying each row together with `variable`
        variables: Variables to keep (default: all)

    Returns:
        DataFrame with columns variable, <conds...>, then one column per subject

    Raises:
        ValueError: If `df` is not in long form
    """
    conds = list(conds)
    missing = [c for c in list(LONG_COLUMNS) + conds if c not in df.columns]
    if missing:
        raise ValueError(f"`df` must be provided in long format; missing columns {missing}")

    if variables is not None:
        df = df[df["variable"].isin(list(variables))]

    index = ["variable"] + conds
    plain = df[index + ["subject", "value"]].astype(object)
    wide = plain.pivot(index=index, columns="subject", values="value").reset_index()
    wide.columns.name = None
    return wide
