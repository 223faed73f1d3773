"""
CSV export of stacked results.

Wide layout (for statistics packages expecting one row per subject):

    ,var1,var1,var2,var2            <- blank first cell, then variable names
    stim,placebo,stim,placebo,stim  <- one row per condition
    labels,var1_placebo,...         <- variable and conditions joined by "_"
    1,0.5,0.7,1.2,                  <- one row per subject; missing -> ""
"""

import os
import re
import uuid
from typing import Any, Iterable, List, Optional

import pandas as pd

from .stack import LONG_COLUMNS, unstack


FORMATS = ("wide", "long")


def _natural_key(value: Any):
    parts = re.split(r"(\d+)", str(value))
    return [int(p) if p.isdigit() else p.lower() for p in parts]


def _cell(value: Any) -> str:
    if value is None or (pd.api.types.is_scalar(value) and pd.isna(value)):
        return ""
    return str(value)


def _wide_rows(df: pd.DataFrame, conds: List[str]) -> List[List[str]]:
    wide = unstack(df, conds)
    rows = [[""] + [_cell(v) for v in wide["variable"]]]
    for cond in conds:
        rows.append([cond] + [_cell(v) for v in wide[cond]])

    labels = wide[["variable"] + conds].apply(
        lambda row: "_".join(_cell(v) for v in row), axis=1
    )
    rows.append(["labels"] + list(labels))

    subjects = sorted(pd.unique(df["subject"].astype(object)), key=_natural_key)
    for sub in subjects:
        rows.append([_cell(sub)] + [_cell(v) for v in wide[sub]])
    return rows


def write_results(
    filename,
    df: pd.DataFrame,
    conds: Iterable[str],
    *,
    variables: Optional[Iterable[str]] = None,
    archive: bool = True,
    format: str = "wide",
) -> str:
    """
    Write a long results table (from `stack`) to CSV.

    The file is written to a temporary sibling and moved into place.

    Args:
        filename: Destination CSV path
        df: Long form results table
        conds: Condition columns
        variables: Variables to write (default: all)
        archive: Move an existing `filename` to `filename`.bak first
        format: "wide" or "long"

    Returns:
        The path written

    Raises:
        ValueError: If `format` is unknown or `df` is not in long form
    """
    if format not in FORMATS:
        raise ValueError(f"`format` must be one of {FORMATS}; got {format!r}")
    if not set(LONG_COLUMNS).issubset(df.columns):
        raise ValueError("`df` must be provided in long format")

    conds = list(conds)
    if variables is not None:
        df = df[df["variable"].isin(list(variables))]

    filename = os.fspath(filename)
    directory, base = os.path.split(filename)
    name, ext = os.path.splitext(base)
    tempfn = os.path.join(directory, f"~{name}-{uuid.uuid4().hex[:4]}{ext}")

    if format == "long":
        df.to_csv(tempfn, index=False, na_rep="")
    else:
        pd.DataFrame(_wide_rows(df, conds)).to_csv(tempfn, header=False, index=False)

    if archive and os.path.isfile(filename):
        os.replace(filename, filename + ".bak")
    os.replace(tempfn, filename)
    return filename
