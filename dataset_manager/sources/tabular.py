"""
Delimited-text sources read with pandas.
"""

from typing import ClassVar, Optional

import pandas as pd

from .base import AbstractSource


class CSVSource(AbstractSource):
    """
    A comma separated file with a header row.

    Segments are selected on `time_column`; when the file has no such column
    the whole table is returned.
    """

    default_ext: ClassVar[str] = ".csv"
    time_column: ClassVar[str] = "time"
    sep: ClassVar[str] = ","

    def read_source(self, **kwargs) -> pd.DataFrame:
        return pd.read_csv(self.path, sep=self.sep, **kwargs)

    def read_segment(
        self,
        start: Optional[float],
        finish: Optional[float],
        **kwargs,
    ) -> pd.DataFrame:
        df = self.read_source(**kwargs)
        if self.time_column not in df.columns:
            return super().read_segment(start, finish, **kwargs)

        mask = pd.Series(True, index=df.index)
        if start is not None:
            mask &= df[self.time_column] >= start
        if finish is not None:
            mask &= df[self.time_column] <= finish
        return df.loc[mask].reset_index(drop=True)


class TSVSource(CSVSource):
    """A tab separated file with a header row."""

    default_ext: ClassVar[str] = ".tsv"
    sep: ClassVar[str] = "\t"
