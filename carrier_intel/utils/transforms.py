"""Common data transformation utilities."""

import pandas as pd

type ColumnMapping = dict[str, str]


def normalize_columns(df: pd.DataFrame, mapping: ColumnMapping | None = None) -> pd.DataFrame:
    """Normalize column names to snake_case and apply optional mapping."""
    df.columns = [str(col).strip().lower().replace(" ", "_").replace("-", "_") for col in df.columns]

    if mapping:
        # never rename onto a column that is already present
        mapping = {src: dst for src, dst in mapping.items() if dst not in df.columns}
        df = df.rename(columns=mapping)

    return df
