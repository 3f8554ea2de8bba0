"""File I/O utilities for reading snapshots and writing engine output."""

from pathlib import Path

import pandas as pd
from rich.console import Console

type FilePath = str | Path

console = Console(stderr=True)


def read_csv_files(directory: FilePath, pattern: str = "*.csv") -> pd.DataFrame:
    """Read all CSV files in a directory matching ``pattern`` and concatenate them."""
    directory = Path(directory)
    chunks = []

    for csv_file in sorted(directory.glob(pattern)):
        console.print(f"  [dim]Reading {csv_file.name}...[/dim]")
        chunks.append(pd.read_csv(csv_file, dtype=str, keep_default_na=True))

    if not chunks:
        return pd.DataFrame()
    return pd.concat(chunks, ignore_index=True)


def write_output(df: pd.DataFrame, path: FilePath, fmt: str = "csv") -> Path:
    """Write a DataFrame to the specified format."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    match fmt:
        case "csv":
            df.to_csv(path, index=False)
        case "parquet":
            df.to_parquet(path, index=False)
        case "json":
            df.to_json(path, orient="records", indent=2)
        case other:
            raise ValueError(f"Unsupported output format: {other}")

    console.print(f"  Wrote {len(df)} rows to {path}")
    return path
