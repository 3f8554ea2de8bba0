"""Shared utilities for the carrier performance engine."""

from carrier_intel.utils.io import read_csv_files, write_output
from carrier_intel.utils.transforms import normalize_columns
from carrier_intel.utils.validators import validate_dataframe
