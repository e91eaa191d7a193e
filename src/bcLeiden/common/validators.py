"""
Input validation utilities for the bcLeiden library.

Edge lists usually arrive as tables (CSV files, DataFrames). These checks run
before a ``Graph`` is built so that data problems surface as a
``ValidationError`` naming the offending column instead of as odd results
further down the pipeline.
"""

from typing import Optional
import math

import polars as pl

from .exceptions import ValidationError


def validate_edgelist_dataframe(
    df: pl.DataFrame,
    source_col: str = "source",
    target_col: str = "target",
    weight_col: Optional[str] = None,
    allow_empty: bool = False
) -> None:
    """
    Validate an edge list DataFrame for graph construction.

    Checks that the DataFrame has the required columns, that vertex columns
    hold non-null integers, and that weights (when present) are numeric,
    non-null, finite and strictly positive.

    Parameters
    ----------
    df : pl.DataFrame
        Edge list DataFrame to validate
    source_col : str, default "source"
        Name of the source vertex column
    target_col : str, default "target"
        Name of the target vertex column
    weight_col : str, optional
        Name of the edge weight column (if present)
    allow_empty : bool, default False
        Whether a DataFrame without rows is acceptable

    Raises
    ------
    ValidationError
        If the DataFrame fails any validation check

    Examples
    --------
    >>> df = pl.DataFrame({"source": [1, 2], "target": [2, 3], "weight": [0.5, 1.0]})
    >>> validate_edgelist_dataframe(df, weight_col="weight")
    """
    required_cols = [source_col, target_col]
    if weight_col is not None:
        required_cols.append(weight_col)

    missing_cols = [col for col in required_cols if col not in df.columns]
    if missing_cols:
        raise ValidationError(
            f"Missing required columns: {missing_cols}",
            field="columns",
            details={"available_columns": df.columns, "missing": missing_cols}
        )

    if df.is_empty():
        if allow_empty:
            return
        raise ValidationError("DataFrame is empty", field="dataframe")

    for col in [source_col, target_col]:
        null_count = df[col].null_count()
        if null_count > 0:
            raise ValidationError(
                f"Column contains {null_count} null values",
                field=col,
                details={"null_count": null_count, "total_rows": len(df)}
            )

        if not df[col].dtype.is_integer():
            raise ValidationError(
                f"Vertex column must hold integer IDs, got {df[col].dtype}",
                field=col,
                expected="integer dtype"
            )

    if weight_col is not None:
        weight_series = df[weight_col]

        if not weight_series.dtype.is_numeric():
            raise ValidationError(
                f"Weight column must be numeric, got {weight_series.dtype}",
                field=weight_col,
                details={"dtype": str(weight_series.dtype)}
            )

        null_count = weight_series.null_count()
        if null_count > 0:
            raise ValidationError(
                f"Weight column contains {null_count} null values",
                field=weight_col,
                details={"null_count": null_count}
            )

        bad_weights = [w for w in weight_series.to_list() if not math.isfinite(w) or w <= 0]
        if bad_weights:
            raise ValidationError(
                f"Weight column contains {len(bad_weights)} non-positive or non-finite values",
                field=weight_col,
                expected="finite weights > 0",
                details={"min_weight": min(bad_weights), "invalid_count": len(bad_weights)}
            )
