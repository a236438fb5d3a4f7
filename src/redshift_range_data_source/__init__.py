"""Redshift Range - Python Data Source reading Amazon Redshift tables in column ranges."""

from .data_source import RedshiftRangeDataSource
from .errors import DatabaseError, InvalidArgumentError
from .partitioning import (
    ColumnRangePartition,
    PartitionDescriptor,
    PartitionRequest,
    compute_ranges,
    plan_partitions,
)
from .reader import RedshiftRangeBatchReader, RedshiftRangeReader
from .schema import infer_spark_type, derive_schema_from_columns, derive_schema_from_table
from .sql_client import DbApiQueryRunner, RedshiftDataClient, ScalarQueryRunner
from .type_conversion import convert_redshift_value, field_value, to_int

__all__ = [
    "RedshiftRangeDataSource",
    "RedshiftRangeBatchReader",
    "RedshiftRangeReader",
    "ColumnRangePartition",
    "PartitionDescriptor",
    "PartitionRequest",
    "compute_ranges",
    "plan_partitions",
    "DatabaseError",
    "InvalidArgumentError",
    "DbApiQueryRunner",
    "RedshiftDataClient",
    "ScalarQueryRunner",
    "infer_spark_type",
    "derive_schema_from_columns",
    "derive_schema_from_table",
    "convert_redshift_value",
    "field_value",
    "to_int",
]
