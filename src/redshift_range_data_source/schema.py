"""Schema derivation utilities for Redshift column types."""

from pyspark.sql.types import (
    StructType, StructField, StringType, ShortType, IntegerType, LongType,
    FloatType, DoubleType, DecimalType, BooleanType, DateType, TimestampType,
    BinaryType
)

_SIMPLE_TYPES = {
    "int2": ShortType,
    "smallint": ShortType,
    "int4": IntegerType,
    "int": IntegerType,
    "integer": IntegerType,
    "int8": LongType,
    "bigint": LongType,
    "float4": FloatType,
    "real": FloatType,
    "float8": DoubleType,
    "float": DoubleType,
    "double precision": DoubleType,
    "bool": BooleanType,
    "boolean": BooleanType,
    "date": DateType,
    "timestamp": TimestampType,
    "timestamptz": TimestampType,
    "varbyte": BinaryType,
}

# Spark's DecimalType tops out at 38 digits, same as Redshift NUMERIC
_MAX_PRECISION = 38


def infer_spark_type(column):
    """
    Infer Spark type from Redshift Data API column metadata.

    Redshift reports:
        int2/int4/int8 -> ShortType/IntegerType/LongType
        float4/float8 -> FloatType/DoubleType
        numeric -> DecimalType(precision, scale)
        bool -> BooleanType
        date -> DateType
        timestamp/timestamptz -> TimestampType
        varbyte -> BinaryType
        anything else (varchar, bpchar, super, ...) -> StringType

    Args:
        column: ColumnMetadata dict from the Data API

    Returns:
        PySpark DataType
    """
    type_name = (column.get("typeName") or "").lower()

    if type_name in ("numeric", "decimal"):
        precision = column.get("precision") or _MAX_PRECISION
        precision = min(precision, _MAX_PRECISION)
        scale = min(column.get("scale") or 0, precision)
        return DecimalType(precision, scale)

    spark_type = _SIMPLE_TYPES.get(type_name)
    if spark_type is None:
        return StringType()
    return spark_type()


def derive_schema_from_columns(columns):
    """
    Derive Spark schema from Data API column metadata.

    Fields keep the table's column order. Columns reported as NOT NULL
    (``nullable == 0``) become non-nullable fields.

    Args:
        columns: List of ColumnMetadata dicts

    Returns:
        StructType representing the Spark schema
    """
    fields = []
    for column in columns:
        nullable = column.get("nullable", 1) != 0
        fields.append(StructField(column["name"], infer_spark_type(column), nullable=nullable))

    return StructType(fields)


def derive_schema_from_table(client, table_name):
    """
    Derive Spark schema from a Redshift table.

    Args:
        client: RedshiftDataClient
        table_name: Name of the table

    Returns:
        StructType representing the Spark schema
    """
    return derive_schema_from_columns(client.describe_columns(table_name))
