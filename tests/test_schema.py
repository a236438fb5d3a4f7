"""Tests for Redshift schema derivation."""

from pyspark.sql.types import (
    StructType, StructField, StringType, ShortType, IntegerType, LongType,
    DoubleType, DecimalType, BooleanType, DateType, TimestampType, BinaryType
)


def test_infer_spark_type_integers():
    """Test Redshift integer types map to Spark integer types."""
    from redshift_range_data_source.schema import infer_spark_type

    assert infer_spark_type({"typeName": "int2"}) == ShortType()
    assert infer_spark_type({"typeName": "int4"}) == IntegerType()
    assert infer_spark_type({"typeName": "int8"}) == LongType()


def test_infer_spark_type_float8():
    """Test float8 infers DoubleType."""
    from redshift_range_data_source.schema import infer_spark_type

    assert infer_spark_type({"typeName": "float8"}) == DoubleType()


def test_infer_spark_type_numeric():
    """Test numeric infers DecimalType with precision and scale."""
    from redshift_range_data_source.schema import infer_spark_type

    assert infer_spark_type({"typeName": "numeric", "precision": 12, "scale": 2}) == DecimalType(12, 2)


def test_infer_spark_type_numeric_without_precision():
    """Test numeric without precision falls back to the maximum."""
    from redshift_range_data_source.schema import infer_spark_type

    assert infer_spark_type({"typeName": "numeric"}) == DecimalType(38, 0)


def test_infer_spark_type_temporal_and_bool():
    """Test date, timestamp and bool types."""
    from redshift_range_data_source.schema import infer_spark_type

    assert infer_spark_type({"typeName": "date"}) == DateType()
    assert infer_spark_type({"typeName": "timestamptz"}) == TimestampType()
    assert infer_spark_type({"typeName": "bool"}) == BooleanType()
    assert infer_spark_type({"typeName": "varbyte"}) == BinaryType()


def test_infer_spark_type_fallback_string():
    """Test unknown types fall back to StringType."""
    from redshift_range_data_source.schema import infer_spark_type

    assert infer_spark_type({"typeName": "varchar"}) == StringType()
    assert infer_spark_type({"typeName": "super"}) == StringType()
    assert infer_spark_type({}) == StringType()


def test_derive_schema_keeps_column_order():
    """Test fields follow the table's column order and nullability."""
    from redshift_range_data_source.schema import derive_schema_from_columns

    columns = [
        {"name": "id", "typeName": "int8", "nullable": 0},
        {"name": "name", "typeName": "varchar", "nullable": 1},
        {"name": "amount", "typeName": "numeric", "precision": 10, "scale": 2},
    ]

    assert derive_schema_from_columns(columns) == StructType([
        StructField("id", LongType(), nullable=False),
        StructField("name", StringType(), nullable=True),
        StructField("amount", DecimalType(10, 2), nullable=True),
    ])


def test_derive_schema_from_table():
    """Test schema derivation asks the client for column metadata."""
    from unittest.mock import MagicMock
    from redshift_range_data_source.schema import derive_schema_from_table

    client = MagicMock()
    client.describe_columns.return_value = [{"name": "id", "typeName": "int4"}]

    schema = derive_schema_from_table(client, "orders")

    client.describe_columns.assert_called_once_with("orders")
    assert schema.fieldNames() == ["id"]
