"""Tests for the Redshift range data source entry point."""

import pytest
from unittest.mock import MagicMock, patch
from pyspark.sql.types import StructType, StructField, LongType


def _mock_boto3_for_schema(column_metadata):
    mock_session_class = MagicMock()
    mock_client = MagicMock()
    mock_session_class.return_value.client.return_value = mock_client
    mock_client.execute_statement.return_value = {"Id": "stmt-1"}
    mock_client.describe_statement.return_value = {"Id": "stmt-1", "Status": "FINISHED"}
    mock_client.get_statement_result.return_value = {
        "ColumnMetadata": column_metadata,
        "Records": [],
    }
    return mock_session_class, mock_client


def test_data_source_name():
    """Test the format name used with spark.read.format()."""
    from redshift_range_data_source import RedshiftRangeDataSource

    assert RedshiftRangeDataSource.name() == "redshift_range"


def test_schema_from_column_metadata(basic_options):
    """Test schema() derives a StructType from a one-row probe query."""
    from redshift_range_data_source import RedshiftRangeDataSource

    mock_session_class, mock_client = _mock_boto3_for_schema([
        {"name": "id", "typeName": "int8", "nullable": 0},
        {"name": "name", "typeName": "varchar", "nullable": 1},
    ])

    with patch("boto3.Session", mock_session_class):
        schema = RedshiftRangeDataSource(basic_options).schema()

    assert schema.fieldNames() == ["id", "name"]
    assert schema["id"].dataType == LongType()
    assert mock_client.execute_statement.call_args.kwargs["Sql"] == "SELECT * FROM orders LIMIT 1"


def test_schema_missing_table_name():
    """Test schema() requires table_name."""
    from redshift_range_data_source import RedshiftRangeDataSource

    with pytest.raises(ValueError, match="table_name"):
        RedshiftRangeDataSource({"aws_region": "us-east-1", "database": "dev"}).schema()


def test_missing_required_option_database():
    """Test that missing database option raises ValueError."""
    from redshift_range_data_source import RedshiftRangeDataSource

    schema = StructType([StructField("id", LongType())])
    options = {"table_name": "orders", "aws_region": "us-east-1", "cluster_identifier": "c"}

    with pytest.raises(ValueError, match="database"):
        RedshiftRangeDataSource(options).reader(schema)


def test_reader_returns_batch_reader(basic_options):
    """Test reader() returns a Spark batch reader configured from options."""
    from pyspark.sql.datasource import DataSourceReader
    from redshift_range_data_source import RedshiftRangeDataSource

    schema = StructType([StructField("id", LongType())])
    options = dict(basic_options, partition_column="id", num_partitions="8")

    reader = RedshiftRangeDataSource(options).reader(schema)

    assert isinstance(reader, DataSourceReader)
    assert reader.partition_column == "id"
    assert reader.num_partitions == 8
