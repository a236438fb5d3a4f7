import sqlite3

import pytest
from pyspark.sql import SparkSession
from pyspark.sql.types import StructType, StructField, StringType, IntegerType, LongType
from unittest.mock import MagicMock


@pytest.fixture(scope="session")
def spark():
    """Create a Spark session for testing."""
    spark = SparkSession.builder \
        .appName("redshift-range-tests") \
        .master("local[2]") \
        .getOrCreate()
    yield spark
    spark.stop()


@pytest.fixture
def basic_options():
    """Basic connection options for testing."""
    return {
        "table_name": "orders",
        "database": "dev",
        "aws_region": "us-east-1",
        "cluster_identifier": "test-cluster",
        "db_user": "awsuser",
        "poll_interval": "0",
    }


@pytest.fixture
def sample_schema():
    """Sample Spark schema for testing."""
    return StructType([
        StructField("id", LongType(), False),
        StructField("name", StringType(), True),
        StructField("qty", IntegerType(), True),
    ])


@pytest.fixture
def scalar_runner():
    """Scalar query runner returning canned MIN/MAX values."""

    def make(min_value, max_value):
        runner = MagicMock()

        def query_scalar(sql):
            return min_value if sql.startswith("SELECT MIN(") else max_value

        runner.query_scalar.side_effect = query_scalar
        return runner

    return make


@pytest.fixture
def sqlite_db(tmp_path):
    """File-backed SQLite database with an ``orders`` table, returned as a connect callable."""
    path = tmp_path / "orders.db"

    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE orders (id INTEGER PRIMARY KEY, name TEXT)")
    conn.executemany(
        "INSERT INTO orders (id, name) VALUES (?, ?)",
        [(i, f"order-{i}") for i in range(100, 111)],
    )
    conn.execute("CREATE TABLE empty_orders (id INTEGER PRIMARY KEY)")
    conn.commit()
    conn.close()

    return lambda: sqlite3.connect(path)
