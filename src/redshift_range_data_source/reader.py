"""Redshift reader implementations using the Redshift Data API."""

from pyspark.sql.datasource import DataSourceReader

from .errors import InvalidArgumentError
from .partitioning import ColumnRangePartition, PartitionRequest, plan_partitions
from .sql_client import RedshiftDataClient, resolve_credentials
from .type_conversion import convert_redshift_value


def parse_partition_count(value):
    """Parse the num_partitions option into a positive int."""
    try:
        count = int(value)
    except (TypeError, ValueError) as err:
        raise InvalidArgumentError(f"num_partitions must be an integer, got {value!r}") from err

    if count <= 0:
        raise InvalidArgumentError(f"num_partitions must be positive, got {count}")
    return count


def quote_identifier(name):
    """Quote a column name so reserved words such as user or timestamp can be selected."""
    return '"' + name.replace('"', '""') + '"'


class RedshiftRangeReader:
    """Base reader class for Redshift range-partitioned reads.

    IMPORTANT: The reader __init__ must NOT connect to Redshift (no boto3 calls).
    PySpark re-instantiates the reader in a forked Python worker process for
    partitions() and read(). The Data API client is created lazily inside
    those calls instead.

    Schema derivation (which needs a connection) is handled by
    RedshiftRangeDataSource.schema() on the driver before the reader is created.
    """

    def __init__(self, options, schema):
        """
        Initialize reader with pre-resolved schema.

        Args:
            options: Configuration options dict
            schema: Spark StructType schema (already resolved by DataSource.schema())
        """
        self.options = options

        # Validate required options
        self._validate_options()

        self.table_name = options["table_name"]

        # Partitioning options
        self.partition_column = options.get("partition_column")
        # Without a partition column the count is unused and the read is unpartitioned
        if self.partition_column:
            self.num_partitions = parse_partition_count(options.get("num_partitions", 1))
        else:
            self.num_partitions = 1

        # Schema is always provided (resolved by DataSource.schema() or user)
        self.schema = schema
        self.columns = [field.name for field in schema.fields] if schema else []

        # Resolve credentials on init (runs on driver, not fork-sensitive)
        self.client = RedshiftDataClient(options, credentials=resolve_credentials(options))

    def _validate_options(self):
        """Validate required options are present."""
        required = ["table_name", "database", "aws_region"]
        missing = [opt for opt in required if opt not in self.options]

        if missing:
            raise ValueError(f"Missing required options: {', '.join(missing)}")

    def partition_request(self):
        return PartitionRequest(
            table=self.table_name,
            column=self.partition_column,
            partitions=self.num_partitions,
        )

    def partitions(self):
        """
        Return list of partitions for parallel reading.

        Queries MIN/MAX of the partition column and splits that range into
        contiguous chunks. Without a partition column the whole table is one
        partition.

        Returns:
            List of ColumnRangePartition objects in index order
        """
        planned = plan_partitions(self.partition_request(), self.client)
        return [
            ColumnRangePartition.from_descriptor(index, descriptor)
            for index, descriptor in enumerate(planned.values())
        ]

    def build_query(self, partition):
        """Build the SELECT for one partition."""
        projection = ", ".join(quote_identifier(c) for c in self.columns) if self.columns else "*"
        sql = f"SELECT {projection} FROM {self.table_name}"
        if partition.part_clause:
            sql = f"{sql} {partition.part_clause}"
        return sql

    def read(self, partition):
        """
        Read the rows of one column range.

        Args:
            partition: ColumnRangePartition to read

        Yields:
            Tuples representing rows in schema column order
        """
        data_types = [field.dataType for field in self.schema.fields] if self.schema else []

        for _, record in self.client.iter_records(self.build_query(partition)):
            if data_types:
                yield tuple(
                    convert_redshift_value(field, data_type)
                    for field, data_type in zip(record, data_types)
                )
            else:
                yield tuple(convert_redshift_value(field) for field in record)


class RedshiftRangeBatchReader(RedshiftRangeReader, DataSourceReader):
    """Batch reader for Redshift."""

    pass
