"""Redshift range Data Source implementation."""

from pyspark.sql.datasource import DataSource

from .reader import RedshiftRangeBatchReader


class RedshiftRangeDataSource(DataSource):
    """PySpark Data Source reading an Amazon Redshift table in column ranges."""

    @classmethod
    def name(cls):
        """Return the data source format name."""
        return "redshift_range"

    def __init__(self, options):
        """Initialize data source with options."""
        self.options = options

    def schema(self):
        """
        Return the schema of the data source.

        Connects to Redshift on the driver to read the table's column metadata.
        This runs only once on the driver, never in forked worker processes.
        """
        from .schema import derive_schema_from_table
        from .sql_client import RedshiftDataClient, resolve_credentials

        missing = [opt for opt in ("table_name",) if opt not in self.options]
        if missing:
            raise ValueError(f"Missing required options: {', '.join(missing)}")

        client = RedshiftDataClient(self.options, credentials=resolve_credentials(self.options))
        return derive_schema_from_table(client, self.options["table_name"])

    def reader(self, schema):
        """Return a batch reader instance."""
        return RedshiftRangeBatchReader(self.options, schema)
