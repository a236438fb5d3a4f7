"""SQL execution backends: any DB-API connection, or Redshift through the Data API."""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterator, Protocol

from .errors import DatabaseError
from .type_conversion import convert_redshift_value

logger = logging.getLogger(__name__)

_TERMINAL_FAILURES = ("FAILED", "ABORTED")


class ScalarQueryRunner(Protocol):
    """Anything that can run an aggregate query and return its single value."""

    def query_scalar(self, sql: str) -> object | None:
        """Return the first column of the first row, or None if there is no row."""


class DbApiQueryRunner:
    """
    Scalar queries over a PEP 249 connection.

    A connection is opened per query and closed afterwards, whether or not the
    query succeeds.
    """

    def __init__(self, connect: Callable[[], object]):
        """
        Args:
            connect: Zero-argument callable returning a DB-API connection
        """
        self._connect = connect

    def query_scalar(self, sql: str) -> object | None:
        try:
            conn = self._connect()
        except Exception as err:
            raise DatabaseError(f"Could not connect: {err}") from err

        try:
            cursor = conn.cursor()
            try:
                cursor.execute(sql)
                row = cursor.fetchone()
            finally:
                cursor.close()
        except Exception as err:
            raise DatabaseError(f"Query failed: {sql}: {err}") from err
        finally:
            conn.close()

        if not row:
            return None
        return row[0]


def resolve_credentials(options):
    """Resolve AWS credentials from a Databricks Unity Catalog service credential.

    When credential_name is set, tries databricks.service_credentials
    (available on newer Databricks runtimes). If that fails, assumes AWS
    credentials are already set via options.

    Returns:
        Dict with aws_access_key_id, aws_secret_access_key and aws_session_token
    """
    credentials = {
        "aws_access_key_id": options.get("aws_access_key_id"),
        "aws_secret_access_key": options.get("aws_secret_access_key"),
        "aws_session_token": options.get("aws_session_token"),
    }

    credential_name = options.get("credential_name")
    if not credential_name:
        return credentials

    try:
        import databricks.service_credentials
        provider = databricks.service_credentials.getServiceCredentialsProvider(credential_name)
        frozen = provider.get_credentials().get_frozen_credentials()
        credentials["aws_access_key_id"] = frozen.access_key
        credentials["aws_secret_access_key"] = frozen.secret_key
        credentials["aws_session_token"] = frozen.token
        logger.info("AWS credentials refreshed using service credential '%s'", credential_name)
    except Exception:
        logger.info("Using AWS credentials as Lakeflow Connect service credentials are not available")

    return credentials


class RedshiftDataClient:
    """
    Runs SQL on Amazon Redshift through the Redshift Data API.

    Statements are asynchronous on the service side: each one is submitted,
    polled until it reaches a terminal status, then its result pages are
    fetched. The boto3 client is created lazily so the object can be built on
    the driver and pickled to workers before any connection exists.
    """

    def __init__(self, options, credentials=None):
        """
        Initialize client settings from data source options.

        Args:
            options: Configuration options dict (string values)
            credentials: Pre-resolved AWS credentials, or None to read them
                from options
        """
        self._validate_options(options)

        self.aws_region = options["aws_region"]
        self.database = options["database"]
        self.cluster_identifier = options.get("cluster_identifier")
        self.db_user = options.get("db_user")
        self.workgroup_name = options.get("workgroup_name")
        self.secret_arn = options.get("secret_arn")
        self.endpoint_url = options.get("endpoint_url")

        self.poll_interval = float(options.get("poll_interval", 0.5))
        self.statement_timeout = float(options.get("statement_timeout", 300))

        if credentials is None:
            credentials = {
                "aws_access_key_id": options.get("aws_access_key_id"),
                "aws_secret_access_key": options.get("aws_secret_access_key"),
                "aws_session_token": options.get("aws_session_token"),
            }
        self.credentials = credentials

        self._client = None

    @staticmethod
    def _validate_options(options):
        """Validate connection options are present and target one Redshift endpoint."""
        required = ["database", "aws_region"]
        missing = [opt for opt in required if not options.get(opt)]

        if missing:
            raise ValueError(f"Missing required options: {', '.join(missing)}")

        if not (options.get("cluster_identifier") or options.get("workgroup_name")):
            raise ValueError("One of cluster_identifier or workgroup_name must be specified")

        if options.get("cluster_identifier") and options.get("workgroup_name"):
            raise ValueError("cluster_identifier and workgroup_name are mutually exclusive")

    def __getstate__(self):
        state = self.__dict__.copy()
        state["_client"] = None
        return state

    @property
    def client(self):
        """Create (once) the boto3 redshift-data client."""
        if self._client is None:
            import boto3

            session_kwargs = {"region_name": self.aws_region}
            for key, value in self.credentials.items():
                if value:
                    session_kwargs[key] = value

            session = boto3.Session(**session_kwargs)

            client_kwargs = {}
            if self.endpoint_url:
                client_kwargs["endpoint_url"] = self.endpoint_url

            self._client = session.client("redshift-data", **client_kwargs)
        return self._client

    def _statement_kwargs(self, sql):
        kwargs = {"Sql": sql, "Database": self.database}
        if self.workgroup_name:
            kwargs["WorkgroupName"] = self.workgroup_name
        else:
            kwargs["ClusterIdentifier"] = self.cluster_identifier
            if self.db_user and not self.secret_arn:
                kwargs["DbUser"] = self.db_user
        if self.secret_arn:
            kwargs["SecretArn"] = self.secret_arn
        return kwargs

    def execute(self, sql):
        """
        Submit a statement and wait for it to finish.

        Args:
            sql: SQL text

        Returns:
            The final ``describe_statement`` response

        Raises:
            DatabaseError: If the statement fails, is aborted, times out, or
                the API call itself errors
        """
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            statement_id = self.client.execute_statement(**self._statement_kwargs(sql))["Id"]
            deadline = time.monotonic() + self.statement_timeout

            while True:
                description = self.client.describe_statement(Id=statement_id)
                status = description["Status"]
                logger.debug("Statement %s is %s", statement_id, status)

                if status == "FINISHED":
                    return description

                if status in _TERMINAL_FAILURES:
                    raise DatabaseError(
                        f"Statement {status.lower()}: {sql}: {description.get('Error', 'no error message')}"
                    )

                if time.monotonic() >= deadline:
                    self.client.cancel_statement(Id=statement_id)
                    raise DatabaseError(
                        f"Statement timed out after {self.statement_timeout} seconds: {sql}"
                    )

                time.sleep(self.poll_interval)
        except (BotoCoreError, ClientError) as err:
            raise DatabaseError(f"Redshift Data API call failed: {err}") from err

    def iter_records(self, sql) -> Iterator[tuple[list, list]]:
        """
        Execute a query and page through its result set.

        Yields:
            (column_metadata, record) pairs, one per row
        """
        from botocore.exceptions import BotoCoreError, ClientError

        description = self.execute(sql)
        if not description.get("HasResultSet", True):
            return

        result_kwargs = {"Id": description["Id"]}
        while True:
            try:
                response = self.client.get_statement_result(**result_kwargs)
            except (BotoCoreError, ClientError) as err:
                raise DatabaseError(f"Redshift Data API call failed: {err}") from err

            column_metadata = response.get("ColumnMetadata", [])
            for record in response.get("Records", []):
                yield column_metadata, record

            if "NextToken" not in response:
                break
            result_kwargs["NextToken"] = response["NextToken"]

    def query_scalar(self, sql):
        for _, record in self.iter_records(sql):
            if not record:
                return None
            return convert_redshift_value(record[0])
        return None

    def describe_columns(self, table_name):
        """
        Return the Data API column metadata of a table.

        Args:
            table_name: Table to describe

        Returns:
            List of ColumnMetadata dicts
        """
        from botocore.exceptions import BotoCoreError, ClientError

        description = self.execute(f"SELECT * FROM {table_name} LIMIT 1")
        try:
            response = self.client.get_statement_result(Id=description["Id"])
        except (BotoCoreError, ClientError) as err:
            raise DatabaseError(f"Redshift Data API call failed: {err}") from err
        return response.get("ColumnMetadata", [])
