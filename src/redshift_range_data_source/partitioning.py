"""Column range partitioning for parallel table reads."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pyspark.sql.datasource import InputPartition

from .errors import DatabaseError, InvalidArgumentError
from .type_conversion import to_int

logger = logging.getLogger(__name__)

PARTITION_PREFIX = "partition"


@dataclass(frozen=True)
class PartitionRequest:
    """What to partition: a table, one of its numeric columns, and a partition count."""

    table: str | None
    column: str | None
    partitions: int = 1


@dataclass(frozen=True)
class PartitionDescriptor:
    """
    Per-partition properties handed to the batch job.

    ``part_clause`` restricts the column to the partition's sub-range (empty
    for an unpartitioned read) and ``part_suffix`` tells partitions apart in
    output names. ``lower``/``upper`` are the inclusive bounds behind the
    clause, or None when unpartitioned.
    """

    part_clause: str
    part_suffix: str
    lower: int | None = None
    upper: int | None = None

    def as_context(self) -> dict[str, str]:
        return {"partClause": self.part_clause, "partSuffix": self.part_suffix}


UNPARTITIONED = PartitionDescriptor(part_clause="", part_suffix="")


def partition_name(index: int) -> str:
    return f"{PARTITION_PREFIX}{index}"


def _check_partition_count(partitions) -> None:
    if isinstance(partitions, bool) or not isinstance(partitions, int):
        raise InvalidArgumentError(f"Partition count must be an integer, got {partitions!r}")
    if partitions <= 0:
        raise InvalidArgumentError(f"Partition count must be positive, got {partitions}")


def compute_ranges(min_value: int, max_value: int, partitions: int) -> list[tuple[int, int]]:
    """
    Split ``[min_value, max_value]`` into contiguous inclusive sub-ranges.

    Every range but the last spans ``(max - min) // partitions + 1`` values;
    the last one is clamped to ``max_value``. An inverted interval yields no
    ranges.

    Args:
        min_value: Smallest column value
        max_value: Largest column value
        partitions: Requested number of partitions (must be positive)

    Returns:
        List of (start, end) tuples in ascending order
    """
    _check_partition_count(partitions)

    if max_value < min_value:
        return []

    target_size = (max_value - min_value) // partitions + 1

    ranges = []
    start = min_value
    end = start + target_size - 1
    while start <= max_value:
        if end >= max_value:
            end = max_value
        ranges.append((start, end))
        start += target_size
        end += target_size

    return ranges


def _query_bound(runner, aggregate, request):
    sql = f"SELECT {aggregate}({request.column}) FROM {request.table}"
    try:
        value = runner.query_scalar(sql)
    except DatabaseError:
        raise
    except Exception as err:
        raise DatabaseError(f"Query failed: {sql}: {err}") from err

    try:
        return to_int(value)
    except (TypeError, ValueError) as err:
        raise DatabaseError(f"{sql} returned a non-integer value: {value!r}") from err


def plan_partitions(request: PartitionRequest, runner) -> dict[str, PartitionDescriptor]:
    """
    Compute the partition set for a table column.

    A blank table or column name means "do not partition": the result is a
    single ``partition0`` with empty clause and suffix, and no query is run.
    The same single entry is returned when the table has no rows (NULL
    aggregates) or reports ``max < min``.

    Args:
        request: Table, column and partition count
        runner: Object exposing ``query_scalar(sql)``

    Returns:
        Dict of partition name to PartitionDescriptor, in index order

    Raises:
        InvalidArgumentError: If the partition count is not a positive integer
        DatabaseError: If an aggregate query fails or returns a non-integer
    """
    if not (request.table or "").strip() or not (request.column or "").strip():
        logger.info("No table or column configured, using single unpartitioned read")
        return {partition_name(0): UNPARTITIONED}

    _check_partition_count(request.partitions)

    min_value = _query_bound(runner, "MIN", request)
    max_value = _query_bound(runner, "MAX", request)

    if min_value is None or max_value is None or max_value < min_value:
        logger.warning(
            "No usable range for %s.%s (min=%s, max=%s), using single unpartitioned read",
            request.table,
            request.column,
            min_value,
            max_value,
        )
        return {partition_name(0): UNPARTITIONED}

    result = {}
    for index, (start, end) in enumerate(compute_ranges(min_value, max_value, request.partitions)):
        result[partition_name(index)] = PartitionDescriptor(
            part_clause=f"WHERE {request.column} BETWEEN {start} AND {end}",
            part_suffix=f"-p{index}",
            lower=start,
            upper=end,
        )

    logger.info(
        "Planned %s range partitions on %s.%s (%s-%s, requested=%s)",
        len(result),
        request.table,
        request.column,
        min_value,
        max_value,
        request.partitions,
    )
    return result


class ColumnRangePartition(InputPartition):
    """
    One column range of a table, read by a single Spark task.

    Built from a PartitionDescriptor on the driver and pickled to the worker
    that runs ``read()``.
    """

    def __init__(self, index, part_clause="", part_suffix="", lower=None, upper=None):
        """
        Initialize a column range partition.

        Args:
            index: Zero-based partition index
            part_clause: WHERE clause restricting the read, or empty string
            part_suffix: Suffix distinguishing this partition, or empty string
            lower: Inclusive lower bound, or None when unpartitioned
            upper: Inclusive upper bound, or None when unpartitioned
        """
        self.index = index
        self.part_clause = part_clause
        self.part_suffix = part_suffix
        self.lower = lower
        self.upper = upper

    @classmethod
    def from_descriptor(cls, index, descriptor):
        return cls(
            index,
            part_clause=descriptor.part_clause,
            part_suffix=descriptor.part_suffix,
            lower=descriptor.lower,
            upper=descriptor.upper,
        )

    @property
    def name(self):
        return partition_name(self.index)

    def _key(self):
        return (self.index, self.part_clause, self.part_suffix, self.lower, self.upper)

    def __eq__(self, other):
        """Check equality based on partition content."""
        if not isinstance(other, ColumnRangePartition):
            return False
        return self._key() == other._key()

    def __hash__(self):
        """Return hash for use in sets/dicts."""
        return hash(self._key())

    def __repr__(self):
        """Return string representation."""
        return (
            f"ColumnRangePartition(index={self.index}, lower={self.lower}, "
            f"upper={self.upper}, part_suffix={self.part_suffix!r})"
        )
