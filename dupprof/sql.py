"""
Duplicate profiling pushed down to a relational database.

All statements run on one connection inside one read transaction at
snapshot isolation, so the counts and the sample describe the same state
of the table. Only SELECT statements are issued.
"""
import logging
from typing import Optional, Sequence, Union, List

from sqlalchemy import MetaData, Table, select, func, case, or_
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import NoSuchTableError

from dupprof.analyzer import normalize_key_columns
from dupprof.config import ProfilerConfig
from dupprof.errors import SchemaError, check_columns
from dupprof.models import DuplicateReport, DuplicateGroup, SampleRow
from utils.consts import DEFAULT_SAMPLE_LIMIT, DEFAULT_MAX_GROUPS, GROUP_SIZE_COLUMN

logger = logging.getLogger(__name__)

ROW_INDEX_COLUMN = "__dupprof_row_index"
GROUP_COUNT_COLUMN = "__dupprof_group_count"
FIRST_ROW_COLUMN = "__dupprof_first_row"


def snapshot_isolation_level(engine: Engine) -> str:
    # pysqlite has no REPEATABLE READ; SERIALIZABLE is its default level
    if engine.dialect.name == "sqlite":
        return "SERIALIZABLE"
    return "REPEATABLE READ"


def begin_sqlite_snapshot(conn: Connection):
    """
    Open the read transaction explicitly on SQLite.

    pysqlite only sends BEGIN ahead of DML, so without this every SELECT
    would see the database as of its own start.
    """
    if not conn.connection.dbapi_connection.in_transaction:
        conn.exec_driver_sql("BEGIN")


def reflect_table(conn: Connection, table_name: str, schema: Optional[str] = None) -> Table:
    try:
        return Table(table_name, MetaData(), schema=schema, autoload_with=conn)
    except NoSuchTableError as exc:
        qualified = f"{schema}.{table_name}" if schema else table_name
        raise SchemaError([], message=f"Table not found: {qualified}") from exc


def profile_table(
    engine: Engine,
    table_name: str,
    key_columns: Union[str, Sequence[str]],
    sample_limit: int = DEFAULT_SAMPLE_LIMIT,
    *,
    schema: Optional[str] = None,
    order_by: Optional[Sequence[str]] = None,
    max_groups: int = DEFAULT_MAX_GROUPS
) -> DuplicateReport:
    """
    Profile a database table for duplicates under ``key_columns``.

    Group sizes come from ``COUNT(*) OVER (PARTITION BY key...)``; window
    partitions and GROUP BY both put NULL keys in one group, which matches
    the in-memory profiler. Without ``order_by`` the sample follows the
    database's scan order, which is only stable if the database makes it so.
    """
    key_columns = normalize_key_columns(key_columns)
    # validates sample_limit and max_groups
    ProfilerConfig(sample_limit=sample_limit, max_groups=max_groups)
    order_by = list(order_by or [])

    with engine.connect() as conn:
        conn = conn.execution_options(isolation_level=snapshot_isolation_level(engine))
        with conn.begin():
            if engine.dialect.name == "sqlite":
                begin_sqlite_snapshot(conn)
            table = reflect_table(conn, table_name, schema)
            available = list(table.c.keys())
            check_columns(key_columns, available)
            check_columns(order_by, available)

            logger.debug("Profiling %s on key %s", table.fullname, key_columns)
            return _profile_in_transaction(
                conn, table, key_columns, sample_limit, order_by, max_groups
            )


def _profile_in_transaction(
    conn: Connection,
    table: Table,
    key_columns: List[str],
    sample_limit: int,
    order_by: List[str],
    max_groups: int
) -> DuplicateReport:
    keys = [table.c[col] for col in key_columns]
    ordering = [table.c[col] for col in order_by]

    sized = select(
        table,
        func.count().over(partition_by=keys).label(GROUP_SIZE_COLUMN),
        (func.row_number().over(order_by=ordering or None) - 1).label(ROW_INDEX_COLUMN),
    ).subquery("sized")
    group_size = sized.c[GROUP_SIZE_COLUMN]
    row_index = sized.c[ROW_INDEX_COLUMN]
    sized_keys = [sized.c[col] for col in key_columns]

    duplicate_flag = case((group_size > 1, 1), else_=0)
    null_flag = case((or_(*[col.is_(None) for col in sized_keys]), 1), else_=0)
    total, duplicates, null_keys = conn.execute(
        select(
            func.count(),
            func.coalesce(func.sum(duplicate_flag), 0),
            func.coalesce(func.sum(null_flag), 0),
        ).select_from(sized)
    ).one()

    grouped = (
        select(
            *sized_keys,
            func.count().label(GROUP_COUNT_COLUMN),
            func.min(row_index).label(FIRST_ROW_COLUMN),
        )
        .group_by(*sized_keys)
        .having(func.count() > 1)
    )
    group_count = conn.execute(select(func.count()).select_from(grouped.subquery())).scalar_one()

    groups = []
    if max_groups and group_count:
        top = grouped.order_by(func.count().desc(), func.min(row_index)).limit(max_groups)
        for row in conn.execute(top):
            key = {col: row[i] for i, col in enumerate(key_columns)}
            groups.append(DuplicateGroup(
                key=key,
                count=int(row._mapping[GROUP_COUNT_COLUMN]),
                first_row_index=int(row._mapping[FIRST_ROW_COLUMN])
            ))

    sample = []
    if sample_limit and duplicates:
        rows = conn.execute(
            select(sized).where(group_size > 1).order_by(row_index).limit(sample_limit)
        )
        for row in rows:
            record = {
                name: value for name, value in row._mapping.items()
                if name not in (GROUP_SIZE_COLUMN, ROW_INDEX_COLUMN)
            }
            sample.append(SampleRow(
                record=record,
                group_size=int(row._mapping[GROUP_SIZE_COLUMN]),
                row_index=int(row._mapping[ROW_INDEX_COLUMN])
            ))

    return DuplicateReport(
        key_columns=list(key_columns),
        total_count=int(total),
        duplicate_count=int(duplicates),
        sample=sample,
        sample_limit=sample_limit,
        duplicate_group_count=int(group_count),
        groups=groups,
        null_key_count=int(null_keys),
    )
