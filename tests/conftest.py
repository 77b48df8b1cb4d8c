import pytest
from sqlalchemy import create_engine, MetaData, Table, Column, Integer, String


@pytest.fixture
def orders():
    return [
        {"order_id": 1, "customer": "acme", "region": "eu"},
        {"order_id": 2, "customer": "globex", "region": "us"},
        {"order_id": 1, "customer": "acme", "region": "eu"},
        {"order_id": 3, "customer": "initech", "region": None},
        {"order_id": 4, "customer": "acme", "region": None},
        {"order_id": 2, "customer": "globex", "region": "us"},
        {"order_id": 1, "customer": "acme", "region": "us"},
    ]


@pytest.fixture
def sqlite_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'profile.db'}")
    # WAL lets a second connection commit while a read transaction is open
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA journal_mode=WAL")
    yield engine
    engine.dispose()


@pytest.fixture
def orders_table(sqlite_engine, orders):
    metadata = MetaData()
    table = Table(
        "orders",
        metadata,
        Column("pk", Integer, primary_key=True),
        Column("order_id", Integer),
        Column("customer", String),
        Column("region", String, nullable=True),
    )
    metadata.create_all(sqlite_engine)
    with sqlite_engine.begin() as conn:
        conn.execute(
            table.insert(),
            [dict(record, pk=position) for position, record in enumerate(orders)]
        )
    return table
