from sqlalchemy import (
    DECIMAL,
    JSON,
    BigInteger,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    func,
)

metadata = MetaData()

payments_log_tbl = Table(
    "payments_log",
    metadata,
    Column(
        "id",
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    ),
    Column("user_id", BigInteger, nullable=False, index=True),
    Column("order_id", BigInteger, nullable=False, index=True),
    Column("event_type", String(20), nullable=False, index=True),
    Column(
        "event_ts",
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    ),
    Column("currency", String(3), nullable=False),
    Column("payment_amount", DECIMAL(19, 4), nullable=False),
    Column("gateway_transaction_id", String(255), nullable=True),
    Column("payment_gateway", String(100), nullable=False),
    Column("payment_method", String(100), nullable=False),
    Column("payment_metadata", JSON, nullable=True),
)
