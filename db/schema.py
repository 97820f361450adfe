from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    MetaData,
    SmallInteger,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)

metadata = MetaData()

countries = Table(
    "countries",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("code", String(2), nullable=False, unique=True),
    Column("name", String(128), nullable=False),
)

ratings = Table(
    "ratings",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(32), nullable=False),
    Column("description", Text, nullable=True),
)

loan_amortizations = Table(
    "loan_amortizations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(64), nullable=False),
    Column("months", Integer, nullable=False),
)

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("type", SmallInteger, nullable=False),
    Column("password", String(128), nullable=False),
    Column("password_date", DateTime, server_default=func.now(), nullable=False),
    Column("name", String(256), nullable=False),
    Column("enabled", Boolean, nullable=False, server_default="1"),
    Column("flags", Integer, nullable=False, server_default="0"),
    Column("address1", String(256), nullable=False),
    Column("address2", String(256), nullable=True),
    Column("address3", String(256), nullable=True),
    Column("city", String(128), nullable=False),
    Column("province", String(128), nullable=True),
    Column("post_code", String(32), nullable=True),
    Column("country", Integer, ForeignKey("countries.id"), nullable=False),
    Column("created", DateTime, server_default=func.now(), nullable=False),
    UniqueConstraint("id", "type"),
)

borrowers = Table(
    "borrowers",
    metadata,
    Column("id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("type", SmallInteger, nullable=False),
    Column("reference", LargeBinary(16), nullable=False, unique=True),
    Column("email", String(256), nullable=False, unique=True),
    Column("phone", String(32), nullable=True),
    Column("employer", String(256), nullable=True),
    Column("job_title", String(256), nullable=True),
)

investors = Table(
    "investors",
    metadata,
    Column("id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("type", SmallInteger, nullable=False),
    Column("reference", LargeBinary(16), nullable=False, unique=True),
    Column("email", String(256), nullable=False, unique=True),
    Column("phone", String(32), nullable=True),
)

bank_connections = Table(
    "bank_connections",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("reference", LargeBinary(16), nullable=False, unique=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("institution", String(16), nullable=False),
    Column("transit", String(16), nullable=False),
    Column("account", String(32), nullable=False),
    Column("created", DateTime, server_default=func.now(), nullable=False),
)

assessments = Table(
    "assessments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("reference", LargeBinary(16), nullable=False, unique=True),
    Column("borrower", Integer, ForeignKey("borrowers.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("registered", DateTime, server_default=func.now(), nullable=False),
    Column("updated", DateTime, server_default=func.now(), nullable=False),
    Column("status", SmallInteger, nullable=False, index=True),
    Column("rating", Integer, ForeignKey("ratings.id"), nullable=True),
)

assessment_files = Table(
    "assessment_files",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("assessment", Integer, ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("file_name", String(256), nullable=False),
    Column("bucket", String(128), nullable=False),
    Column("blob_key", String(256), nullable=False),
    Column("uploaded", DateTime, server_default=func.now(), nullable=False),
)
