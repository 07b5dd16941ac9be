# library_api/models.py
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship

from .database import Base

ID_LENGTH = 32
ID_PATTERN = r"^[0-9a-f]{32}$"


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Role(str, enum.Enum):
    ORDINARY = "ordinary"
    ADMINISTRATOR = "administrator"


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"


# One row per (user, book) loan; both User.borrowed_books and Book.borrowers
# read from here, so the two sides cannot disagree.
borrows = Table(
    "borrows",
    Base.metadata,
    Column("user_id", String(ID_LENGTH), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("book_id", String(ID_LENGTH), ForeignKey("books.id", ondelete="CASCADE"), primary_key=True),
    Column("borrowed_at", DateTime(timezone=True), default=utcnow, nullable=False),
)


class User(Base):
    __tablename__ = "users"

    id = Column(String(ID_LENGTH), primary_key=True, default=new_id)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(Enum(Role, native_enum=False, length=20, values_callable=_enum_values), nullable=False, default=Role.ORDINARY)

    phone_number = Column(String(50), nullable=True)
    address = Column(String(255), nullable=True)
    bio = Column(String(500), nullable=True)
    birth_date = Column(Date, nullable=True)
    gender = Column(Enum(Gender, native_enum=False, length=10, values_callable=_enum_values), nullable=True)
    language = Column(String(50), nullable=True)
    country = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    borrowed_books = relationship("Book", secondary=borrows, back_populates="borrowers", order_by="Book.title")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMINISTRATOR

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Author(Base):
    __tablename__ = "authors"

    id = Column(String(ID_LENGTH), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False, index=True)
    bio = Column(Text, nullable=True)
    birth_date = Column(Date, nullable=True)
    nationality = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    books = relationship("Book", back_populates="author", order_by="Book.title")


class Book(Base):
    __tablename__ = "books"

    id = Column(String(ID_LENGTH), primary_key=True, default=new_id)
    title = Column(String(300), nullable=False, index=True)
    author_id = Column(String(ID_LENGTH), ForeignKey("authors.id"), nullable=False, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    copies_available = Column(Integer, nullable=False, default=1)
    total_copies = Column(Integer, nullable=False, default=1)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    author = relationship("Author", back_populates="books")
    borrowers = relationship("User", secondary=borrows, back_populates="borrowed_books")

    # Every UPDATE carries "WHERE version = <seen>" and bumps it; a concurrent
    # writer turns the flush into StaleDataError.
    __mapper_args__ = {"version_id_col": version}
