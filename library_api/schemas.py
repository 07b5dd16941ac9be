# library_api/schemas.py
from datetime import date, datetime
from typing import Annotated, ClassVar, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator, model_validator

from .models import ID_PATTERN, Gender, Role

T = TypeVar("T")

EntityId = Annotated[str, Field(pattern=ID_PATTERN, examples=["5f0c1e9a2b3d4c5e6f708192a3b4c5d6"])]

# Surrounding whitespace is dropped before the length check
PersonName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]
AuthorName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=300)]


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


def _ids(items):
    return [getattr(item, "id", item) for item in items or []]


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid")


class _PartialUpdate(_Strict):
    """Update payloads must carry at least one field, and fields backed by
    non-nullable columns may be omitted but not sent as null."""

    _not_null: ClassVar[tuple] = ()

    @model_validator(mode="after")
    def check_fields(self):
        if not self.model_fields_set:
            raise ValueError("at least one field must be provided")
        for name in self._not_null:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} may not be null")
        return self


# --- Users ---------------------------------------------------------------

class UserRegister(_Strict):
    first_name: PersonName
    last_name: PersonName
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)


class UserLogin(_Strict):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)


class UserCreate(UserRegister):
    role: Role = Role.ORDINARY


class UserUpdate(_PartialUpdate):
    _not_null: ClassVar[tuple] = ("first_name", "last_name", "email", "password", "role")

    first_name: Optional[PersonName] = None
    last_name: Optional[PersonName] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=72)
    role: Optional[Role] = None


class UserSelfUpdate(_PartialUpdate):
    _not_null: ClassVar[tuple] = ("first_name", "last_name", "email", "password")

    first_name: Optional[PersonName] = None
    last_name: Optional[PersonName] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=72)
    phone_number: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = Field(None, max_length=500)
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    language: Optional[str] = Field(None, max_length=50)
    country: Optional[str] = Field(None, max_length=100)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    email: str
    role: Role
    phone_number: Optional[str] = None
    address: Optional[str] = None
    bio: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    language: Optional[str] = None
    country: Optional[str] = None
    borrowed_books: List[str] = []
    created_at: datetime
    updated_at: datetime

    @field_validator("borrowed_books", mode="before")
    @classmethod
    def borrowed_book_ids(cls, value):
        return _ids(value)


class AuthToken(BaseModel):
    id: str
    name: str
    email: str
    access_token: str
    token_type: str = "bearer"


# --- Authors -------------------------------------------------------------

class AuthorCreate(_Strict):
    name: AuthorName
    bio: Optional[str] = Field(None, max_length=1000)
    birth_date: Optional[date] = None
    nationality: Optional[str] = Field(None, max_length=100)
    books: Optional[List[EntityId]] = None


class AuthorUpdate(_PartialUpdate):
    _not_null: ClassVar[tuple] = ("name",)

    name: Optional[AuthorName] = None
    bio: Optional[str] = Field(None, max_length=1000)
    birth_date: Optional[date] = None
    nationality: Optional[str] = Field(None, max_length=100)
    books: Optional[List[EntityId]] = None


class BookBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str


class AuthorBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class AuthorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    bio: Optional[str] = None
    birth_date: Optional[date] = None
    nationality: Optional[str] = None
    books: List[BookBrief] = []
    created_at: datetime
    updated_at: datetime


# --- Books ---------------------------------------------------------------

class BookCreate(_Strict):
    title: Title
    author: EntityId
    description: Optional[str] = Field(None, max_length=1000)
    category: Optional[str] = Field(None, max_length=100)
    copies_available: int = Field(1, ge=0)


class BookUpdate(_PartialUpdate):
    _not_null: ClassVar[tuple] = ("title", "author", "copies_available")

    title: Optional[Title] = None
    author: Optional[EntityId] = None
    description: Optional[str] = Field(None, max_length=1000)
    category: Optional[str] = Field(None, max_length=100)
    copies_available: Optional[int] = Field(None, ge=0)


class BookResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    author: AuthorBrief
    description: Optional[str] = None
    category: Optional[str] = None
    copies_available: int
    total_copies: int
    borrowers: List[str] = []
    created_at: datetime
    updated_at: datetime

    @field_validator("borrowers", mode="before")
    @classmethod
    def borrower_ids(cls, value):
        return _ids(value)
