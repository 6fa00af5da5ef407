from sqlalchemy import Column, String, DateTime, ForeignKey, Table, event
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from product_catalog.database import Base


class RoleName(str, enum.Enum):
    """Permission groups a user can belong to."""
    READER = "Reader"
    WRITER = "Writer"


# Fixed identifiers so every environment agrees on the seeded rows
READER_ROLE_ID = "1f186b3b-d8eb-4ac4-8f60-54ae0a4a293b"
WRITER_ROLE_ID = "8382f762-af51-4a2b-bb87-c30af3555ca6"

# Keyed by column name, as insert() on the table expects
SEEDED_ROLES = [
    {"Id": READER_ROLE_ID, "Name": RoleName.READER.value, "NormalizedName": RoleName.READER.value.upper()},
    {"Id": WRITER_ROLE_ID, "Name": RoleName.WRITER.value, "NormalizedName": RoleName.WRITER.value.upper()},
]


user_roles = Table(
    "UserRoles",
    Base.metadata,
    Column("UserId", String(36), ForeignKey("Users.Id", ondelete="CASCADE"), primary_key=True),
    Column("RoleId", String(36), ForeignKey("Roles.Id", ondelete="CASCADE"), primary_key=True),
)


class Role(Base):
    """
    Role reference data. Rows are seeded when the table is created
    and never written by the application afterwards.
    """
    __tablename__ = "Roles"

    id = Column("Id", String(36), primary_key=True)
    name = Column("Name", String(256), nullable=False, unique=True)
    normalized_name = Column("NormalizedName", String(256), nullable=False, unique=True)

    def __repr__(self):
        return f"<Role(id={self.id}, name='{self.name}')>"


class User(Base):
    """
    User account.

    Attributes:
        id: UUID string
        username: Login name
        email: Email address (registration stores the username here too)
        password_hash: werkzeug password hash
        roles: Role memberships
    """
    __tablename__ = "Users"

    id = Column("Id", String(36), primary_key=True)
    username = Column("UserName", String(256), nullable=False, unique=True, index=True)
    email = Column("Email", String(256), nullable=False, unique=True, index=True)
    password_hash = Column("PasswordHash", String(256), nullable=False)
    created_at = Column("CreatedAt", DateTime(timezone=True), server_default=func.now())

    roles = relationship("Role", secondary=user_roles, lazy="selectin")

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"


@event.listens_for(Role.__table__, "after_create")
def seed_roles(target, connection, **kw):
    connection.execute(target.insert(), SEEDED_ROLES)
