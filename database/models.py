"""
SQLAlchemy ORM models for the credential store.

Mirrors ``users(id, name, email UNIQUE, password, role_id)``; migrations are
managed outside this service.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column("password", String(255), nullable=False)
    role_id = Column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role_id={self.role_id}>"
