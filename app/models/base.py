"""SQLAlchemy declarative Base shared by the shop, scan, result, history and schedule models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
