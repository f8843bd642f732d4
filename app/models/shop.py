"""ORM model for installed shops and their Admin API tokens."""

from sqlalchemy import Column, DateTime, String, Text, func

from app.models.base import Base


class Shop(Base):
    """
    A registered Shopify shop.

    access_token is the offline Admin API token used for catalog reads and
    product updates; it is never returned by the API or logged.
    """

    __tablename__ = "shops"

    domain = Column(String(255), primary_key=True)
    access_token = Column(Text, nullable=False)
    plan = Column(String(64), nullable=True)
    country = Column(String(8), nullable=True)
    currency = Column(String(8), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
