"""Mapped classes used by the test suite."""

from typing import List, Optional

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from genrepo.models import Base, BaseModel


class Category(BaseModel, Base):
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    widgets: Mapped[List["Widget"]] = relationship(back_populates="category")


class Widget(BaseModel, Base):
    __tablename__ = "widgets"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    note: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    category_id: Mapped[Optional[int]] = mapped_column(ForeignKey("categories.id"), nullable=True)

    category: Mapped[Optional[Category]] = relationship(back_populates="widgets")

    def __repr__(self) -> str:
        return f"<Widget(id={self.id}, name='{self.name}', quantity={self.quantity})>"


class Pairing(Base):
    """Composite primary key; not manageable by MainRepository."""

    __tablename__ = "pairings"

    left_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    right_id: Mapped[int] = mapped_column(Integer, primary_key=True)
