from sqlalchemy import Column, Integer, String, ForeignKey, Text
from sqlalchemy.orm import relationship

from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    nickname = Column(String(100), unique=True, nullable=False, index=True)

    categories = relationship("Category", back_populates="user", order_by="Category.id")


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    color = Column(String(20), nullable=False)  # hex color for the clock face and summary
    description = Column(Text, nullable=True)

    user = relationship("User", back_populates="categories")
    # no cascade: a category cannot be deleted while activities reference it
    activities = relationship("Activity", back_populates="category")


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    start_hour = Column(Integer, nullable=False)  # 0-23
    end_hour = Column(Integer, nullable=False)  # 1-24, exclusive
    notes = Column(Text, nullable=True)
    title = Column(String(200), nullable=False, default="Activity")

    category = relationship("Category", back_populates="activities")
