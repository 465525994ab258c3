from sqlalchemy import Column, String, Boolean, Integer, JSON, DateTime
from .database import Base


class StringModel(Base):
    __tablename__ = "strings"

    id = Column(String, primary_key=True, index=True)
    # insertion order of the collection
    position = Column(Integer, nullable=False, index=True)
    value = Column(String, unique=True, nullable=False)
    length = Column(Integer, nullable=False)
    is_palindrome = Column(Boolean, nullable=False)
    unique_characters = Column(Integer, nullable=False)
    word_count = Column(Integer, nullable=False)
    character_frequency_map = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
