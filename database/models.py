"""
Data models for the quote sync system.
Quote domain entity and the key-value storage table.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Quote:
    """语录实体，text 为语义主键"""
    text: str
    category: str

    def to_dict(self) -> Dict[str, str]:
        return {'text': self.text, 'category': self.category}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Quote":
        return cls(text=data['text'], category=data['category'])


class KeyValueEntryDB(Base):
    """键值存储表，值为不透明字符串"""
    __tablename__ = 'kv_entries'

    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<KeyValueEntryDB(key='{self.key}', size={len(self.value or '')})>"


# 内置默认语录，本地存储为空时使用
DEFAULT_QUOTES = (
    Quote("Life is what happens when you're busy making other plans.", "Life"),
    Quote("The only limit to our realization of tomorrow is our doubts of today.", "Motivation"),
    Quote("In the middle of every difficulty lies opportunity.", "Inspiration"),
)
