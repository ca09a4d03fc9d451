"""
Service category tree

Three levels: root category -> sub category -> service type. Every node is
identified by its hierarchy code (hcode), the dot-joined chain of partner ids
from the root down, e.g. "12.7.3".
"""
from typing import List, Optional
from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from artisan_sync.models.base import Base

HCODE_SEPARATOR = "."


def build_hcode(parent_hcode: Optional[str], segment) -> str:
    """Append one partner id to a parent's hcode (or start a root hcode)"""
    segment = str(segment).strip()
    if not parent_hcode:
        return segment
    return f"{parent_hcode}{HCODE_SEPARATOR}{segment}"


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    hcode = Column(String, unique=True, index=True, nullable=False)  # Hierarchy code Ex: A.B.C

    parent = relationship("Category", remote_side=[id], back_populates="subcategories")
    subcategories = relationship("Category", back_populates="parent")

    @property
    def segments(self) -> List[str]:
        return self.hcode.split(HCODE_SEPARATOR)

    @property
    def depth(self) -> int:
        return len(self.segments)

    def __repr__(self):
        return f"<Category {self.hcode} {self.name}>"
