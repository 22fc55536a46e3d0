from sqlalchemy import Column, Integer, String, DateTime, func

from phrasecoach.core.db import Base

DEFAULT_CATEGORY_ICON = "📝"
DEFAULT_CATEGORY_COLOR = "from-blue-500 to-purple-500"


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), nullable=False)
    icon = Column(String(32), nullable=False, default=DEFAULT_CATEGORY_ICON)
    color = Column(String(64), nullable=False, default=DEFAULT_CATEGORY_COLOR)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Category id={self.id} name={self.name}>"
