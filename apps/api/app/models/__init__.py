# Import all models so alembic autogenerate can discover them
from app.models.base import Base
from app.models.comment import Comment
from app.models.research import Research

__all__ = ["Base", "Comment", "Research"]
