from src.core.database.session import Database, get_db
from src.core.database.base import Base, BigIntPK

__all__ = ["Database", "get_db", "Base", "BigIntPK"]
