from tradebook.core.database.session import async_session, engine, get_db
from tradebook.core.database.base import Base, BaseModel, BigIntPK, Amount

__all__ = ["async_session", "engine", "get_db", "Base", "BaseModel", "BigIntPK", "Amount"]
