"""
Session maker used by the test factories.
"""
from carbonnet.database.session_manager.db_session import Database


class LazySessionMaker:
    """
    Resolves ``Database``'s session maker at call time.

    The factories are imported before conftest runs ``Database.init()``, so
    the maker cannot be bound at import.
    """

    def __call__(self):
        session_maker = Database._async_session_maker
        if session_maker is None:
            raise RuntimeError("Database.init() must run before factories create rows")
        return session_maker()


async_session = LazySessionMaker()
