import logging

from .database import Database


class SQLiteHandler(logging.Handler):
    """
    A logging handler that writes log records to the ``logs`` table.
    """

    def __init__(self, database: Database, level=logging.WARNING):
        super().__init__(level)
        self.database = database

    def emit(self, record):
        try:
            with self.database.transaction() as conn:
                conn.execute(
                    "INSERT INTO logs (level, message) VALUES (?, ?)",
                    (record.levelname, self.format(record)),
                )
        except Exception:
            self.handleError(record)
