from .database import Database

database = Database.from_settings()
