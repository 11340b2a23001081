import os


class Settings:
    PROJECT_NAME: str = "lingoquiz"
    DEBUG: bool = os.environ.get("LINGOQUIZ_DEBUG", "false").lower() == "true"
    LOG_DIR: str = os.environ.get("LINGOQUIZ_LOG_DIR", "log")
    LOG_FILE: str = "lingoquiz.log"
    DB_DIR: str = os.environ.get("LINGOQUIZ_DB_DIR", "db")
    DB_FILE: str = os.environ.get("LINGOQUIZ_DB_FILE", "lingoquiz.db")
    SESSION_COOKIE_NAME: str = "lingoquiz_user_id"
    MIN_VOCABULARY_ENTRIES: int = 4
    MAX_QUESTION_COUNT: int = 100
    DISTRACTOR_COUNT: int = 3
    MAX_IMPORT_ENTRIES: int = 1000
    DEFAULT_PAGE_SIZE: int = 50
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")


settings = Settings()
