from collections.abc import Generator

from fastapi import Request
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


# 所有模型繼承同一個基底(這個Base class)
# 透過Base.metadata.create_all()或Alembic migration建立資料表
class Base(DeclarativeBase):
    pass


class Database:
    """
    Owns the engine and session factory for one application instance.

    Opened by the application lifespan and disposed at shutdown.
    """

    def __init__(self, url: str, echo: bool = False):
        connect_args = {}
        if url.startswith("sqlite"):
            # FastAPI runs sync dependencies in a threadpool
            connect_args["check_same_thread"] = False

        self.url = url
        self.engine: Engine = create_engine(url, echo=echo, connect_args=connect_args)
        # autocommit=False：不自動提交，需手動呼叫db.commit()
        # autoflush=False：不自動將暫存的變更送出到資料庫
        self.session_factory = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False
        )

    def session(self) -> Session:
        return self.session_factory()

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Generator[Session, None, None]:
    database: Database = request.app.state.database
    db = database.session()
    try:
        # yield 讓 FastAPI 能夠：
        #   1. 在請求開始時取得資料庫連線
        #   2. 執行完 API 邏輯後
        #   3. 自動執行 finally 區塊清理資源
        yield db
    finally:
        db.close()
