from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from fastapi import Request

# ベースクラス
Base = declarative_base()


def create_session_factory(database_url: str):
    """接続URLからエンジンとセッションファクトリを作成"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    # SQLAlchemyエンジンの作成
    engine = create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)
    return engine, sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    """リクエストごとのセッションを払い出す（dependency injection用）"""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
