"""
数据库配置 - SQLAlchemy 持久化层
领域逻辑只通过 repositories 访问数据库
"""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from motel.config import settings

Base = declarative_base()


def create_db_engine(url: str) -> Engine:
    """创建引擎（SQLite 允许跨线程使用连接，供事件处理线程与 worker 共享）"""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


engine = create_db_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = None):
    """初始化数据库表"""
    from motel.models import ontology  # noqa
    Base.metadata.create_all(bind=bind or engine)
