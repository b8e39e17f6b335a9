from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine


def build_engine(database_url: str, echo: bool = False) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(database_url, echo=echo, connect_args=connect_args)


def init_db(engine: Engine) -> None:
    # Se till att modellerna är registrerade innan create_all
    from src.server.models import QuotationRow  # noqa: F401
    SQLModel.metadata.create_all(engine)
