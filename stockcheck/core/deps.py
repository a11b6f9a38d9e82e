from fastapi import Depends
from sqlalchemy.orm import sessionmaker

from stockcheck.db.session import SessionLocal
from stockcheck.services.stock_record_source import SqlAlchemyStockRecordSource, StockRecordSource


def get_session_factory() -> sessionmaker:
    return SessionLocal


def get_stock_record_source(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> StockRecordSource:
    # Each lookup opens its own session, so one source can serve the whole fan-out.
    return SqlAlchemyStockRecordSource(session_factory)
