from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from stockcheck.core.config import settings

engine_kwargs: dict[str, object] = {
    # Detect and recover from stale pooled connections.
    "pool_pre_ping": True,
}

if settings.database_url.lower().startswith("sqlite"):
    # Multi-product checks read from worker threads.
    engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    # Pool must cover the multi-product fan-out on top of regular request traffic.
    engine_kwargs.update(
        {
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
            "pool_timeout": settings.db_pool_timeout_seconds,
            "pool_recycle": settings.db_pool_recycle_seconds,
        }
    )

engine = create_engine(settings.database_url, **engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
