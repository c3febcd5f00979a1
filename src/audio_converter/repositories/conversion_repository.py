"""Repository for conversion record persistence."""

import asyncio
import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from audio_converter.db_models import ConversionRecord
from audio_converter.exceptions import PersistenceUnavailableError
from audio_converter.infrastructure.interfaces import MetadataStore

logger = logging.getLogger(__name__)


class ConversionRepository(MetadataStore):
    """
    Handles database operations for conversion records.

    The engine is created once in init() and shared by every request;
    blocking calls are pushed onto a worker thread so the event loop keeps
    serving other conversions.
    """

    def __init__(self, url: str):
        self._url = url
        self._engine: Engine | None = None

    def init(self) -> None:
        connect_args = {}
        if self._url.startswith("sqlite"):
            # Records are written from worker threads.
            connect_args["check_same_thread"] = False
        self._engine = create_engine(
            self._url, pool_pre_ping=True, connect_args=connect_args
        )
        SQLModel.metadata.create_all(self._engine)
        logger.info("Metadata store initialized", extra={"dialect": self._engine.name})

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Metadata store closed")

    async def record(self, filename: str, converted_at: datetime) -> str:
        try:
            return await asyncio.to_thread(self._insert, filename, converted_at)
        except Exception as e:
            logger.exception(
                "Failed to record conversion",
                extra={"file_name": filename},
            )
            raise PersistenceUnavailableError(filename, cause=e) from e

    def get(self, record_id: str) -> ConversionRecord | None:
        """Returns a stored record, or None when it does not exist."""
        with Session(self._require_engine()) as db_session:
            return db_session.get(ConversionRecord, UUID(record_id))

    def _insert(self, filename: str, converted_at: datetime) -> str:
        record = ConversionRecord(filename=filename, converted_at=converted_at)
        with Session(self._require_engine()) as db_session:
            db_session.add(record)
            db_session.commit()
            db_session.refresh(record)
            record_id = str(record.id)

        logger.info(
            "Conversion recorded",
            extra={"record_id": record_id, "file_name": filename},
        )
        return record_id

    def _require_engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Metadata store is not initialized")
        return self._engine
