from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class ConversionRecord(SQLModel, table=True):
    __tablename__ = "conversions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    filename: str = Field(max_length=1024)
    converted_at: datetime
