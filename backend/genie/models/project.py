from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from genie.core.database import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True, index=True)
    theme = Column(String, nullable=False)
    # ProjectData serialised with model_dump(mode="json")
    data = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
