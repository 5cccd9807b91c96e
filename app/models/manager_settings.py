from sqlalchemy import Column, Integer, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class ManagerSettingsRecord(Base):
    """
    Persisted form of app.schemas.settings.ManagerSettings, one row per organization.
    The whole value object is stored as JSON and always read/written through the schema.
    """
    __tablename__ = "manager_settings"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), unique=True, nullable=False)
    data = Column(JSON, default=dict, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    organization = relationship("Organization", back_populates="manager_settings")
