"""
Report SQLAlchemy model.
"""
import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, Date, DateTime, Index, Integer, String, Text, Uuid

from carbonnet.database import Base


class ReportDBModel(Base):
    """
    A generated (or failed) report.

    Status moves pending -> processing -> completed | failed. The artifact
    lives in report storage under file_name.
    """

    __tablename__ = "reports"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    title = Column(String(200), nullable=False)
    type = Column(String(30), nullable=False)
    format = Column(String(10), nullable=False)

    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)

    scope = Column(String(20), nullable=False, default="individual")
    user_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    institution_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    department = Column(String(100), nullable=True)

    status = Column(String(20), nullable=False, default="pending", index=True)

    data = Column(JSON, nullable=True, comment="Aggregated report payload")
    statistics = Column(JSON, nullable=True)

    file_name = Column(String(255), nullable=True)
    file_path = Column(String(500), nullable=True)
    file_size = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)

    generated_by = Column(Uuid(as_uuid=True), nullable=False)
    download_count = Column(Integer, nullable=False, default=0)
    last_downloaded = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_reports_generated_by_created", "generated_by", "created_at"),
        {"comment": "Generated emission reports"},
    )

    def __repr__(self):
        return f"<ReportDBModel: {self.title} ({self.status})>"
