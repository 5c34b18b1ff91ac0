"""
Error Log Model

Credits that fail on an unexpected condition (a missing profile for an
authenticated user, a broken ledger write) land here with their context.
"""

from sqlalchemy import Column, String, Text, JSON, DateTime, Uuid

from ecoscan.models.base import BaseModel, utcnow


class ErrorLog(BaseModel):
    """One logged error with its user, request and scan context."""
    __tablename__ = "error_logs"

    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    error_type = Column(String(255), nullable=False, index=True)  # e.g. "ProfileNotFound"
    error_code = Column(String(50), nullable=True)  # domain code or HTTP status
    severity = Column(String(20), default="error", nullable=False)
    location = Column(String(255), nullable=True)  # file:function:line

    # Nullable for unauthenticated requests
    user_id = Column(Uuid(as_uuid=True), nullable=True, index=True)

    request_method = Column(String(10), nullable=True)
    request_path = Column(String(500), nullable=True)
    client_ip = Column(String(50), nullable=True)

    message = Column(Text, nullable=False)
    stack_trace = Column(Text, nullable=True)
    context_data = Column(JSON, nullable=True)  # barcode, product, scan source...

    def __repr__(self):
        return f"<ErrorLog({self.error_type} at {self.timestamp}: {self.message[:40]})>"
