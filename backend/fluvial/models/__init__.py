from .directory import Base, Sector, User  # noqa: F401
from .requisition import Requisition, StatusLogEntry, SignatureRecord, ValidationRecord  # noqa: F401

__all__ = ['Base', 'Sector', 'User', 'Requisition', 'StatusLogEntry', 'SignatureRecord', 'ValidationRecord']
