"""Audit logging package."""

from financehub.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
