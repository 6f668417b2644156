"""Supabase repository for audit events."""

from dataclasses import dataclass

from supabase import Client

from calorie_assistant.services.audit import AuditRepository


@dataclass
class SupabaseAuditRepository(AuditRepository):
    """Supabase-backed audit repository."""

    client: Client

    def create_event(
        self,
        action: str,
        resource_type: str,
        description: str,
        status: str,
    ) -> None:
        """Create an audit event row."""
        self.client.table("audit_logs").insert(
            {
                "action": action,
                "resource_type": resource_type,
                "description": description,
                "status": status,
            }
        ).execute()
