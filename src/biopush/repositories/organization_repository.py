import uuid
from typing import List, Optional
from biopush.models.organization import Organization
from biopush.database.connection import db_manager


class OrganizationRepository:
    """Organization database operations"""

    def create(self, organization: Organization) -> Organization:
        organization_id = organization.id or str(uuid.uuid4())
        db_manager.execute_query(
            "INSERT INTO organizations (id, full_name, short_name) VALUES (?, ?, ?)",
            (organization_id, organization.full_name, organization.short_name)
        )
        return self.get_by_id(organization_id)

    def get_by_id(self, organization_id: str) -> Optional[Organization]:
        row = db_manager.fetch_one("SELECT * FROM organizations WHERE id = ?", (organization_id,))
        return self._row_to_organization(row) if row else None

    def get_all(self) -> List[Organization]:
        rows = db_manager.fetch_all("SELECT * FROM organizations ORDER BY full_name")
        return [self._row_to_organization(row) for row in rows]

    def _row_to_organization(self, row) -> Organization:
        return Organization(id=row['id'], full_name=row['full_name'], short_name=row['short_name'])
