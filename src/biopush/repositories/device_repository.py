import uuid
from typing import Dict, Any, List, Optional
from datetime import datetime, timezone
from biopush.models.device import Device, DeviceStatus
from biopush.database.connection import db_manager

DEVICE_SELECT = '''
    SELECT d.*, o.full_name AS organization_full_name, o.short_name AS organization_short_name
    FROM biometric_devices d
    LEFT JOIN organizations o ON o.id = d.organization_id
'''


def utc_now_iso() -> str:
    """Current UTC time in the format stored in last_seen"""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class DeviceRepository:
    """Biometric device database operations"""

    def create(self, device: Device) -> Device:
        """Create new device, normalizing the serial number to lowercase"""
        device_id = device.id or str(uuid.uuid4())

        query = '''
            INSERT INTO biometric_devices (
                id, sn, name, location_name, organization_id, status, last_seen, ip_address, port
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        '''

        db_manager.execute_query(query, (
            device_id, device.sn.strip().lower(), device.name, device.location_name,
            device.organization_id, device.status, device.last_seen, device.ip_address, device.port
        ))

        return self.get_by_id(device_id)

    def get_by_id(self, device_id: str) -> Optional[Device]:
        """Get device by ID"""
        row = db_manager.fetch_one(f"{DEVICE_SELECT} WHERE d.id = ?", (device_id,))
        return self._row_to_device(row) if row else None

    def get_all(self) -> List[Device]:
        """Get all devices ordered by name"""
        rows = db_manager.fetch_all(f"{DEVICE_SELECT} ORDER BY d.name")
        return [self._row_to_device(row) for row in rows]

    def get_by_serial_number(self, serial_number: str) -> Optional[Device]:
        """Get device by serial number (case-insensitive) with organization names joined"""
        row = db_manager.fetch_one(
            f"{DEVICE_SELECT} WHERE LOWER(d.sn) = LOWER(?)", (serial_number,)
        )
        return self._row_to_device(row) if row else None

    def update(self, device_id: str, updates: Dict[str, Any]) -> bool:
        """Update device"""
        if updates.get('sn'):
            updates['sn'] = updates['sn'].strip().lower()

        updates['updated_at'] = datetime.now()

        set_clause = ', '.join([f"{key} = ?" for key in updates.keys()])
        query = f"UPDATE biometric_devices SET {set_clause} WHERE id = ?"

        cursor = db_manager.execute_query(query, (*updates.values(), device_id))
        return cursor.rowcount > 0

    def delete(self, device_id: str) -> bool:
        """Delete device"""
        cursor = db_manager.execute_query("DELETE FROM biometric_devices WHERE id = ?", (device_id,))
        return cursor.rowcount > 0

    def touch_by_serial_number(self, serial_number: str) -> int:
        """Mark device online and refresh last_seen; returns affected row count"""
        cursor = db_manager.execute_query(
            "UPDATE biometric_devices SET last_seen = ?, status = ? WHERE LOWER(sn) = LOWER(?)",
            (utc_now_iso(), DeviceStatus.ONLINE, serial_number)
        )
        return cursor.rowcount

    def touch(self, device_id: str) -> bool:
        """Mark device online and refresh last_seen by ID"""
        cursor = db_manager.execute_query(
            "UPDATE biometric_devices SET last_seen = ?, status = ? WHERE id = ?",
            (utc_now_iso(), DeviceStatus.ONLINE, device_id)
        )
        return cursor.rowcount > 0

    def mark_stale_offline(self, cutoff_iso: str) -> int:
        """Flip online devices not seen since cutoff to offline"""
        cursor = db_manager.execute_query(
            '''
                UPDATE biometric_devices SET status = ?
                WHERE status = ? AND (last_seen IS NULL OR last_seen < ?)
            ''',
            (DeviceStatus.OFFLINE, DeviceStatus.ONLINE, cutoff_iso)
        )
        return cursor.rowcount

    def _row_to_device(self, row) -> Device:
        """Convert database row to Device object"""
        return Device(
            id=row['id'],
            sn=row['sn'],
            name=row['name'],
            location_name=row['location_name'],
            organization_id=row['organization_id'],
            status=row['status'],
            last_seen=row['last_seen'],
            ip_address=row['ip_address'],
            port=row['port'],
            organization_full_name=row['organization_full_name'],
            organization_short_name=row['organization_short_name'],
            created_at=row['created_at'],
            updated_at=row['updated_at']
        )
