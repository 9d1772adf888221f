from biopush.schemas.device import create_schema as create_device_schema
from biopush.schemas.device import update_schema as update_device_schema
from biopush.schemas.organization import create_schema as create_organization_schema

def validate_data(data, schema):
    """Simple validation function"""
    from jsonschema import validate as jsonschema_validate
    from jsonschema.exceptions import ValidationError
    try:
        jsonschema_validate(instance=data, schema=schema)
        return True, None
    except ValidationError as e:
        return False, e.message

__all__ = [
    'create_device_schema',
    'update_device_schema',
    'create_organization_schema',
    'validate_data',
]
