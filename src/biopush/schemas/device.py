create_schema = {
    "type": "object",
    "properties": {
        "sn": {"type": "string", "minLength": 1},
        "name": {"type": "string", "minLength": 1},
        "location_name": {"type": ["string", "null"]},
        "organization_id": {"type": ["string", "null"]},
        "ip_address": {"type": ["string", "null"]},
        "port": {"type": ["integer", "null"], "minimum": 0, "maximum": 65535},
    },
    "required": ["sn", "name"],
    "additionalProperties": False,
}

update_schema = {
    "type": "object",
    "properties": create_schema["properties"],
    "minProperties": 1,
    "additionalProperties": False,
}
