create_schema = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "full_name": {"type": "string", "minLength": 1},
        "short_name": {"type": ["string", "null"]},
    },
    "required": ["full_name"],
    "additionalProperties": False,
}
