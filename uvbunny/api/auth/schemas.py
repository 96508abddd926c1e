# uvbunny/api/auth/schemas.py
from marshmallow import Schema, fields, validate


class SessionCreateSchema(Schema):
    """POST /api/auth/session: a Firebase ID token from the client SDK."""
    id_token = fields.Str(required=True, validate=validate.Length(min=1),
                          error_messages={"required": "A Firebase ID token (id_token) is required."})
