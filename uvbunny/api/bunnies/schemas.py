# uvbunny/api/bunnies/schemas.py
from marshmallow import Schema, fields, validate, pre_load

from uvbunny.core.constants import (
    BUNNY_COLORS,
    BUNNY_NAME_MAX_LENGTH,
    EVENTS_PAGE_SIZE,
    MAX_EVENTS_PAGE_SIZE,
    MIN_CARROTS_PER_EVENT,
    MAX_CARROTS_PER_EVENT,
    EVENT_SOURCES,
)


class BunnyCreateSchema(Schema):
    """POST /api/bunnies/ request body."""
    name = fields.Str(required=True, validate=validate.Length(
        min=1, max=BUNNY_NAME_MAX_LENGTH, error=f"Name must be 1-{BUNNY_NAME_MAX_LENGTH} characters."))
    colorClass = fields.Str(required=False, allow_none=True, validate=validate.OneOf(BUNNY_COLORS))

    @pre_load
    def strip_name(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get('name'), str):
            data = dict(data)
            data['name'] = data['name'].strip()
        return data


class GiveCarrotsSchema(Schema):
    """POST /api/bunnies/<bunny_id>/carrots request body."""
    carrots = fields.Int(required=True, strict=True, validate=validate.Range(
        min=MIN_CARROTS_PER_EVENT, max=MAX_CARROTS_PER_EVENT,
        error=f"carrots must be between {MIN_CARROTS_PER_EVENT} and {MAX_CARROTS_PER_EVENT}."))
    notes = fields.Str(required=False, allow_none=True, validate=validate.Length(max=500))


class EventsQuerySchema(Schema):
    """GET /api/bunnies/<bunny_id>/events query parameters."""
    cursor = fields.Str()
    limit = fields.Int(validate=validate.Range(min=1, max=MAX_EVENTS_PAGE_SIZE), load_default=EVENTS_PAGE_SIZE)


class BunnyResponseSchema(Schema):
    """A bunny with its derived happiness fields."""
    id = fields.Str(dump_only=True)
    name = fields.Str()
    colorClass = fields.Str()
    eventCount = fields.Int()
    createdAt = fields.DateTime()
    happiness = fields.Int()
    mood = fields.Str()
    progressBarPercent = fields.Int()


class BunnyListResponseSchema(Schema):
    bunnies = fields.List(fields.Nested(BunnyResponseSchema), dump_default=[])
    averageHappiness = fields.Int(dump_default=0)


class CarrotEventResponseSchema(Schema):
    id = fields.Str(attribute='event_id')
    type = fields.Str()
    carrots = fields.Int()
    createdAt = fields.DateTime(attribute='created_at')
    source = fields.Str(allow_none=True, validate=validate.OneOf(EVENT_SOURCES))
    notes = fields.Str(allow_none=True)


class EventsPageResponseSchema(Schema):
    events = fields.List(fields.Nested(CarrotEventResponseSchema), dump_default=[])
    next_cursor = fields.Str(allow_none=True)
