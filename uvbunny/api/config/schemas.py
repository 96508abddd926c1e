# uvbunny/api/config/schemas.py
from marshmallow import Schema, fields, validate, validates_schema, ValidationError

from uvbunny.core.constants import (
    MIN_POINTS_PER_CARROT,
    MAX_POINTS_PER_CARROT,
    MIN_THRESHOLD,
    MAX_THRESHOLD,
)


class ConfigUpdateSchema(Schema):
    """
    PATCH /api/config request body. Every field is optional; at least one is required.
    Cross-checks against the stored thresholds happen in ConfigService.update_config.
    """
    pointsPerCarrot = fields.Int(strict=True, validate=validate.Range(min=MIN_POINTS_PER_CARROT, max=MAX_POINTS_PER_CARROT))
    maxHappinessPoints = fields.Int(strict=True, validate=validate.Range(min=1))
    moodSadThreshold = fields.Int(strict=True, validate=validate.Range(min=MIN_THRESHOLD, max=MAX_THRESHOLD))
    moodAverageThreshold = fields.Int(strict=True, validate=validate.Range(min=MIN_THRESHOLD, max=MAX_THRESHOLD))

    @validates_schema
    def validate_thresholds(self, data, **kwargs):
        if not data:
            raise ValidationError("At least one config field is required.")
        sad = data.get('moodSadThreshold')
        average = data.get('moodAverageThreshold')
        if sad is not None and average is not None and sad >= average:
            raise ValidationError("moodSadThreshold must be lower than moodAverageThreshold.", 'moodSadThreshold')


class ConfigResponseSchema(Schema):
    pointsPerCarrot = fields.Int()
    maxHappinessPoints = fields.Int(allow_none=True)
    effectiveMaxHappinessPoints = fields.Int()
    moodSadThreshold = fields.Int()
    moodAverageThreshold = fields.Int()
    updatedAt = fields.DateTime()
