# salah_times/schemas.py

from marshmallow import Schema, fields, validate

from .services.helpers.constants import CALCULATION_METHODS, SCHOOLS

METHOD_IDS = list(CALCULATION_METHODS.keys())
SCHOOL_IDS = list(SCHOOLS.keys())
# Client calendar day, same form as the provider path (DD-MM-YYYY)
CIVIL_DATE_FORMAT = "%d-%m-%Y"

# --- Argument Schemas ---

class PrayerTimesArgsSchema(Schema):
    """Query parameters for the one-shot prayer times lookup. Missing lat/lon means geolocation was unavailable."""
    lat = fields.Float()
    lon = fields.Float()
    method = fields.Int(validate=validate.OneOf(METHOD_IDS))
    school = fields.Int(validate=validate.OneOf(SCHOOL_IDS))
    date = fields.Date(format=CIVIL_DATE_FORMAT)

class SessionCreateSchema(Schema):
    latitude = fields.Float(allow_none=True)
    longitude = fields.Float(allow_none=True)
    method = fields.Int(validate=validate.OneOf(METHOD_IDS))
    school = fields.Int(validate=validate.OneOf(SCHOOL_IDS))
    date = fields.Date(format=CIVIL_DATE_FORMAT)

class SettingsUpdateSchema(Schema):
    """Omitted values keep the session's current selection."""
    method = fields.Int(validate=validate.OneOf(METHOD_IDS))
    school = fields.Int(validate=validate.OneOf(SCHOOL_IDS))

# --- Response Schemas ---

class MessageSchema(Schema):
    message = fields.Str(required=True)

class LocationSchema(Schema):
    latitude = fields.Float(required=True)
    longitude = fields.Float(required=True)
    label = fields.Str(required=True)

class TimingEntrySchema(Schema):
    key = fields.Str(required=True)
    name = fields.Str(required=True)
    arabic = fields.Str(required=True)
    time = fields.Str(required=True)
    time24 = fields.Str(required=True)

class ScheduleSchema(Schema):
    timings = fields.List(fields.Nested(TimingEntrySchema), required=True)
    civilDate = fields.Str(required=True)
    readableDate = fields.Str()
    timezone = fields.Str()
    hijriDate = fields.Str(required=True)
    qiblaBearingDegrees = fields.Float(required=True)
    location = fields.Nested(LocationSchema, required=True)

class NextPrayerSchema(Schema):
    name = fields.Str(required=True)
    arabic = fields.Str(required=True)
    time = fields.Str(required=True)
    time24 = fields.Str(required=True)
    remaining = fields.Str(required=True)

class SettingsSchema(Schema):
    method = fields.Int(required=True)
    school = fields.Int(required=True)

class PrayerTimesResponseSchema(Schema):
    schedule = fields.Nested(ScheduleSchema, required=True)
    nextPrayer = fields.Nested(NextPrayerSchema, required=True)
    settings = fields.Nested(SettingsSchema, required=True)
    warnings = fields.List(fields.Str())

class SessionSchema(Schema):
    sessionId = fields.Str(required=True)
    state = fields.Str(required=True)
    generation = fields.Int()
    settings = fields.Nested(SettingsSchema, required=True)
    location = fields.Nested(LocationSchema, allow_none=True)
    schedule = fields.Nested(ScheduleSchema, allow_none=True)
    nextPrayer = fields.Nested(NextPrayerSchema, allow_none=True)
    error = fields.Str(allow_none=True)
    warnings = fields.List(fields.Str())

class OptionSchema(Schema):
    id = fields.Int(required=True)
    name = fields.Str(required=True)

class CalculationMethodsSchema(Schema):
    methods = fields.List(fields.Nested(OptionSchema), required=True)
    schools = fields.List(fields.Nested(OptionSchema), required=True)
    defaults = fields.Nested(SettingsSchema, required=True)

class IslamicEventSchema(Schema):
    name = fields.Str(required=True)
    date = fields.Str(required=True)
    type = fields.Str(required=True)
    description = fields.Str()

class IslamicCalendarSchema(Schema):
    hijri = fields.Dict(required=True)
    gregorian = fields.Dict(required=True)
    upcomingEvents = fields.List(fields.Nested(IslamicEventSchema), required=True)
