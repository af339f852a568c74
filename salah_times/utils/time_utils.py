import datetime

def parse_time_internal(time_str):
    """
    Parses a provider time string (HH:MM, optionally followed by a timezone
    suffix such as "05:12 (+03)") into a datetime.time object.
    Returns None if parsing fails.
    """
    if not isinstance(time_str, str) or not time_str or time_str.lower() == "n/a":
        return None
    clock = time_str.strip().split(" ")[0]
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.datetime.strptime(clock, fmt).time()
        except ValueError:
            continue
    return None

def format_time_internal(time_obj):
    """
    Formats a datetime.time object into a HH:MM string.
    Returns "N/A" if time_obj is None.
    """
    if not time_obj: return "N/A"
    return time_obj.strftime("%H:%M")

def format_time_12h(time_obj):
    """
    Formats a datetime.time object for display, e.g. "5:07 AM", "12:30 PM".
    """
    if not time_obj: return "N/A"
    suffix = "AM" if time_obj.hour < 12 else "PM"
    hour = time_obj.hour % 12 or 12
    return f"{hour}:{time_obj.minute:02d} {suffix}"

def minute_of_day(value):
    """Minutes since midnight for a datetime.time or datetime.datetime."""
    return value.hour * 60 + value.minute

def format_remaining(minutes):
    """Formats a countdown as "{h}h {m}m" when at least an hour, else "{m}m"."""
    hours, mins = divmod(int(minutes), 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"

def civil_date_key(date_obj):
    """The DD-MM-YYYY form used by the prayer time provider."""
    return date_obj.strftime("%d-%m-%Y")
