"""Default Policy Values - Conferencing signatures and exclusion patterns

These are the values used when the YAML config does not override them.
Order matters in every list: the first matching entry wins, which keeps
provider naming and exclusion reporting deterministic.
"""

# Ordered (pattern, provider) pairs. Patterns are case-insensitive regexes
# searched anywhere in location, description or conference entry points.
DEFAULT_CONFERENCING_SIGNATURES: list[dict[str, str]] = [
    {"pattern": r"zoom\.us/(j|my|w)/", "provider": "zoom"},
    {"pattern": r"meet\.google\.com/", "provider": "google-meet"},
    {"pattern": r"teams\.microsoft\.com/l/meetup-join|teams\.live\.com/meet", "provider": "teams"},
    {"pattern": r"[\w-]+\.webex\.com/", "provider": "webex"},
    {"pattern": r"gotomeet(ing)?\.(com|me)/", "provider": "gotomeeting"},
    {"pattern": r"bluejeans\.com/", "provider": "bluejeans"},
    {"pattern": r"chime\.aws/", "provider": "chime"},
    {"pattern": r"whereby\.com/", "provider": "whereby"},
    {"pattern": r"meet\.jit\.si/", "provider": "jitsi"},
    {"pattern": r"app\.slack\.com/huddle", "provider": "slack-huddle"},
]

DEFAULT_EXCLUDED_TITLE_PATTERNS: list[str] = [
    r"\bfocus\b",
    r"\bdeep work\b",
    r"\blunch\b",
    r"\bout of office\b",
    r"\bOOO\b",
    r"\bcommute\b",
]

# Holiday and birthday feeds are read-only shared calendars
DEFAULT_EXCLUDED_CALENDAR_PATTERNS: list[str] = [
    r"#holiday@group\.v\.calendar\.google\.com$",
    r"#contacts@group\.v\.calendar\.google\.com$",
]

# "[ACME] Quarterly Review" -> "ACME"
DEFAULT_CUSTOMER_CODE_PATTERN = r"^\s*\[([A-Za-z0-9][A-Za-z0-9_-]{1,15})\]"

DEFAULT_BUFFER_MARKER = "[Buffer]"

# Google Calendar "Graphite"
DEFAULT_BUFFER_COLOR_ID = "8"
