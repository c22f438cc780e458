"""Memory namespace constants"""

# Namespace layout
MEMORIES_ROOT = "/memories"
PATH_SEPARATOR = "/"
KEY_SEPARATOR = ":"  # Reserved, never allowed inside a path

# Key prefixes
DEFAULT_KEY_PREFIX = "memory"
DEFAULT_ENTRY_PREFIX = "anthropic:memory:"

# Rendering
LINE_NUMBER_WIDTH = 4
EMPTY_DIRECTORY_MARKER = "(empty)"

# SCAN page size hint for stores that paginate
DEFAULT_SCAN_COUNT = 100
