"""Application-wide constants."""

APP_TITLE = "rhc"

# Label shown for the "no environment" slot in the environment bar.
NO_ENVIRONMENT = "none"

DEFAULT_DEFINITION_DIRECTORY = "~/rhc/definitions"
DEFAULT_ENVIRONMENT_DIRECTORY = "~/rhc/environments"
DEFAULT_HISTORY_FILE = "~/.rhc_history.json"
DEFAULT_MAX_HISTORY_ITEMS = 1000
DEFAULT_THEME = "monokai"
DEFAULT_LOG_LEVEL = "warning"

PROMPT = "> "

CHOICE_COLUMNS = ("Definition", "URL", "Description")
HISTORY_COLUMNS = ("History",)

HELP_TEXT = """\
 Choosing a request
 ──────────────────────────────
 type         Filter definitions
 ↑ / ctrl+k   Move up
 ↓ / ctrl+j   Move down
 tab          Next environment
 shift+tab    Previous environment
 Enter        Choose definition

 Entering variables
 ──────────────────────────────
 type         Enter a value
 tab          Toggle history selection
 ↑ / ↓        Move through history
 Enter        Accept value

 Anywhere
 ──────────────────────────────
 ctrl+n       Next environment
 ctrl+p       Previous environment
 ctrl+w       Delete previous word
 ctrl+u       Clear input
 ctrl+c / Esc Quit without sending
 F1           Toggle this help\
"""
