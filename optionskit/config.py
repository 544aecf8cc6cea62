"""Central configuration constants for the OptionsKit backend."""

API_NAMESPACE = "/optionskit/v1"

NONCE_ACTION = "optionskit_rest"
NONCE_HEADER = "X-OptionsKit-Nonce"
NONCE_LIFETIME_SECONDS = 24 * 60 * 60  # 1 day, valid for two half-day ticks
SESSION_ID_KEY = "optionskit_sid"

BOOTSTRAP_GLOBAL_NAME = "optionsKitSettings"

SETTINGS_RECORD_SUFFIX = "_settings"
PUBLISHED_SLOT_SUFFIX = "_options"
PAGE_SLUG_SUFFIX = "-settings"
BODY_CLASS = "optionskit-panel-page"

DEFAULT_LABELS = {
    "save": "Save Changes",
}

DEFAULT_MENU = {
    "parent": "options-general.php",
    "page_title": "Settings Panel",
    "menu_title": "Settings Panel",
    "capability": "manage_options",
}

DEFAULT_PRIORITY = 10

DATA_DIR_ENV = "OPTIONSKIT_DATA_DIR"
SETTINGS_FILE_NAME = "options.json"
SETTINGS_DB_NAME = "options.db"

HTTP_TIMEOUT_SECONDS = 15
