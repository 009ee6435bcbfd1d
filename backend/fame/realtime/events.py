"""Server -> client event names carried in envelope ``type``."""

ARTIST_REGISTERED = "artist_registered"
ARTIST_ASSIGNED = "artist_assigned"
ARTIST_STATUS_CHANGED = "artist_status_changed"
ARTIST_DELETED = "artist_deleted"
REHEARSAL_UPDATED = "rehearsal_updated"
PERFORMANCE_ORDER_UPDATE = "performance-order-update"
CUE_UPDATED = "cue_updated"
LIVE_BOARD_UPDATE = "live-board-update"
EMERGENCY_ALERT = "emergency-alert"
EMERGENCY_CLEAR = "emergency-clear"
TIMING_SETTINGS_UPDATED = "timing-settings-updated"
ADMIN_ACTION = "admin_action"
ADMIN_ACTION_PERFORMED = "admin_action_performed"
ACCOUNT_STATUS_CHANGED = "account_status_changed"
NEW_REGISTRATION = "new_registration"
QUALITY_RATING_UPDATED = "artist_quality_rating_updated"
