# File: const.py
"""Constants for the Medication Reminders integration.

This file centralizes configuration keys, defaults, storage keys, signal
names and service fields for consistency across the integration.

Imported by the pure modules, so it must not import homeassistant.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
# Integration Name
MEDREMINDER_TITLE = "Medication Reminders"

# Integration Domain
DOMAIN = "medreminder"

# Logger
LOGGER = logging.getLogger(__package__)

# Coordinator
COORDINATOR = "coordinator"
COORDINATOR_SUFFIX = "_coordinator"

# Storage and Versioning
STORE = "store"
STORAGE_KEY = "medreminder_data"
STORAGE_VERSION = 1
SCHEMA_VERSION = 1

# Status refresh interval (minutes); drives past-due transitions on sensors
DEFAULT_UPDATE_INTERVAL = 1

# ------------------------------------------------------------------------------------------------
# Configuration Keys (config entry options)
# ------------------------------------------------------------------------------------------------
CONF_NOTIFY_SERVICE = "notify_service"
CONF_DELAY_MINUTES = "delay_minutes"
CONF_REMINDER_TITLE = "reminder_title"

DEFAULT_NOTIFY_SERVICE = ""
DEFAULT_DELAY_MINUTES = 60
DEFAULT_REMINDER_TITLE = "Medicine Reminder"
DEFAULT_REMINDER_BODY_FMT = "Time to take your {name}"

MIN_DELAY_MINUTES = 1
MAX_DELAY_MINUTES = 720

# Config flow steps and labels
CONFIG_FLOW_STEP_USER = "user"
OPTIONS_FLOW_STEP_INIT = "init"
CONF_EMPTY = ""
LABEL_NONE = "None"

# ------------------------------------------------------------------------------------------------
# Storage Data Keys
# ------------------------------------------------------------------------------------------------
DATA_META = "meta"
DATA_META_SCHEMA_VERSION = "schema_version"
DATA_META_LAST_ROLLOVER = "last_rollover"
DATA_MEDICATIONS = "medications"
DATA_HISTORY = "history"

# Medication fields
DATA_MEDICATION_ID = "id"
DATA_MEDICATION_NAME = "name"
DATA_MEDICATION_COLOR = "color"
DATA_MEDICATION_DOSE = "dose"
DATA_MEDICATION_FREQUENCY = "frequency"
DATA_MEDICATION_DAYS_OF_WEEK = "days_of_week"
DATA_MEDICATION_TIMES = "times"
DATA_MEDICATION_DOSING = "dosing"

# Scheduled time fields
DATA_TIME = "time"
DATA_TIME_TAKEN = "taken"
DATA_TIME_DELAYED_UNTIL = "delayed_until"

# Dosing policy fields
DATA_DOSING_TYPE = "type"
DATA_DOSING_AMOUNT = "amount"
DATA_DOSING_AMOUNTS = "amounts"
DATA_DOSING_SEQUENCE = "sequence"
DATA_DOSING_START_DATE = "start_date"
DATA_DOSING_CURRENT_POSITION = "current_position"

# History record fields
DATA_HISTORY_TIMESTAMP = "timestamp"
DATA_HISTORY_MEDICATION = "medication"
DATA_HISTORY_TIME_INDEX = "time_index"
DATA_HISTORY_TAKEN = "taken"
DATA_HISTORY_TIME = "time"
DATA_HISTORY_ACTUAL_TIME = "actual_time"

# ------------------------------------------------------------------------------------------------
# Enumerations
# ------------------------------------------------------------------------------------------------
FREQUENCY_DAILY = "daily"
FREQUENCY_CUSTOM = "custom"
FREQUENCY_OPTIONS = [FREQUENCY_DAILY, FREQUENCY_CUSTOM]

DOSING_FIXED = "fixed"
DOSING_DAILY_VARIABLE = "daily_variable"
DOSING_CYCLIC = "cyclic"
DOSING_OPTIONS = [DOSING_FIXED, DOSING_DAILY_VARIABLE, DOSING_CYCLIC]

DOSE_STATUS_PENDING = "pending"
DOSE_STATUS_PAST_DUE = "past_due"
DOSE_STATUS_TAKEN = "taken"

DEFAULT_COLOR = "#4a90e2"
DAYS_PER_WEEK = 7

# ------------------------------------------------------------------------------------------------
# Signals (instance scoped: f"{DOMAIN}_{entry_id}_{suffix}")
# ------------------------------------------------------------------------------------------------
SIGNAL_SUFFIX_MEDICATIONS_CHANGED = "medications_changed"
SIGNAL_SUFFIX_MEDICATION_DELETED = "medication_deleted"
SIGNAL_SUFFIX_DOSE_TOGGLED = "dose_toggled"
SIGNAL_SUFFIX_DOSE_DELAYED = "dose_delayed"
SIGNAL_SUFFIX_ROLLOVER = "rollover"

# ------------------------------------------------------------------------------------------------
# Notifications
# ------------------------------------------------------------------------------------------------
NOTIFY_DOMAIN = "notify"
NOTIFY_TITLE = "title"
NOTIFY_MESSAGE = "message"
NOTIFY_DATA = "data"
NOTIFY_TAG = "tag"
PERSISTENT_NOTIFICATION_DOMAIN = "persistent_notification"
PERSISTENT_NOTIFICATION_CREATE = "create"
PERSISTENT_NOTIFICATION_ID = "notification_id"

# ------------------------------------------------------------------------------------------------
# Services
# ------------------------------------------------------------------------------------------------
SERVICE_ADD_MEDICATION = "add_medication"
SERVICE_UPDATE_MEDICATION = "update_medication"
SERVICE_REMOVE_MEDICATION = "remove_medication"
SERVICE_TOGGLE_TAKEN = "toggle_taken"
SERVICE_DELAY_DOSE = "delay_dose"
SERVICE_APPLY_ROLLOVER = "apply_rollover"
SERVICE_RESCHEDULE_REMINDERS = "reschedule_reminders"
SERVICE_GET_HISTORY = "get_history"
SERVICE_GET_TODAY = "get_today"

SERVICES = [
    SERVICE_ADD_MEDICATION,
    SERVICE_UPDATE_MEDICATION,
    SERVICE_REMOVE_MEDICATION,
    SERVICE_TOGGLE_TAKEN,
    SERVICE_DELAY_DOSE,
    SERVICE_APPLY_ROLLOVER,
    SERVICE_RESCHEDULE_REMINDERS,
    SERVICE_GET_HISTORY,
    SERVICE_GET_TODAY,
]

# Service fields
FIELD_MEDICATION_ID = "medication_id"
FIELD_NAME = "name"
FIELD_COLOR = "color"
FIELD_DOSE = "dose"
FIELD_FREQUENCY = "frequency"
FIELD_DAYS_OF_WEEK = "days_of_week"
FIELD_TIMES = "times"
FIELD_DOSING_TYPE = "dosing_type"
FIELD_DAILY_DOSES = "daily_doses"
FIELD_CYCLE_SEQUENCE = "cycle_sequence"
FIELD_CYCLE_START_DATE = "cycle_start_date"
FIELD_CYCLE_POSITION = "cycle_position"
FIELD_TIME_INDEX = "time_index"
FIELD_MINUTES = "minutes"
FIELD_DATE = "date"

# Service response keys
RESPONSE_RECORDS = "records"
RESPONSE_MEDICATIONS = "medications"

# ------------------------------------------------------------------------------------------------
# Translation Keys
# ------------------------------------------------------------------------------------------------
TRANS_KEY_ERROR_SINGLE_INSTANCE = "single_instance_allowed"
TRANS_KEY_ERROR_INVALID_NOTIFY_SERVICE = "invalid_notify_service"
TRANS_KEY_ERROR_MEDICATION_NOT_FOUND = "medication_not_found"
TRANS_KEY_ERROR_INVALID_CONFIGURATION = "invalid_configuration"
TRANS_KEY_ERROR_STORE_UNAVAILABLE = "store_unavailable"
TRANS_KEY_ERROR_NO_ENTRY = "no_entry"
TRANS_KEY_SENSOR_MEDICATION = "medication"

# ------------------------------------------------------------------------------------------------
# Sensor attributes
# ------------------------------------------------------------------------------------------------
ATTR_MEDICATION_ID = "medication_id"
ATTR_COLOR = "color"
ATTR_FREQUENCY = "frequency"
ATTR_DAYS = "days"
ATTR_APPLIES_TODAY = "applies_today"
ATTR_DOSING_TYPE = "dosing_type"
ATTR_BASE_DOSE = "base_dose"
ATTR_DOSE_DISPLAY = "dose_display"
ATTR_TIMES = "times"
ATTR_STATUS = "status"
ATTR_DELAYED = "delayed"
ATTR_DELAYED_UNTIL = "delayed_until"
ATTR_DUE = "due"
ATTR_NEXT_REMINDER = "next_reminder"
ATTR_NEXT_ROLLOVER = "next_rollover"

SENSOR_UID_SUFFIX_MEDICATION = "_medication"
