"""Canonical logging field names for consistent structured output."""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Component packaging fields.
COMPONENT = "component"
COMPONENT_VERSION = "component_version"
ARTIFACT_URI = "artifact_uri"
BATCH_ID = "batch_id"
CANDIDATES = "candidates"

# Service graph fields.
SERVICE_NAME = "service_name"
CYCLE = "cycle"

# Error normalization fields.
ERROR_CATEGORY = "error_category"
ERROR_CODE = "error_code"
RETRYABLE = "retryable"

# Event names.
PREPARE_COMPONENT_START_EVENT = "prepare-component-start"
PREPARE_COMPONENT_FINISHED_EVENT = "prepare-component-finished"
PREPARE_COMPONENT_FAILED_EVENT = "prepare-component-failed"
PREPARE_BATCH_STOPPED_EVENT = "prepare-batch-stopped"
DOWNLOAD_ARTIFACTS_EVENT = "downloading-component-artifacts"
LIST_VERSIONS_EVENT = "list-component-versions"
DEPENDENCY_CYCLE_EVENT = "dependency-cycle-detected"

# Common service-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
