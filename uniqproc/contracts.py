"""Versioned wire and snapshot contract identifiers for the agent protocol."""

APP_NAME = "uniq-proc"

SNAPSHOT_SCHEMA_V1 = "registry_snapshot.v1"

SUPPORTED_SNAPSHOT_SCHEMAS = {
    SNAPSHOT_SCHEMA_V1,
}

ALIVE_RESPONSE = "running"
NOT_RUNNING_RESPONSE = "not running"
PARSE_FAILURE_RESPONSE = "Could not parse the request"
