"""reprotokit CLI command implementations."""
