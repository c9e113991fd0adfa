"""Shared error code constants.

These constants are domain-agnostic. Component packages extend this set in
their own modules rather than adding domain codes here.
"""

# Validation
INVALID_ARGUMENT = "INVALID_ARGUMENT"

# Not found
RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

# Dependency / external system
DEPENDENCY_TIMEOUT = "DEPENDENCY_TIMEOUT"
DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"

# Internal
UNEXPECTED_EXCEPTION = "UNEXPECTED_EXCEPTION"
