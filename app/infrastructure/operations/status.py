"""Operation status enumeration.

Status codes for provider call results. Dispatchers use them to decide
whether a failure is worth logging as retryable before moving on to the
next provider in the failover chain.
"""

from enum import Enum


class OperationStatus(Enum):
    """Status codes for operation results.

    Attributes:
        SUCCESS: Operation completed successfully
        TRANSIENT_ERROR: Retryable error (network, timeout, throttling)
        PERMANENT_ERROR: Non-retryable error (rejected payload, bad address)
        UNAUTHORIZED: Provider rejected the credentials
        NOT_FOUND: Provider resource (template, account) not found
    """

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
