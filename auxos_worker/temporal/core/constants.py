"""Shared constants for Temporal workflows."""

from datetime import timedelta

from temporalio.common import RetryPolicy

from auxos_worker.core.exceptions import NON_RETRYABLE_ERROR_TYPES

# Task Queues
DEFAULT_TASK_QUEUE = "agent-queue"

# Workflow ids
DOCUMENT_WORKFLOW_ID_PREFIX = "extract-doc-"
SESSION_WORKFLOW_ID_PREFIX = "extract-session-"

# Timeouts
DOCUMENT_PIPELINE_TIMEOUT = timedelta(minutes=10)
API_ACTIVITY_TIMEOUT = timedelta(seconds=30)
TEXT_EXTRACTION_TIMEOUT = timedelta(minutes=3)
CLASSIFICATION_TIMEOUT = timedelta(seconds=30)
# Covers the LLM inference bound plus the pattern fallback
FIELD_EXTRACTION_TIMEOUT = timedelta(minutes=4)
SAVE_FIELDS_TIMEOUT = timedelta(minutes=2)

# Below this many characters (after trimming) a document is treated as unreadable
MIN_TEXT_LENGTH = 10

# Extracted text travels through workflow history as an activity result and as
# an argument to two more activities; Temporal rejects payloads over 2 MB
MAX_DOCUMENT_TEXT_BYTES = 1_000_000

# Retry policies
DEFAULT_RETRY_POLICY = RetryPolicy(
    initial_interval=timedelta(seconds=2),
    backoff_coefficient=2.0,
    maximum_interval=timedelta(seconds=30),
    maximum_attempts=3,
    non_retryable_error_types=NON_RETRYABLE_ERROR_TYPES,
)

STATUS_UPDATE_RETRY_POLICY = RetryPolicy(
    initial_interval=timedelta(seconds=1),
    maximum_attempts=3,
    non_retryable_error_types=NON_RETRYABLE_ERROR_TYPES,
)

# The extractor already degrades to the fallback tier on LLM errors
FIELD_EXTRACTION_RETRY_POLICY = RetryPolicy(
    initial_interval=timedelta(seconds=5),
    maximum_attempts=2,
    non_retryable_error_types=NON_RETRYABLE_ERROR_TYPES,
)
