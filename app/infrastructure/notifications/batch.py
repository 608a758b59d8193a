"""Bulk notification sending.

Recipients are processed in fixed-size batches. Sends within a batch run
concurrently; batches run one after another with a fixed pause between
them to spread load on the providers. A failing recipient never affects
the others: its error is collected and the run continues.
"""

import contextvars
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List

from infrastructure.logging import bind_request_context, get_correlation_id, get_module_logger
from infrastructure.notifications.exceptions import NotificationError
from infrastructure.notifications.hooks import BULK_NOTIFICATION_SENT, SendOutcome
from infrastructure.notifications.models import (
    BulkNotificationRequest,
    BulkNotificationResult,
    BulkRecipientError,
)
from infrastructure.notifications.orchestrator import NotificationOrchestrator

logger = get_module_logger()

DEFAULT_BATCH_SIZE = 50
DEFAULT_BATCH_PAUSE_SECONDS = 0.1


def split_batches(items: List[str], size: int) -> List[List[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class BatchProcessor:
    """Fans a bulk request out to the orchestrator, batch by batch.

    Args:
        orchestrator: Orchestrator used for each recipient
        batch_size: Default recipients per batch
        pause_seconds: Pause between consecutive batches
        sleep: Sleep function (injected for tests)
    """

    def __init__(
        self,
        orchestrator: NotificationOrchestrator,
        batch_size: int = DEFAULT_BATCH_SIZE,
        pause_seconds: float = DEFAULT_BATCH_PAUSE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.orchestrator = orchestrator
        self.batch_size = batch_size
        self.pause_seconds = pause_seconds
        self._sleep = sleep

    def send_bulk(self, request: BulkNotificationRequest) -> BulkNotificationResult:
        """Send the request's notification to every recipient.

        Returns:
            BulkNotificationResult where ``sent + failed == total``.
        """
        batch_size = request.batch_size or self.batch_size
        batches = split_batches(request.recipient_ids, batch_size)
        result = BulkNotificationResult(total=len(request.recipient_ids))
        started = time.monotonic()

        with bind_request_context(
            correlation_id=get_correlation_id(),
            notification_type=request.type.value,
        ) as correlation_id:
            logger.info(
                "bulk_send_started",
                total=result.total,
                batch_size=batch_size,
                batch_count=len(batches),
            )

            for index, batch in enumerate(batches):
                if index > 0 and self.pause_seconds > 0:
                    self._sleep(self.pause_seconds)
                self._process_batch(request, batch, result)
                result.batches += 1
                logger.info(
                    "bulk_batch_completed",
                    batch_index=index,
                    batch_count=len(batches),
                    sent=result.sent,
                    failed=result.failed,
                )

            logger.info(
                "bulk_send_completed",
                total=result.total,
                sent=result.sent,
                failed=result.failed,
            )
            self.orchestrator.emit(
                SendOutcome(
                    action=BULK_NOTIFICATION_SENT,
                    resource_type="bulk_notification",
                    resource_id=correlation_id,
                    actor_id=request.issued_by,
                    correlation_id=correlation_id,
                    duration_ms=int((time.monotonic() - started) * 1000),
                    metadata={
                        "notification_type": request.type.value,
                        "total": result.total,
                        "sent": result.sent,
                        "failed": result.failed,
                        "batches": result.batches,
                    },
                )
            )
        return result

    def _process_batch(
        self,
        request: BulkNotificationRequest,
        batch: List[str],
        result: BulkNotificationResult,
    ) -> None:
        """Send one batch concurrently and fold outcomes into result in order."""
        with ThreadPoolExecutor(
            max_workers=len(batch), thread_name_prefix="notification-bulk"
        ) as executor:
            futures = [
                executor.submit(
                    contextvars.copy_context().run,
                    self.orchestrator.send,
                    request.intent_for(recipient_id),
                )
                for recipient_id in batch
            ]

            for recipient_id, future in zip(batch, futures):
                try:
                    notification = future.result()
                except Exception as e:  # pylint: disable=broad-except
                    self._record_failure(result, recipient_id, e)
                    continue
                result.notifications.append(notification)
                result.sent += 1

    def _record_failure(
        self, result: BulkNotificationResult, recipient_id: str, error: Exception
    ) -> None:
        if isinstance(error, NotificationError):
            error_code = error.error_code
        else:
            error_code = "NOTIFICATION_SEND_FAILED"
        result.failed += 1
        result.errors.append(
            BulkRecipientError(
                recipient_id=recipient_id,
                error=str(error),
                error_code=error_code,
            )
        )
        logger.warning(
            "bulk_recipient_failed",
            recipient_id=recipient_id,
            error=str(error),
            error_code=error_code,
        )
