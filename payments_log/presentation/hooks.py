import logging

from payments_log.application.record_payment_events import RecordPaymentEventsUseCase
from payments_log.core.exceptions import UnknownHookError
from payments_log.core.models import RecordResult

logger = logging.getLogger(__name__)

PAYMENT_HOOKS = ("woocommerce_payment_complete",)
REFUND_HOOKS = ("woocommerce_refund_created",)


class HookDispatcher:
    """Routes shop platform hook notifications to the event recorder."""

    def __init__(self, record_use_case: RecordPaymentEventsUseCase):
        self._record_use_case = record_use_case

    @staticmethod
    def known_hooks() -> tuple[str, ...]:
        return PAYMENT_HOOKS + REFUND_HOOKS

    async def dispatch(self, hook_name: str, object_id: int) -> RecordResult:
        if hook_name in PAYMENT_HOOKS:
            result = await self._record_use_case.record_payment(object_id)
        elif hook_name in REFUND_HOOKS:
            result = await self._record_use_case.record_refund(object_id)
        else:
            logger.warning(f"Unknown hook: {hook_name}")
            raise UnknownHookError(hook_name)

        logger.info(f"Hook {hook_name} for {object_id} handled: {result.status}")
        return result
