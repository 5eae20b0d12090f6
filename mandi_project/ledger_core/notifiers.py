import logging

logger = logging.getLogger("ledger_core.notifications")


class LoggingNotifier:
    """
    Default notifier: writes the notification to the log.

    Real channels (WhatsApp, SMS) are plugged in through
    settings.LEDGER_NOTIFIER and only need a ``notify`` method
    with the same signature.
    """

    def notify(self, tenant_id, payment_id, channel):
        logger.info(
            "Payment %s recorded (%s)",
            payment_id,
            channel,
            extra={"tenant_id": tenant_id, "payment_id": payment_id, "channel": channel},
        )
