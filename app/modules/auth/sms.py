import logging

logger = logging.getLogger(__name__)


class ConsoleSmsSender:
    """Development SMS sender: writes the code to the log instead of a provider."""

    def send_code(self, phone: str, code: str) -> bool:
        logger.info(f"SMS code for {phone}: {code}")
        return True


_sender = ConsoleSmsSender()


def get_sms_sender() -> ConsoleSmsSender:
    return _sender
