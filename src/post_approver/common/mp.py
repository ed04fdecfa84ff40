import logging
import os

from mixpanel import Mixpanel, MixpanelException

logger = logging.getLogger(__name__)


class SilentMixpanel:
    def __init__(self, token: str = ""):
        pass

    def track(self, distinct_id: int, event: str, properties: dict | None = None):
        pass


def create_mixpanel() -> Mixpanel | SilentMixpanel:
    token = os.getenv("MIXPANEL_PROJECT_TOKEN")
    if not token:
        logger.debug("MIXPANEL_PROJECT_TOKEN is not set, tracking disabled")
        return SilentMixpanel()
    return Mixpanel(token)


mp = create_mixpanel()


def track(distinct_id: int, event: str, properties: dict | None = None) -> None:
    """Send an event; a Mixpanel outage is logged and never reaches the handler"""
    try:
        mp.track(distinct_id, event, properties)
    except MixpanelException as e:
        logger.warning(f"Mixpanel tracking failed for {event}: {e}")


def mute_mp_for_tests():
    global mp
    mp = SilentMixpanel()
