# uvbunny/triggers/bootstrap.py
import logging

from uvbunny.api.config.services import ConfigService

logger = logging.getLogger(__name__)


class UserBootstrapper:
    """Gives a newly created user document its default config."""

    def __init__(self, config_service: ConfigService):
        self.config_service = config_service

    def on_user_created(self, uid: str) -> bool:
        try:
            return self.config_service.bootstrap_defaults(uid)
        except Exception as e:
            # Reads fall back to defaults, so a missing config document is harmless.
            logger.error(f"Error initializing config for user {uid}: {e}", exc_info=True)
            return False
