"""Host-shell identity providers.

When the wallet runs inside a Telegram mini-app, the shell hands over an
``initData`` query string describing the user. Outside a shell there is no
identity and the UI shows browser mode.
"""

import hashlib
import hmac
import json
from urllib.parse import parse_qsl

from loguru import logger

from minivault.models import HostIdentity


class NullIdentityProvider:
    """Identity provider for standalone (browser) mode."""

    def get_identity(self) -> HostIdentity | None:
        return None


class TelegramIdentityProvider:
    """Reads the user from Telegram WebApp ``initData``.

    If a bot token is given, the payload signature is checked first:
    secret = HMAC_SHA256("WebAppData", bot_token), and the ``hash`` field must
    equal HMAC_SHA256(secret, data_check_string) in hex. Unsigned or tampered
    payloads yield no identity.
    """

    def __init__(self, init_data: str, bot_token: str | None = None) -> None:
        """Initialize the provider.

        Args:
            init_data: Raw ``Telegram.WebApp.initData`` query string.
            bot_token: Bot token used to verify the payload, if available.
        """
        self._init_data = init_data
        self._bot_token = bot_token

    def get_identity(self) -> HostIdentity | None:
        """Parse (and optionally verify) the host user."""
        if not self._init_data:
            return None

        fields = dict(parse_qsl(self._init_data, keep_blank_values=True))

        if self._bot_token is not None and not self._verify(fields, self._bot_token):
            logger.warning("Rejected Telegram initData with invalid signature")
            return None

        try:
            user = json.loads(fields.get("user", ""))
        except ValueError:
            logger.debug("Telegram initData has no readable user field")
            return None

        if not isinstance(user, dict) or "id" not in user:
            return None

        display_name = " ".join(
            part for part in (user.get("first_name"), user.get("last_name")) if part
        )
        username = user.get("username") or None

        return HostIdentity(
            user_id=str(user["id"]),
            display_name=display_name or username or str(user["id"]),
            username=username,
        )

    @staticmethod
    def _verify(fields: dict[str, str], bot_token: str) -> bool:
        """Check the initData signature in constant time."""
        received = fields.get("hash", "")
        if not received:
            return False

        data_check_string = "\n".join(
            f"{key}={value}" for key, value in sorted(fields.items()) if key != "hash"
        )
        secret = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
        expected = hmac.new(secret, data_check_string.encode(), hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected, received)
