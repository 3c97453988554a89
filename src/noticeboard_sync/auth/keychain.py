"""Credential lookup for the process entry point.

Credentials are read, never written: the environment wins, the OS keychain
is the fallback.
"""

import json
import logging
import os
from typing import Optional

import keyring
from keyring.errors import KeyringError

from .authenticator import Credentials

__all__ = ["KeychainReader", "load_credentials"]

logger = logging.getLogger(__name__)

SERVICE_NAME = "Noticeboard Sync"
ACCOUNT_NAME = "login_credentials"

ADMISSION_NO_ENV = "NOTICEBOARD_ADMISSION_NO"
PASSWORD_ENV = "NOTICEBOARD_PASSWORD"


class KeychainReader:
    """Reads login credentials stored in the system keychain."""

    def __init__(self, service_name: str = SERVICE_NAME):
        self.service_name = service_name

    def load(self) -> Optional[Credentials]:
        """Load credentials from keychain.

        The entry is a JSON object ``{"admissionNo": ..., "password": ...}``.

        Returns:
            Credentials if found, None otherwise
        """
        try:
            data = keyring.get_password(self.service_name, ACCOUNT_NAME)
        except KeyringError as e:
            logger.error(f"Failed to read credentials from keychain: {e}")
            return None
        if not data:
            return None

        try:
            parsed = json.loads(data)
            return Credentials(
                admission_no=parsed["admissionNo"],
                password=parsed["password"],
            )
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.error(f"Invalid credential format in keychain: {e}")
            return None


def load_credentials(keychain: Optional[KeychainReader] = None) -> Optional[Credentials]:
    """Resolve credentials from the environment, then the keychain."""
    admission_no = os.getenv(ADMISSION_NO_ENV)
    password = os.getenv(PASSWORD_ENV)
    if admission_no and password:
        return Credentials(admission_no=admission_no, password=password)

    return (keychain or KeychainReader()).load()
