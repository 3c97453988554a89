"""Auth module - session token lifecycle and credential lookup."""

from .authenticator import Authenticator, Credentials
from .keychain import KeychainReader, load_credentials

__all__ = ["Authenticator", "Credentials", "KeychainReader", "load_credentials"]
