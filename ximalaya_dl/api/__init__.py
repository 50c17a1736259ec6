"""
Ximalaya API Layer.

This package handles all communication with the Ximalaya web and mobile APIs,
including the VIP entitlement protocol.
"""

from .auth import CookieAuthenticator
from .cipher import EntitlementCipher, XimalayaCipher
from .client import XimalayaAPIClient
from .entitlement import VipEntitlementResolver

__all__ = [
    "CookieAuthenticator",
    "EntitlementCipher",
    "VipEntitlementResolver",
    "XimalayaAPIClient",
    "XimalayaCipher",
]
