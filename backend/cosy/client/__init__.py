from .api import CosyClient
from .device import DeviceSession, MemoryDeviceStorage, JsonFileDeviceStorage, PinValidationError
from .errors import ConfigurationError, CosyApiError, CosyAuthError
from .guard import AccessGuard
from .invites import (
    InviteRedeemError,
    InviteInvalid,
    InviteExpired,
    InviteAlreadyUsed,
    hash_invite_token,
    redeem_invite,
)
from .resolver import StoreResolver, StoreList, Resolution
