"""pycheer - Async state-sync layer for a cheerleading federation site backed by Supabase."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pycheer")
except PackageNotFoundError:
    __version__ = "0+local"
from pycheer._api.tables import Order
from pycheer.client import CheerClient, StorageClient
from pycheer.config import CheerConfig
from pycheer.exceptions import (
    CheerApiError,
    CheerAuthenticationError,
    CheerConfigError,
    CheerError,
    CheerTransportError,
    FetchError,
    ValidationError,
)
from pycheer.models import (
    AuthUser,
    Coach,
    Competition,
    CourseType,
    Division,
    Judge,
    LicenseCourse,
    NewsItem,
    Profile,
    ProfileRole,
    Province,
    PublicImage,
)
from pycheer.resources import CourseQuery, SiteResources, SiteStore, build_resources, build_store
from pycheer.session import AuthSession
from pycheer.state.auth import AuthSlice, AuthState
from pycheer.state.events import Action, SliceName, SliceStatus
from pycheer.state.hooks import AuthSync, ResourceWatcher
from pycheer.state.slice import RecordUpdate, ResourceMutations, ResourceSlice, SliceState, create_resource_slice
from pycheer.state.store import Store

__all__ = [
    "Action",
    "AuthSession",
    "AuthSlice",
    "AuthState",
    "AuthSync",
    "AuthUser",
    "CheerApiError",
    "CheerAuthenticationError",
    "CheerClient",
    "CheerConfig",
    "CheerConfigError",
    "CheerError",
    "CheerTransportError",
    "Coach",
    "Competition",
    "CourseQuery",
    "CourseType",
    "Division",
    "FetchError",
    "Judge",
    "LicenseCourse",
    "NewsItem",
    "Order",
    "Profile",
    "ProfileRole",
    "Province",
    "PublicImage",
    "RecordUpdate",
    "ResourceMutations",
    "ResourceSlice",
    "ResourceWatcher",
    "SiteResources",
    "SiteStore",
    "SliceName",
    "SliceState",
    "SliceStatus",
    "StorageClient",
    "Store",
    "ValidationError",
    "__version__",
    "build_resources",
    "build_store",
    "create_resource_slice",
]
