__version__ = "0.2.0"

from gety.client import GetyClient
from gety.core.config import ConfigError, DispatchConfig
from gety.core.filters import FilterConfig
from gety.core.http import HttpConfig
from gety.core.models import Method, RequestFailure, RequestOutcome, WorkItem

__all__ = [
    "GetyClient",
    "ConfigError",
    "DispatchConfig",
    "FilterConfig",
    "HttpConfig",
    "Method",
    "RequestFailure",
    "RequestOutcome",
    "WorkItem",
]
