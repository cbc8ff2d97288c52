from acorncache._core._headers import (
    CacheControl as CacheControl,
    Headers as Headers,
    parse_cache_control as parse_cache_control,
)
from acorncache._core._spec import (
    DEFAULT_MAX_AGE as DEFAULT_MAX_AGE,
    AnyEntry as AnyEntry,
    CachedEntry as CachedEntry,
    CacheOptions as CacheOptions,
    NullEntry as NullEntry,
    Verdict as Verdict,
    create_entry as create_entry,
)
from acorncache._core.models import (
    IncomingRequest as IncomingRequest,
    StoredResponse as StoredResponse,
)

__all__ = (
    ## Decisions
    "AnyEntry",
    "CachedEntry",
    "CacheOptions",
    "DEFAULT_MAX_AGE",
    "NullEntry",
    "Verdict",
    "create_entry",
    ## Models
    "IncomingRequest",
    "StoredResponse",
    ## Headers
    "CacheControl",
    "Headers",
    "parse_cache_control",
)
