"""Error taxonomy for the tile cache.

Every error a request can end in maps to an HTTP status. Storage errors carry a
status too but are always recovered inside the service.
"""


class TileCacheError(Exception):
    """Base exception for the tile cache"""

    status_code = 500


class BadRequest(TileCacheError):
    """Malformed or out-of-range client input"""

    status_code = 400


class NotFound(TileCacheError):
    """Unknown tile provider"""

    status_code = 404


class UpstreamFailure(TileCacheError):
    """Upstream provider returned an error or could not be reached"""

    status_code = 500


class StorageFailure(TileCacheError):
    """Object store read or write error"""

    status_code = 500


class ConfigurationError(TileCacheError):
    """Invalid or missing service configuration"""

    status_code = 500
