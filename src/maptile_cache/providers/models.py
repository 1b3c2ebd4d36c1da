from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from ..exceptions import ConfigurationError

REQUIRED_PLACEHOLDERS = ("{z}", "{x}", "{y}")


@dataclass(frozen=True)
class Provider:
    """Data model for an upstream tile provider"""
    id: str
    name: str
    url_template: str
    max_zoom: int
    description: str = ""
    cache_namespace: str = ""
    subdomains: Tuple[str, ...] = ()
    extra_headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.cache_namespace:
            object.__setattr__(self, "cache_namespace", self.id)

    @property
    def uses_subdomains(self) -> bool:
        return "{s}" in self.url_template

    @classmethod
    def from_dict(cls, provider_id: str, data: Mapping[str, Any]) -> "Provider":
        """
        Build a provider from a configuration record.

        Accepts the camelCase keys of the JSON config file (``urlTemplate``,
        ``maxZoom``, ``cachePrefix``, ``headers``) as well as the snake_case
        attribute names.

        Raises:
            ConfigurationError: If the record is missing fields or violates
                the provider invariants
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Provider '{provider_id}' must be an object")

        url_template = _pick(data, "urlTemplate", "url_template")
        if not isinstance(url_template, str) or not url_template:
            raise ConfigurationError(f"Provider '{provider_id}' has no urlTemplate")

        missing = [p for p in REQUIRED_PLACEHOLDERS if p not in url_template]
        if missing:
            raise ConfigurationError(
                f"Provider '{provider_id}' urlTemplate is missing placeholders: {', '.join(missing)}"
            )

        max_zoom = _pick(data, "maxZoom", "max_zoom")
        # bool is an int subclass
        if not isinstance(max_zoom, int) or isinstance(max_zoom, bool) or max_zoom < 0:
            raise ConfigurationError(
                f"Provider '{provider_id}' maxZoom must be a non-negative integer, got {max_zoom!r}"
            )

        subdomains = _pick(data, "subdomains") or []
        if not isinstance(subdomains, (list, tuple)) or not all(isinstance(s, str) for s in subdomains):
            raise ConfigurationError(f"Provider '{provider_id}' subdomains must be a list of strings")

        headers = _pick(data, "headers", "extra_headers") or {}
        if not isinstance(headers, Mapping):
            raise ConfigurationError(f"Provider '{provider_id}' headers must be an object")

        return cls(
            id=provider_id,
            name=str(data.get("name", provider_id)),
            description=str(data.get("description", "")),
            url_template=url_template,
            max_zoom=max_zoom,
            cache_namespace=_pick(data, "cachePrefix", "cache_namespace") or "",
            subdomains=tuple(subdomains),
            extra_headers={str(k): str(v) for k, v in headers.items()},
        )

    def summary(self) -> Dict[str, Any]:
        """Public metadata exposed by the provider listing."""
        return {
            "name": self.name,
            "description": self.description,
            "maxZoom": self.max_zoom,
        }


def _pick(data: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in data:
            return data[name]
    return None
