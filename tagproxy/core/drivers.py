"""Model id to upstream driver call resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from .exceptions import ConfigurationError

logger = logging.getLogger("tagproxy")

DEFAULT_INTERFACE = "puter-chat-completion"
DEFAULT_METHOD = "complete"
DEFAULT_DRIVER = "claude"

# (prefix, driver) pairs checked in order; first match wins.
DEFAULT_DRIVER_RULES: tuple[tuple[str, str], ...] = (
    ("openrouter:", "openrouter"),
    ("togetherai:", "together-ai"),
    ("claude-", "claude"),
    ("gpt-", "openai-completion"),
    ("o1", "openai-completion"),
    ("o3", "openai-completion"),
    ("o4", "openai-completion"),
    ("gemini-", "gemini"),
    ("grok-", "xai"),
    ("deepseek-", "deepseek"),
    ("mistral-", "mistral"),
    ("ministral-", "mistral"),
    ("open-mistral-", "mistral"),
    ("pixtral-", "mistral"),
    ("codestral-", "mistral"),
    ("devstral-", "mistral"),
    ("magistral-", "mistral"),
)

# (prefixes, owner) used for the `owned_by` field of /v1/models.
_PROVIDER_PREFIXES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("openrouter:",), "openrouter"),
    (("togetherai:",), "togetherai"),
    (("claude-",), "anthropic"),
    (("gpt-", "o1", "o3", "o4"), "openai"),
    (("gemini-",), "google"),
    (("grok-",), "xai"),
    (("deepseek-",), "deepseek"),
    (
        (
            "mistral-",
            "ministral-",
            "open-mistral-",
            "pixtral-",
            "codestral-",
            "devstral-",
            "magistral-",
        ),
        "mistral",
    ),
)


def infer_provider(model: str) -> str:
    """Return the owning provider for a model id, or "other"."""
    for prefixes, owner in _PROVIDER_PREFIXES:
        if model.startswith(prefixes):
            return owner
    return "other"


@dataclass(frozen=True)
class DriverCall:
    """Upstream call shape for one model."""

    interface: str
    driver: str
    method: str


@dataclass(frozen=True)
class DriverRule:
    prefix: str
    driver: str
    interface: Optional[str] = None
    method: Optional[str] = None

    @classmethod
    def from_config(cls, raw: Mapping[str, Any]) -> "DriverRule":
        prefix = raw.get("prefix")
        driver = raw.get("driver")
        if not isinstance(prefix, str) or not isinstance(driver, str) or not driver:
            raise ConfigurationError(
                f"Driver rule needs string 'prefix' and 'driver': {dict(raw)}"
            )
        return cls(
            prefix=prefix,
            driver=driver,
            interface=raw.get("interface"),
            method=raw.get("method"),
        )


class DriverResolver:
    """Resolve a requested model id to an upstream (interface, driver, method)."""

    def __init__(
        self,
        rules: Optional[Iterable[DriverRule]] = None,
        default: Optional[DriverCall] = None,
    ) -> None:
        if rules is None:
            rules = [DriverRule(prefix, driver) for prefix, driver in DEFAULT_DRIVER_RULES]
        self.rules = list(rules)
        self.default = default or DriverCall(DEFAULT_INTERFACE, DEFAULT_DRIVER, DEFAULT_METHOD)

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]]) -> "DriverResolver":
        """Build from the `drivers` config section.

        Expected shape:
            drivers:
              default: {interface: ..., driver: ..., method: ...}
              rules: [{prefix: "claude-", driver: claude}, ...]

        Missing keys fall back to the built-in defaults.
        """
        config = config or {}
        default_cfg = config.get("default") or {}
        if not isinstance(default_cfg, Mapping):
            raise ConfigurationError("drivers.default must be a mapping")
        default = DriverCall(
            interface=str(default_cfg.get("interface", DEFAULT_INTERFACE)),
            driver=str(default_cfg.get("driver", DEFAULT_DRIVER)),
            method=str(default_cfg.get("method", DEFAULT_METHOD)),
        )

        raw_rules = config.get("rules")
        if raw_rules is None:
            return cls(default=default)
        if not isinstance(raw_rules, list):
            raise ConfigurationError("drivers.rules must be a list")
        rules = []
        for raw in raw_rules:
            if not isinstance(raw, Mapping):
                raise ConfigurationError(f"Invalid driver rule: {raw!r}")
            rules.append(DriverRule.from_config(raw))
        return cls(rules, default)

    def resolve(self, model: str) -> DriverCall:
        for rule in self.rules:
            if model.startswith(rule.prefix):
                return DriverCall(
                    interface=rule.interface or self.default.interface,
                    driver=rule.driver,
                    method=rule.method or self.default.method,
                )
        return self.default
