"""Agent configuration: defaults plus an optional YAML override file."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from usbtemp.core.errors import ConfigLoadError, ConfigValidationError
from usbtemp.core.model import KnownModel

LOGGER = logging.getLogger(__name__)

DEFAULT_SYSFS_ROOT = "/sys/bus/usb/devices"
DEFAULT_DEV_ROOT = "/dev"
DEFAULT_KNOWN_MODELS: tuple[KnownModel, ...] = (
    KnownModel(0x0C45, 0x7401, "TEMPer (HID)"),
    KnownModel(0x413D, 0x2107, "TEMPerX/TEMPerHUM (HID)"),
    KnownModel(0x1A86, 0x5523, "TEMPer (serial, CH341)"),
)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


UniqueKeyLoader.yaml_implicit_resolvers = {
    key: list(value) for key, value in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

for first_char, mappings in list(UniqueKeyLoader.yaml_implicit_resolvers.items()):
    UniqueKeyLoader.yaml_implicit_resolvers[first_char] = [
        (tag, regexp)
        for tag, regexp in mappings
        if tag != "tag:yaml.org,2002:bool"
    ]


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class HidSettings:
    firmware_retries: int = 10
    firmware_timeout_s: float = 0.2
    sample_timeout_s: float = 0.1
    max_reply_bytes: int = 64


@dataclass(frozen=True)
class SerialSettings:
    baudrate: int = 9600
    timeout_s: float = 1.0


@dataclass(frozen=True)
class AgentConfig:
    sysfs_root: str = DEFAULT_SYSFS_ROOT
    dev_root: str = DEFAULT_DEV_ROOT
    known_models: tuple[KnownModel, ...] = DEFAULT_KNOWN_MODELS
    override: tuple[int, int] | None = None
    hid: HidSettings = HidSettings()
    serial: SerialSettings = SerialSettings()

    @property
    def allowed_models(self) -> tuple[KnownModel, ...]:
        """The override pair, when set, replaces the allow-list for this run."""
        if self.override is not None:
            vendor_id, product_id = self.override
            return (KnownModel(vendor_id, product_id, "override"),)
        return self.known_models

    def with_override(self, vendor_id: int, product_id: int) -> AgentConfig:
        return replace(self, override=(vendor_id, product_id))


def parse_hex_id(value: str, *, context: str) -> int:
    text = value.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    try:
        parsed = int(text, 16)
    except ValueError as exc:
        raise ConfigValidationError(f"{context} must be a hex id, got '{value}'") from exc
    if not 0 <= parsed <= 0xFFFF:
        raise ConfigValidationError(f"{context} must fit in 16 bits, got '{value}'")
    return parsed


def default_config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "usbtemp/config.yaml"


def _load_schema_validator() -> Any:
    schema_text = resources.files("usbtemp.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigValidationError(f"Config file {path} must contain a mapping at root")
    return loaded


def build_config(doc: dict[str, Any], source: Path | str = "<config>") -> AgentConfig:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        if exc.path and exc.path[-1] in ("vendor_id", "product_id") and exc.validator == "type":
            where += " (quote hex ids, e.g. \"2107\")"
        raise ConfigValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    config = AgentConfig()
    if "sysfs_root" in doc:
        config = replace(config, sysfs_root=doc["sysfs_root"])
    if "dev_root" in doc:
        config = replace(config, dev_root=doc["dev_root"])

    if "known_models" in doc:
        models = []
        for index, entry in enumerate(doc["known_models"]):
            context = f"known_models[{index}]"
            models.append(
                KnownModel(
                    vendor_id=parse_hex_id(entry["vendor_id"], context=f"{context}.vendor_id"),
                    product_id=parse_hex_id(entry["product_id"], context=f"{context}.product_id"),
                    name=entry.get("name", ""),
                )
            )
        config = replace(config, known_models=tuple(models))

    if "override" in doc:
        config = config.with_override(
            parse_hex_id(doc["override"]["vendor_id"], context="override.vendor_id"),
            parse_hex_id(doc["override"]["product_id"], context="override.product_id"),
        )

    if "hid" in doc:
        hid = doc["hid"]
        config = replace(
            config,
            hid=HidSettings(
                firmware_retries=int(hid.get("firmware_retries", config.hid.firmware_retries)),
                firmware_timeout_s=float(hid.get("firmware_timeout_s", config.hid.firmware_timeout_s)),
                sample_timeout_s=float(hid.get("sample_timeout_s", config.hid.sample_timeout_s)),
                max_reply_bytes=int(hid.get("max_reply_bytes", config.hid.max_reply_bytes)),
            ),
        )

    if "serial" in doc:
        serial_doc = doc["serial"]
        config = replace(
            config,
            serial=SerialSettings(
                baudrate=int(serial_doc.get("baudrate", config.serial.baudrate)),
                timeout_s=float(serial_doc.get("timeout_s", config.serial.timeout_s)),
            ),
        )

    return config


def load_config(path: Path | str | None = None) -> AgentConfig:
    """Load the agent config.

    An explicit ``path`` must exist. Without one, the XDG user config is used
    when present and built-in defaults otherwise.
    """
    if path is None:
        candidate = default_config_path()
        if not candidate.is_file():
            LOGGER.debug("No config at %s, using defaults", candidate)
            return AgentConfig()
    else:
        candidate = Path(path)

    doc = _read_yaml(candidate)
    LOGGER.debug("Loaded config from %s", candidate)
    return build_config(doc, candidate)
