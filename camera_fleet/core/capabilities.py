"""Parser for ``gst-device-monitor-1.0`` output.

The monitor prints one block per device::

    Device found:

        name  : HD Webcam
        class : Video/Source
        caps  : image/jpeg, width=(int)1920, height=(int)1080, framerate=(fraction)30/1
                image/jpeg, width=(int)1280, height=(int)720, framerate={ (fraction)30/1, (fraction)15/1 }
        properties:
            device.path = /dev/video0
            udev-probed = true
        gst-launch-1.0 v4l2src device=/dev/video0 ! ...

Every line is classified on its own (see :func:`classify_line`) and a single
pass over the classified lines builds one :class:`DeviceRecord` per block.
Raw ``caps`` strings are then turned into :class:`Cap` objects whose
parameters are a closed union of :class:`Atom`, :class:`Range` and
:class:`Choice` values.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .logging_utils import get_module_logger

logger = get_module_logger("CapabilityParser")

TAB_WIDTH = 4
DEVICE_MARKER = "Device found:"
PROPERTIES_FIELD = "properties"
CAPS_FIELD = "caps"

_FIELD_RE = re.compile(r"^\s*(?P<key>[a-z\s]*)\s*:(?P<value>.*)")
_PROPERTY_RE = re.compile(r"^\s*(?P<key>[a-z0-9\-_.]*) = (?P<value>.*)")
_LAUNCH_RE = re.compile(r"^\s*gst-launch-1\.0 (?P<type>\S*) .*!.*$")

_CAP_RE = re.compile(r"^(?P<type>[^,]*), (?P<parameters>.*)")
_PARAMETER_RE = re.compile(r"(?P<name>[a-z\-]*)=(\((?P<type>[a-z]*)\))?(?P<rest>.*)")
_CHOICE_RE = re.compile(r"\{(?P<list>[^}]*)\}(?P<rest>.*)")
_CHOICE_TYPE_RE = re.compile(r"^\((?P<type>[a-z]*)\)")
_RANGE_RE = re.compile(
    r"\[ (?P<min>\d*)(/(?P<mindenom>\d*))?, (?P<max>\d*)(/(?P<maxdenom>\d*))?(, (?P<step>\d*))? \](?P<rest>.*)"
)
_ATOM_RE = re.compile(r"(?P<value>[^, ;]*)(?P<rest>.*)")


class CapParseError(ValueError):
    """Raised internally when a capability parameter list is malformed."""


# ----------------------------------------------------------------------
# Capability values


@dataclass(frozen=True, slots=True)
class Atom:
    value: str
    value_type: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Range:
    min: str
    max: str
    mindenom: Optional[str] = None
    maxdenom: Optional[str] = None
    step: Optional[str] = None
    value_type: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Choice:
    items: tuple[str, ...]
    value_type: Optional[str] = None


CapabilityValue = Union[Atom, Range, Choice]


@dataclass(slots=True)
class Cap:
    """One capability line: media type plus its parameters."""

    type: str
    parameters: Dict[str, CapabilityValue] = field(default_factory=dict)


@dataclass(slots=True)
class DeviceRecord:
    """Everything the monitor said about one device."""

    type: Optional[str] = None
    fields: Dict[str, List[str]] = field(default_factory=dict)
    properties: Dict[str, Any] = field(default_factory=dict)
    caps: List[Cap] = field(default_factory=list)

    @property
    def name(self) -> Optional[str]:
        values = self.fields.get("name")
        return values[0] if values else None

    @property
    def device_path(self) -> Optional[str]:
        """Device node, from ``device.path`` or the PipeWire ``api.v4l2.path``."""
        for path in (("device", "path"), ("api", "v4l2", "path")):
            value = get_nested(self.properties, path)
            if isinstance(value, str) and value:
                return value
        return None


# ----------------------------------------------------------------------
# Line classification


class LineKind(Enum):
    DEVICE_START = "device_start"
    LAUNCH = "launch"
    FIELD = "field"
    PROPERTY = "property"
    CONTINUATION = "continuation"


@dataclass(frozen=True, slots=True)
class Line:
    text: str
    kind: LineKind
    key: Optional[str] = None
    value: Optional[str] = None


def classify_line(text: str) -> Line:
    """Classify a single (tab-normalized) line without any parser context."""
    if text == DEVICE_MARKER:
        return Line(text, LineKind.DEVICE_START)

    launch = _LAUNCH_RE.match(text)
    if launch:
        return Line(text, LineKind.LAUNCH, value=launch.group("type"))

    header = _FIELD_RE.match(text)
    if header:
        return Line(text, LineKind.FIELD, key=header.group("key").strip(), value=header.group("value"))

    prop = _PROPERTY_RE.match(text)
    if prop:
        return Line(text, LineKind.PROPERTY, key=prop.group("key"), value=prop.group("value"))

    return Line(text, LineKind.CONTINUATION)


# ----------------------------------------------------------------------
# Nested property trees


def set_nested(tree: Dict[str, Any], dotted_path: str, value: Any) -> bool:
    """Assign ``value`` at ``dotted_path`` inside ``tree``.

    Missing intermediate segments are created as empty dicts. A segment that
    already holds a scalar is left untouched and the assignment is dropped.
    Returns True when the value was stored.
    """
    *parents, leaf = dotted_path.split(".")
    node = tree
    for segment in parents:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            logger.debug("Property %s shadows scalar at %r, skipping", dotted_path, segment)
            return False
        node = child
    node[leaf] = value
    return True


def get_nested(tree: Dict[str, Any], path: tuple[str, ...]) -> Any:
    node: Any = tree
    for segment in path:
        if not isinstance(node, dict) or segment not in node:
            return None
        node = node[segment]
    return node


# ----------------------------------------------------------------------
# Device blocks


def parse_device_monitor_output(output: str) -> List[DeviceRecord]:
    """Parse the full monitor output into device records.

    Lines outside a device block are ignored, so an empty or unrelated
    output simply yields an empty list.
    """
    lines = [
        classify_line(raw.replace("\t", " " * TAB_WIDTH))
        for raw in output.splitlines()
        if raw
    ]

    devices: List[DeviceRecord] = []
    device: Optional[DeviceRecord] = None
    current_field: Optional[str] = None
    in_properties = False

    for line in lines:
        if line.kind is LineKind.DEVICE_START:
            device = DeviceRecord()
            devices.append(device)
            current_field = None
            in_properties = False
            continue

        if device is None:
            continue

        if line.kind is LineKind.LAUNCH:
            device.type = line.value
        elif line.kind is LineKind.FIELD:
            current_field = line.key
            if current_field == PROPERTIES_FIELD:
                in_properties = True
                device.properties = {}
            else:
                in_properties = False
                values: List[str] = []
                trimmed = (line.value or "").strip()
                if trimmed:
                    values.append(trimmed)
                device.fields[current_field] = values
        elif current_field is not None:
            if in_properties:
                if line.kind is LineKind.PROPERTY:
                    set_nested(device.properties, line.key, line.value)
            else:
                trimmed = line.text.strip()
                if trimmed:
                    device.fields[current_field].append(trimmed)

    for device in devices:
        device.caps = [
            cap for cap in (parse_cap(raw) for raw in device.fields.get(CAPS_FIELD, [])) if cap is not None
        ]

    return devices


# ----------------------------------------------------------------------
# Capability lines


def parse_cap(text: str) -> Optional[Cap]:
    """Parse ``image/jpeg, width=..., ...`` into a Cap.

    A line without a ``type, parameters`` separator contributes nothing.
    Malformed parameters produce a warning and an empty parameter set.
    """
    match = _CAP_RE.match(text)
    if match is None:
        return None

    try:
        parameters = parse_cap_parameters(match.group("parameters"))
    except CapParseError as exc:
        logger.warning("parse error: %s in %r", exc, text)
        parameters = {}

    return Cap(type=match.group("type"), parameters=parameters)


def parse_cap_parameters(text: Optional[str]) -> Dict[str, CapabilityValue]:
    """Consume a comma separated ``name=(type)value`` list.

    Raises CapParseError on a malformed choice or range.
    """
    parameters: Dict[str, CapabilityValue] = {}
    remaining = text

    while remaining:
        match = _PARAMETER_RE.search(remaining)
        if match is None:
            break

        name = match.group("name")
        value_type = match.group("type")
        rest = match.group("rest")

        if rest.startswith("{"):
            value, remaining = _parse_choice(rest, value_type)
        elif rest.startswith("["):
            value, remaining = _parse_range(rest, value_type)
        else:
            atom = _ATOM_RE.match(rest)
            value = Atom(atom.group("value"), value_type)
            remaining = atom.group("rest")

        parameters[name] = value

    return parameters


def _parse_choice(rest: str, value_type: Optional[str]) -> tuple[Choice, str]:
    match = _CHOICE_RE.match(rest)
    if match is None:
        raise CapParseError(f"choice {rest!r}")
    items = tuple(
        _CHOICE_TYPE_RE.sub("", item.strip())
        for item in match.group("list").split(", ")
    )
    return Choice(items, value_type), match.group("rest")


def _parse_range(rest: str, value_type: Optional[str]) -> tuple[Range, str]:
    match = _RANGE_RE.match(rest)
    if match is None:
        raise CapParseError(f"range {rest!r}")
    value = Range(
        min=match.group("min"),
        max=match.group("max"),
        mindenom=match.group("mindenom") or None,
        maxdenom=match.group("maxdenom") or None,
        step=match.group("step") or None,
        value_type=value_type,
    )
    return value, match.group("rest")


__all__ = [
    "Atom",
    "Range",
    "Choice",
    "CapabilityValue",
    "Cap",
    "CapParseError",
    "DeviceRecord",
    "Line",
    "LineKind",
    "classify_line",
    "get_nested",
    "parse_cap",
    "parse_cap_parameters",
    "parse_device_monitor_output",
    "set_nested",
]
