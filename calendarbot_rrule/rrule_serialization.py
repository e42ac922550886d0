"""RFC 5545 content-line parsing and emission for recurrence components.

A content line has the shape ``NAME[;PARAM=VALUE...]:VALUE``. Rule lines
(RRULE, EXRULE) carry a ``KEY=VALUE;KEY=VALUE`` list as their value; date
lines (DTSTART, RDATE, EXDATE) carry a single literal.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Union

from .rrule_exceptions import MalformedParameter, MalformedProperty

logger = logging.getLogger(__name__)

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9-]+$")

# Only these carry a KEY=VALUE list; any other value is kept verbatim
RULE_PROPERTIES = frozenset({"RRULE", "EXRULE"})

PropertyValue = Union[str, dict[str, str]]


@dataclass(frozen=True)
class Property:
    """One parsed content line.

    ``value`` is a ``dict`` (in input order) for rule lines and a ``str`` for
    everything else. Names and parameter keys are upper-cased.
    """

    name: str
    parameters: dict[str, str] = field(default_factory=dict)
    value: PropertyValue = ""

    @property
    def is_multiple(self) -> bool:
        return isinstance(self.value, dict)

    def param(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.parameters.get(key.upper(), default)

    def to_text(self) -> str:
        return emit(self.name, self.value, self.parameters)

    def __str__(self) -> str:
        return self.to_text()


def split_parameter(token: str, source: str) -> tuple[str, str]:
    """Split one ``KEY=VALUE`` token, upper-casing the key.

    Raises:
        MalformedParameter: If the token is not exactly one KEY=VALUE pair
    """
    key, sep, value = token.partition("=")
    key = key.strip()
    value = value.strip()
    if not sep or not key or "=" in value:
        raise MalformedParameter(f"Invalid parameter: {token.strip()} in {source}", token.strip())
    return key.upper(), value


def parse_parameter_list(text: str) -> dict[str, str]:
    """Parse ``KEY=VALUE;KEY=VALUE`` into an ordered dict.

    Raises:
        MalformedParameter: On a non KEY=VALUE token or a duplicate key
    """
    params: dict[str, str] = {}
    for token in text.split(";"):
        if not token.strip():
            continue
        key, value = split_parameter(token, text)
        if key in params:
            raise MalformedParameter(f"Duplicate parameter: {key} in {text}", key)
        params[key] = value
    return params


def parse_property(line: str) -> Property:
    """Parse one unfolded content line.

    Raises:
        MalformedProperty: If the line is not ``NAME[;PARAMS]:VALUE``
        MalformedParameter: If a parameter token is malformed
    """
    text = line.strip()
    head, sep, raw_value = text.partition(":")
    raw_value = raw_value.strip()
    if not sep or not raw_value:
        raise MalformedProperty(f"Invalid property: {text}", text)

    name_and_params = head.split(";")
    name = name_and_params[0].strip().upper()
    if not _NAME_PATTERN.match(name):
        raise MalformedProperty(f"Invalid property: {text}", text)

    parameters: dict[str, str] = {}
    for token in name_and_params[1:]:
        if not token.strip():
            continue
        key, value = split_parameter(token, text)
        if key in parameters:
            raise MalformedParameter(f"Duplicate parameter: {key} in {text}", key)
        # TZID values may be quoted per RFC 5545 3.2
        parameters[key] = value.strip('"')

    value: PropertyValue
    if name in RULE_PROPERTIES:
        value = parse_parameter_list(raw_value)
    else:
        value = raw_value

    return Property(name=name, parameters=parameters, value=value)


def unfold_lines(text: str) -> list[str]:
    """Unfold RFC 5545 continuation lines and drop blank lines.

    A line starting with a space or a tab continues the previous line; the
    leading whitespace character is removed.
    """
    lines: list[str] = []
    for raw in re.split(r"\r\n|\n|\r", text):
        if raw[:1] in (" ", "\t") and lines:
            lines[-1] += raw[1:]
            continue
        lines.append(raw)
    return [line.strip() for line in lines if line.strip()]


def parse_properties(text: str) -> list[Property]:
    """Parse a block of content lines into properties, in input order."""
    properties = [parse_property(line) for line in unfold_lines(text)]
    logger.debug("Parsed %d properties", len(properties))
    return properties


def emit(name: str, value: PropertyValue, parameters: Optional[dict[str, str]] = None) -> str:
    """Render a content line."""
    text = name.upper()
    for key, param in (parameters or {}).items():
        text += f";{key}={param}"
    text += ":"
    if isinstance(value, dict):
        text += ";".join(f"{key}={item}" for key, item in value.items())
    else:
        text += value
    return text
