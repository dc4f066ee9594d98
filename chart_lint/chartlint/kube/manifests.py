"""Decoding of rendered manifests and Kubernetes object-name rules."""

from __future__ import annotations

import json
import re
from io import StringIO
from typing import Any, Iterator

from pydantic import BaseModel, Field, ValidationError, field_validator
from ruamel.yaml import YAML, YAMLError

from chartlint.errors import ManifestDecodeError

_DNS1123_LABEL_RE = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
_DNS1123_SUBDOMAIN_RE = re.compile(
    r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$"
)
_DNS1035_LABEL_RE = re.compile(r"^[a-z]([-a-z0-9]*[a-z0-9])?$")

DNS1123_LABEL_MAX = 63
DNS1123_SUBDOMAIN_MAX = 253
DNS1035_LABEL_MAX = 63


class ObjectMetadata(BaseModel):
    name: str = ""
    namespace: str = ""
    annotations: dict[str, Any] = Field(default_factory=dict)

    @field_validator("name", "namespace", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Any:
        return "" if value is None else str(value)

    @field_validator("annotations", mode="before")
    @classmethod
    def _null_annotations(cls, value: Any) -> Any:
        return {} if value is None else value


class K8sObject(BaseModel):
    """The handful of fields lint rules read from a rendered object."""

    api_version: str = Field("", alias="apiVersion")
    kind: str = ""
    metadata: ObjectMetadata = Field(default_factory=ObjectMetadata)

    @field_validator("api_version", "kind", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Any:
        return "" if value is None else str(value)

    @field_validator("metadata", mode="before")
    @classmethod
    def _null_metadata(cls, value: Any) -> Any:
        return {} if value is None else value

    @classmethod
    def from_document(cls, document: Any) -> K8sObject:
        if not isinstance(document, dict):
            raise ManifestDecodeError(
                f"cannot unmarshal {type(document).__name__} into a Kubernetes object"
            )
        try:
            return cls.model_validate(document)
        except ValidationError as e:
            raise ManifestDecodeError(str(e)) from e


def _decode_json_stream(content: str) -> Iterator[Any]:
    decoder = json.JSONDecoder()
    pos = 0
    while True:
        while pos < len(content) and content[pos].isspace():
            pos += 1
        if pos >= len(content):
            return
        try:
            document, pos = decoder.raw_decode(content, pos)
        except json.JSONDecodeError as e:
            if e.pos >= len(e.doc):
                raise ManifestDecodeError("unexpected end of JSON input") from e
            raise ManifestDecodeError(
                f"invalid character '{e.doc[e.pos]}' at line {e.lineno} column {e.colno}: {e.msg}"
            ) from e
        yield document


def _decode_yaml_stream(content: str) -> Iterator[Any]:
    yaml = YAML(typ="safe", pure=True)
    try:
        yield from yaml.load_all(StringIO(content))
    except YAMLError as e:
        raise ManifestDecodeError(str(e)) from e


def decode_documents(content: str) -> Iterator[Any]:
    """Yield each document in rendered output.

    Output whose first non-blank character opens a JSON object or array is read
    as a JSON stream; anything else as ``---`` separated YAML. Iteration stops
    with ManifestDecodeError at the first document that does not decode.
    """
    stripped = content.lstrip()
    if stripped.startswith(("{", "[")):
        return _decode_json_stream(stripped)
    return _decode_yaml_stream(content)


def _dns1123_subdomain(name: str) -> list[str]:
    errors = []
    if len(name) > DNS1123_SUBDOMAIN_MAX:
        errors.append(f"must be no more than {DNS1123_SUBDOMAIN_MAX} characters")
    if not _DNS1123_SUBDOMAIN_RE.match(name):
        errors.append(
            "a lowercase RFC 1123 subdomain must consist of lower case alphanumeric "
            "characters, '-' or '.', and must start and end with an alphanumeric character"
        )
    return errors


def _dns1123_label(name: str) -> list[str]:
    errors = []
    if len(name) > DNS1123_LABEL_MAX:
        errors.append(f"must be no more than {DNS1123_LABEL_MAX} characters")
    if not _DNS1123_LABEL_RE.match(name):
        errors.append(
            "a lowercase RFC 1123 label must consist of lower case alphanumeric "
            "characters or '-', and must start and end with an alphanumeric character"
        )
    return errors


def _dns1035_label(name: str) -> list[str]:
    errors = []
    if len(name) > DNS1035_LABEL_MAX:
        errors.append(f"must be no more than {DNS1035_LABEL_MAX} characters")
    if not _DNS1035_LABEL_RE.match(name):
        errors.append(
            "a DNS-1035 label must consist of lower case alphanumeric characters or '-', "
            "start with an alphabetic character, and end with an alphanumeric character"
        )
    return errors


def _path_segment(name: str) -> list[str]:
    if name in (".", ".."):
        return [f"may not be {name!r}"]
    return [f"may not contain {c!r}" for c in ("/", "%") if c in name]


def _no_validation(name: str) -> list[str]:
    return []


_NAME_VALIDATORS = {
    "service": _dns1035_label,
    "namespace": _dns1123_label,
    "serviceaccount": _dns1123_subdomain,
    "certificatesigningrequest": _no_validation,
    "role": _path_segment,
    "clusterrole": _path_segment,
    "rolebinding": _path_segment,
    "clusterrolebinding": _path_segment,
}


def name_errors(kind: str, name: str) -> list[str]:
    """Return the naming problems with ``name`` for an object of ``kind``.

    Most kinds use RFC 1123 subdomain rules; a few have their own.
    """
    validator = _NAME_VALIDATORS.get(kind.lower(), _dns1123_subdomain)
    return validator(name)
