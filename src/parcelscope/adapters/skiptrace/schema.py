"""Pydantic models for skip-trace search payloads.

Vendors disagree on nearly every key: persons may live under ``results``,
``data.persons``, ``persons`` or ``person``; phones, emails and relatives arrive
as bare strings or as objects. Anything unrecognized degrades to an empty value.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _first_text(mapping: Mapping[str, object], *keys: str) -> str | None:
    for key in keys:
        value = mapping.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
    return None


def _as_list(value: object) -> list[object]:
    if isinstance(value, list):
        return cast(list[object], value)
    if value is None:
        return []
    return [value]


class SkipTraceBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PhonePayload(SkipTraceBaseModel):
    number: str
    phone_type: str | None = None
    do_not_call: bool = False

    @model_validator(mode="before")
    @classmethod
    def _normalize_shape(cls, value: object) -> object:
        if isinstance(value, str | int) and not isinstance(value, bool):
            return {"number": str(value)}
        if isinstance(value, Mapping):
            mapping = cast(Mapping[str, object], value)
            dnc = mapping.get("dnc", mapping.get("do_not_call", False))
            if isinstance(dnc, str):
                dnc = dnc.strip().lower() in {"true", "y", "yes", "1"}
            return {
                "number": _first_text(mapping, "number", "phone", "phoneNumber") or "",
                "phone_type": _first_text(mapping, "type", "phone_type", "phoneType"),
                "do_not_call": dnc is True,
            }
        return {"number": ""}


class PersonPayload(SkipTraceBaseModel):
    first_name: str | None = None
    last_name: str | None = None
    age: int | None = None
    phones: list[PhonePayload] = Field(default_factory=list[PhonePayload])
    emails: list[str] = Field(default_factory=list[str])
    relatives: list[str] = Field(default_factory=list[str])

    @model_validator(mode="before")
    @classmethod
    def _normalize_shape(cls, value: object) -> object:
        if not isinstance(value, Mapping):
            return {}
        mapping = cast(Mapping[str, object], value)
        data: dict[str, object] = dict(mapping)
        name = mapping.get("name")
        name_parts = cast(Mapping[str, object], name) if isinstance(name, Mapping) else {}
        data["first_name"] = _first_text(mapping, "first_name", "firstName") or _first_text(
            name_parts, "first", "first_name", "firstName"
        )
        data["last_name"] = _first_text(mapping, "last_name", "lastName") or _first_text(
            name_parts, "last", "last_name", "lastName"
        )
        data["phones"] = _as_list(mapping.get("phones", mapping.get("phoneNumbers")))
        data["emails"] = _as_list(mapping.get("emails", mapping.get("emailAddresses")))
        data["relatives"] = _as_list(mapping.get("relatives"))
        return data

    @field_validator("age", mode="before")
    @classmethod
    def _parse_age(cls, value: object) -> int | None:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        return None

    @field_validator("phones", mode="after")
    @classmethod
    def _drop_blank_phones(cls, value: list[PhonePayload]) -> list[PhonePayload]:
        return [phone for phone in value if phone.number]

    @field_validator("emails", mode="before")
    @classmethod
    def _parse_emails(cls, value: object) -> list[str]:
        emails: list[str] = []
        for item in _as_list(value):
            if isinstance(item, str) and item.strip():
                emails.append(item.strip())
            elif isinstance(item, Mapping):
                email = _first_text(cast(Mapping[str, object], item), "email", "address")
                if email:
                    emails.append(email)
        return emails

    @field_validator("relatives", mode="before")
    @classmethod
    def _parse_relatives(cls, value: object) -> list[str]:
        relatives: list[str] = []
        for item in _as_list(value):
            if isinstance(item, str) and item.strip():
                relatives.append(item.strip())
            elif isinstance(item, Mapping):
                mapping = cast(Mapping[str, object], item)
                full = _first_text(mapping, "name", "full_name", "fullName")
                if full is None:
                    parts = [
                        _first_text(mapping, "first_name", "firstName"),
                        _first_text(mapping, "last_name", "lastName"),
                    ]
                    full = " ".join(part for part in parts if part) or None
                if full:
                    relatives.append(full)
        return relatives


class PersonSearchResponse(SkipTraceBaseModel):
    persons: list[PersonPayload] = Field(default_factory=list[PersonPayload])
    error: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _locate_persons(cls, value: object) -> object:
        if not isinstance(value, Mapping):
            return {"persons": []}
        payload = cast(Mapping[str, object], value)
        error = payload.get("error")
        error_text = _first_text(error, "message") if isinstance(error, Mapping) else error
        candidates: object = None
        data = payload.get("data")
        if isinstance(data, Mapping):
            candidates = cast(Mapping[str, object], data).get("persons")
        for key in ("results", "persons", "person"):
            if candidates is None:
                candidates = payload.get(key)
        return {
            "persons": [item for item in _as_list(candidates) if isinstance(item, Mapping)],
            "error": error_text if isinstance(error_text, str) else None,
        }
