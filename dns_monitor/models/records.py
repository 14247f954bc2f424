"""DNS Monitor: DNS Record Models.

A closed set of record variants discriminated by ``type``. Anything the
resolver returns that is not one of the known types lands in
``UnknownRecord`` with its extra fields kept in a bag, so new record kinds
are stored and compared without schema changes.

``ttl`` is carried for display only. It is never part of identity, equality
for change purposes, or the stored encoding.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    field_validator,
    model_validator,
)


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _as_int(value: Any) -> int:
    """Missing or garbled numeric fields normalize to 0."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [_as_str(v) for v in value]
    return [_as_str(value)]


Str = Annotated[str, BeforeValidator(_as_str)]
Int = Annotated[int, BeforeValidator(_as_int)]


class BaseRecord(BaseModel):
    """Fields shared by every record variant."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    host: Str = ""
    ttl: Annotated[Optional[int], BeforeValidator(_as_optional_int)] = None

    def without_ttl(self):
        """Copy of this record with the volatile TTL dropped."""
        return self.model_copy(update={"ttl": None})

    def comparable(self) -> Dict[str, Any]:
        """Every field that counts for change detection."""
        return self.model_dump(exclude={"ttl"})


class ARecord(BaseRecord):
    type: Literal["A"] = "A"
    ip: Str = ""


class AAAARecord(BaseRecord):
    type: Literal["AAAA"] = "AAAA"
    ipv6: Str = ""


class CNAMERecord(BaseRecord):
    type: Literal["CNAME"] = "CNAME"
    target: Str = ""


class NSRecord(BaseRecord):
    type: Literal["NS"] = "NS"
    target: Str = ""


class PTRRecord(BaseRecord):
    type: Literal["PTR"] = "PTR"
    target: Str = ""


class MXRecord(BaseRecord):
    type: Literal["MX"] = "MX"
    target: Str = ""
    priority: Int = Field(default=0, validation_alias=AliasChoices("priority", "pri"))


class TXTRecord(BaseRecord):
    """TXT strings are kept sorted: the record is treated as an unordered set."""

    type: Literal["TXT"] = "TXT"
    text: Annotated[List[str], BeforeValidator(_as_str_list)] = Field(
        default_factory=list,
        validation_alias=AliasChoices("text", "txt", "entries"),
    )

    @field_validator("text")
    @classmethod
    def _sorted(cls, v: List[str]) -> List[str]:
        return sorted(v)


class SRVRecord(BaseRecord):
    type: Literal["SRV"] = "SRV"
    target: Str = ""
    port: Int = 0
    priority: Int = Field(default=0, validation_alias=AliasChoices("priority", "pri"))
    weight: Int = 0


class SOARecord(BaseRecord):
    type: Literal["SOA"] = "SOA"
    primary_nameserver: Str = Field(
        default="", validation_alias=AliasChoices("primary_nameserver", "mname")
    )
    responsible_email: Str = Field(
        default="", validation_alias=AliasChoices("responsible_email", "rname")
    )


class CAARecord(BaseRecord):
    type: Literal["CAA"] = "CAA"
    flags: Int = 0
    tag: Str = ""
    value: Str = ""


FieldValue = Union[str, List[str]]


class UnknownRecord(BaseRecord):
    """Fallback for record types without a dedicated variant."""

    type: Str
    attributes: Dict[str, FieldValue] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "attributes" in data:
            return data
        bag: Dict[str, FieldValue] = {}
        for key, value in data.items():
            if key in ("type", "host", "ttl"):
                continue
            if isinstance(value, (list, tuple)):
                bag[str(key)] = _as_str_list(value)
            else:
                bag[str(key)] = _as_str(value)
        return {
            "type": data.get("type", ""),
            "host": data.get("host", ""),
            "ttl": data.get("ttl"),
            "attributes": bag,
        }

    @field_validator("type")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper()


RECORD_CLASSES = {
    "A": ARecord,
    "AAAA": AAAARecord,
    "CNAME": CNAMERecord,
    "NS": NSRecord,
    "PTR": PTRRecord,
    "MX": MXRecord,
    "TXT": TXTRecord,
    "SRV": SRVRecord,
    "SOA": SOARecord,
    "CAA": CAARecord,
}

KNOWN_TYPES = frozenset(RECORD_CLASSES)


def record_tag(value: Any) -> str:
    """Discriminator: known type name, or "unknown" for everything else."""
    if isinstance(value, dict):
        rtype = value.get("type")
    else:
        rtype = getattr(value, "type", None)
    rtype = _as_str(rtype).upper()
    return rtype if rtype in KNOWN_TYPES else "unknown"


DNSRecord = Annotated[
    Union[
        Annotated[ARecord, Tag("A")],
        Annotated[AAAARecord, Tag("AAAA")],
        Annotated[CNAMERecord, Tag("CNAME")],
        Annotated[NSRecord, Tag("NS")],
        Annotated[PTRRecord, Tag("PTR")],
        Annotated[MXRecord, Tag("MX")],
        Annotated[TXTRecord, Tag("TXT")],
        Annotated[SRVRecord, Tag("SRV")],
        Annotated[SOARecord, Tag("SOA")],
        Annotated[CAARecord, Tag("CAA")],
        Annotated[UnknownRecord, Tag("unknown")],
    ],
    Discriminator(record_tag),
]

record_adapter: TypeAdapter = TypeAdapter(DNSRecord)
