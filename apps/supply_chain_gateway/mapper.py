"""Conversion of positional ledger records into named response fields.

The contract returns structs as positional tuples. Each entity has a fixed
field order; ordinal enumerations are decoded through an explicit table and
fail closed on values outside it.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal
from enum import IntEnum
from typing import Any

from apps.supply_chain_gateway.errors import DecodeError

_ZERO_ADDRESS = "0x" + "0" * 40


class LabelledOrdinal(IntEnum):
    """Ordinal enumeration with a human-readable label per member."""

    @property
    def label(self) -> str:
        return self.name.capitalize()


class OrganisationRole(LabelledOrdinal):
    """Company role as stored by the contract."""

    MANUFACTURER = 0
    DISTRIBUTOR = 1
    RETAILER = 2
    TRANSPORTER = 3


def label(ordinal: Any, table: type[LabelledOrdinal]) -> str:
    """
    Decode an ordinal through a label table.

    Args:
        ordinal: Raw ordinal from the ledger
        table: Enumeration describing the valid ordinals

    Returns:
        The member label

    Raises:
        DecodeError: If the ordinal is not an integer member of the table
    """
    if isinstance(ordinal, bool) or not isinstance(ordinal, int):
        raise DecodeError(f"{table.__name__} ordinal must be an integer, got {ordinal!r}")
    try:
        return table(ordinal).label
    except ValueError as e:
        raise DecodeError(f"Unknown {table.__name__} ordinal: {ordinal}", cause=e) from e


def to_jsonable(value: Any) -> Any:
    """Convert raw ledger values into JSON-serializable equivalents."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, Mapping):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else str(value)
    return value


def is_empty_record(record: Any) -> bool:
    """Return True for records made only of zero values.

    Contract mappings return a zero-valued struct for keys that were never
    written.
    """
    if record is None:
        return True
    if isinstance(record, (bytes, bytearray)):
        return not any(record)
    if isinstance(record, str):
        return record == "" or record.lower() == _ZERO_ADDRESS
    if isinstance(record, Mapping):
        return all(is_empty_record(item) for item in record.values())
    if isinstance(record, (list, tuple)):
        return all(is_empty_record(item) for item in record)
    if isinstance(record, (bool, int, Decimal)):
        return not record
    return False


def _to_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise DecodeError(f"{field} must be numeric, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError as e:
            raise DecodeError(f"{field} must be numeric, got {value!r}", cause=e) from e
    raise DecodeError(f"{field} must be numeric, got {value!r}")


def _fields(record: Any, names: Sequence[str], entity: str) -> dict[str, Any]:
    """Zip a positional record with field names."""
    if (
        isinstance(record, (list, tuple))
        and len(record) == 1
        and isinstance(record[0], (list, tuple))
    ):
        record = record[0]
    if not isinstance(record, (list, tuple)):
        raise DecodeError(f"{entity} record must be a sequence, got {type(record).__name__}")
    if len(record) < len(names):
        raise DecodeError(
            f"{entity} record has {len(record)} fields, expected {len(names)}"
        )
    return {name: to_jsonable(value) for name, value in zip(names, record)}


def map_company(record: Any) -> dict[str, Any]:
    fields = _fields(
        record, ("companyID", "name", "location", "role", "hierarchyKey"), "Company"
    )
    return {
        "companyID": fields["companyID"],
        "name": fields["name"],
        "location": fields["location"],
        "organisationRole": label(fields["role"], OrganisationRole),
        "hierarchyKey": _to_int(fields["hierarchyKey"], "hierarchyKey"),
    }


def map_drug(record: Any) -> dict[str, Any]:
    return _fields(
        record,
        (
            "productId",
            "name",
            "manufacturer",
            "manufacturingDate",
            "expiryDate",
            "owner",
            "shipment",
        ),
        "Drug",
    )


def map_purchase_order(record: Any) -> dict[str, Any]:
    fields = _fields(
        record, ("poId", "drugName", "buyer", "quantity", "seller"), "PurchaseOrder"
    )
    fields["quantity"] = _to_int(fields["quantity"], "quantity")
    return fields


def map_shipment(record: Any) -> dict[str, Any]:
    """Map a shipment record.

    ``status`` stays an opaque integer; the contract's status vocabulary is
    not exposed through its interface.
    """
    fields = _fields(
        record, ("shipmentID", "creator", "assets", "transporter", "status"), "Shipment"
    )
    if not isinstance(fields["assets"], list):
        raise DecodeError(f"Shipment assets must be a sequence, got {fields['assets']!r}")
    fields["status"] = _to_int(fields["status"], "status")
    return fields
