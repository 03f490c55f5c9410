"""Client schemas: directory entries and the snapshot copied onto quotes."""

from __future__ import annotations

import re
import uuid

from pydantic import BaseModel, ConfigDict

from quoteflow.models.enums import PersonType

_NON_DIGIT = re.compile(r"\D")


def detect_person_type(tax_id: str | None) -> PersonType:
    """CPF (11 digits or fewer) is an individual, anything longer a company."""
    digits = _NON_DIGIT.sub("", tax_id or "")
    return PersonType.INDIVIDUAL if len(digits) <= 11 else PersonType.COMPANY


class Client(BaseModel):
    """A client as returned by the client directory."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    legal_name: str
    trade_name: str | None = None
    tax_id: str | None = None
    person_type: PersonType | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    phone: str | None = None
    email: str | None = None


class ClientSnapshot(BaseModel):
    """Client fields frozen onto a quote when it is issued or duplicated."""

    name: str
    tax_id: str = ""
    person_type: PersonType = PersonType.INDIVIDUAL
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    phone: str | None = None
    email: str | None = None

    @classmethod
    def from_client(cls, client: Client) -> ClientSnapshot:
        tax_id = client.tax_id or ""
        return cls(
            name=client.legal_name,
            tax_id=tax_id,
            person_type=detect_person_type(tax_id),
            address=client.address or None,
            city=client.city or None,
            state=client.state or None,
            zip_code=client.zip_code or None,
            phone=client.phone or None,
            email=client.email or None,
        )
