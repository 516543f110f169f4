"""
Unit tests for JSON serialization helpers used by the log shipper.
"""

import json
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel

from dev_portal_core.enums import CredentialEnvironment
from dev_portal_core.utils.json_utils import dumps, loads


class _Scope(BaseModel):
    environment: CredentialEnvironment
    prefix: str


class TestDumps:
    def test_extended_types(self):
        key_id = uuid.uuid4()
        payload = {
            "key_id": key_id,
            "environment": CredentialEnvironment.PRODUCTION,
            "amount": Decimal("1.5"),
            "at": datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        }

        decoded = json.loads(dumps(payload))

        assert decoded == {
            "key_id": str(key_id),
            "environment": "production",
            "amount": 1.5,
            "at": "2024-01-02T03:04:05+00:00",
        }

    def test_pydantic_model(self):
        decoded = loads(dumps({"scope": _Scope(environment="sandbox", prefix="bas_1234abcd")}))

        assert decoded["scope"] == {"environment": "sandbox", "prefix": "bas_1234abcd"}

    def test_unserializable_falls_back_to_repr(self):
        class Opaque:
            def __repr__(self):
                return "<opaque>"

        assert loads(dumps({"value": Opaque()})) == {"value": "<opaque>"}
