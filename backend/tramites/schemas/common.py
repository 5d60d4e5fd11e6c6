"""Shared schema types — money as JSON numbers, Decimal inside."""

from decimal import Decimal
from typing import Annotated

from pydantic import PlainSerializer

Money = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json"),
]
