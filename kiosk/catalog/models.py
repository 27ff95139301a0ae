"""
==============================================================================
Product Models Module
==============================================================================

Pydantic model for entries of the code -> {name, price} lookup table.

==============================================================================
"""

from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    """
    Product resolved from a scanned code.

    Attributes:
        code: Scanned code string (barcode or QR payload)
        name: Display/report name
        price: Unit price reported to the remote endpoint
        known: False when the code was absent from the lookup table
    """

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., min_length=1, description="Scanned code")
    name: str = Field(..., min_length=1, description="Product name")
    price: float = Field(default=0, ge=0, allow_inf_nan=False, description="Unit price")
    known: bool = Field(default=True, description="Present in lookup table")

    @classmethod
    def fallback(cls, code: str) -> "Product":
        """Identity used for codes missing from the table."""
        return cls(code=code, name=code, price=0, known=False)

    def report_payload(self) -> dict:
        """JSON body sent to the reporting endpoint."""
        return {"name": str(self.name), "price": int(round(self.price))}
