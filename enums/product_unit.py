from enum import Enum


class ProductUnit(str, Enum):
    """
    Selling units for grocery products.

    Weight and volume units allow fractional cart quantities (e.g. 1.5 kg),
    counted units are always whole numbers.
    """

    PIECE = "piece"
    PACK = "pack"
    BUNCH = "bunch"
    DOZEN = "dozen"

    KILOGRAM = "kg"
    GRAM = "g"
    LITER = "l"

    @classmethod
    def from_string(cls, value: str) -> 'ProductUnit':
        """
        Convert string to ProductUnit enum.

        Handles case-insensitive matching and whitespace.

        Raises:
            ValueError: If value is not a valid unit

        Examples:
            >>> ProductUnit.from_string(" KG ")
            ProductUnit.KILOGRAM
        """
        normalized = (value or "").strip().lower()
        if not normalized:
            raise ValueError("Unit cannot be empty")

        for unit in cls:
            if unit.value == normalized:
                return unit

        valid_units = [u.value for u in cls]
        raise ValueError(
            f"Invalid unit '{value}'. Valid units: {', '.join(valid_units)}"
        )

    @property
    def allows_fraction(self) -> bool:
        """Weight/volume units can be sold in fractional quantities."""
        return self in (ProductUnit.KILOGRAM, ProductUnit.GRAM, ProductUnit.LITER)
