"""
Cart

Client-side aggregation of one customer's selections before submission.
Pure in-memory state: no I/O, no persistence. The order workflow turns a
Cart into an Order plus Order Items.

Invariant: every line has quantity >= 1. Adjusting a line to zero or below
removes it.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Iterator, Mapping

from qrmenu.core.exceptions import ValidationFailedError


@dataclass(frozen=True)
class ProductSnapshot:
    """Name and price of a product at the moment it was put in the cart."""
    id: str
    name: str
    price: Decimal

    @classmethod
    def of(cls, product) -> "ProductSnapshot":
        return cls(id=product.id, name=product.name, price=Decimal(product.price))


@dataclass
class CartLine:
    product: ProductSnapshot
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity


class Cart:
    """
    Ordered set of (product snapshot, quantity) lines.

    Example:
        >>> cart = Cart()
        >>> cart.add(pizza)
        >>> cart.add(pizza)
        >>> cart.adjust_quantity(pizza.id, -1)
        >>> cart.item_count()
        1
    """

    def __init__(self) -> None:
        self._lines: dict[str, CartLine] = {}

    def add(self, product) -> None:
        """Add one unit of `product`, merging with an existing line."""
        line = self._lines.get(product.id)
        if line is not None:
            line.quantity += 1
        else:
            self._lines[product.id] = CartLine(ProductSnapshot.of(product), 1)

    def adjust_quantity(self, product_id: str, delta: int) -> None:
        """Add `delta` to a line; lines reaching zero are removed. Unknown ids are ignored."""
        line = self._lines.get(product_id)
        if line is None:
            return
        line.quantity += delta
        if line.quantity <= 0:
            del self._lines[product_id]

    def remove(self, product_id: str) -> None:
        self._lines.pop(product_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def total(self) -> Decimal:
        return sum((line.line_total for line in self._lines.values()), Decimal("0"))

    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def quantity_of(self, product_id: str) -> int:
        line = self._lines.get(product_id)
        return line.quantity if line else 0

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def __iter__(self) -> Iterator[CartLine]:
        return iter(list(self._lines.values()))

    def __len__(self) -> int:
        return len(self._lines)

    @classmethod
    def from_selection(
        cls,
        products: Iterable,
        selection: Mapping[str, int],
    ) -> "Cart":
        """
        Build a cart from submitted `{product_id: quantity}` pairs.

        `products` is the owner's currently available catalog; prices come
        from it, never from the client.

        Raises:
            ValidationFailedError: empty selection, unknown or unavailable
                product, or a quantity below 1
        """
        if not selection:
            raise ValidationFailedError("Cart is empty")

        by_id = {p.id: p for p in products}
        cart = cls()
        for product_id, quantity in selection.items():
            product = by_id.get(product_id)
            if product is None:
                raise ValidationFailedError(
                    "Product is not available",
                    detail=f"Product {product_id} is not on this menu",
                )
            if quantity < 1:
                raise ValidationFailedError(
                    "Quantity must be at least 1",
                    detail=f"Product {product_id} has quantity {quantity}",
                )
            cart.add(product)
            cart.adjust_quantity(product_id, quantity - 1)
        return cart
