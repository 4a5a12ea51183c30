import logging
from dataclasses import dataclass

from django.apps import apps
from django.db import transaction

from .models import Product

logger = logging.getLogger(__name__)

DETACH = "detach"
DELETE = "delete"


@dataclass(frozen=True)
class ReferenceRule:
    """
    What happens to rows of ``model`` whose ``field`` points at an entity
    that is being removed: DETACH clears the reference and keeps the row,
    DELETE removes the row.
    """
    model: str
    field: str
    action: str

    def apply(self, instance) -> int:
        dependents = apps.get_model(self.model)._default_manager.filter(**{self.field: instance})
        if self.action == DETACH:
            return dependents.update(**{self.field: None})
        if self.action == DELETE:
            deleted, _ = dependents.delete()
            return deleted
        raise ValueError(f"Unknown reference action: {self.action}")


# Every foreign key to Product is PROTECT, so a dependent missing from this
# table makes product deletion fail and roll back.
PRODUCT_REFERENCE_RULES = (
    ReferenceRule("order.OrderItem", "product", DETACH),
    ReferenceRule("inventory.Transaction", "product", DELETE),
)


class ProductService:

    @staticmethod
    @transaction.atomic
    def update_product(serializer):
        return serializer.save()

    @staticmethod
    @transaction.atomic
    def delete_product(product: Product, rules=PRODUCT_REFERENCE_RULES):
        """
        Remove a product and clean up everything that references it.

        Order items keep their quantity/price snapshot but lose the link to
        the catalog; ledger entries for the product are deleted. All of it
        commits together or not at all.

        Returns a mapping of dependent model label -> rows affected.
        """
        product_id = product.pk
        affected = {}
        for rule in rules:
            affected[rule.model] = rule.apply(product)
        product.delete()

        logger.info("Deleted product=%s dependents=%s", product_id, affected)
        return affected
