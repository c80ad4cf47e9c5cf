# inventory/management/commands/check_inventory.py

from __future__ import annotations

from django.core.management.base import BaseCommand

from inventory.engine.errors import NotFoundError
from inventory.services import get_inventory_service


class Command(BaseCommand):
    help = "Verify Product.aggregate_stock == sum(batch.quantity_remaining); optionally repair drift."

    def add_arguments(self, parser):
        parser.add_argument(
            "--product",
            dest="product_id",
            help="Only check this product id (optional)",
        )
        parser.add_argument(
            "--repair",
            action="store_true",
            help="Reset drifted aggregates from their batches.",
        )
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any unrepaired mismatch is found.",
        )

    def handle(self, *args, **options):
        product_id = (options.get("product_id") or "").strip() or None
        repair = bool(options.get("repair"))
        strict = bool(options.get("strict"))

        service = get_inventory_service()

        self.stdout.write(self.style.MIGRATE_HEADING("Inventory aggregate check"))
        self.stdout.write(f"Scope: {product_id or 'ALL PRODUCTS'}")
        self.stdout.write("")

        try:
            mismatches = service.audit_aggregates(product_id)
        except NotFoundError as exc:
            self.stderr.write(self.style.ERROR(str(exc)))
            return self._exit(strict)

        if not mismatches:
            self.stdout.write(self.style.SUCCESS("[OK] Every aggregate matches its batches"))
            return self._exit(False)

        self.stderr.write(self.style.ERROR(f"[FAIL] Aggregate mismatches: {len(mismatches)}"))
        for m in mismatches:
            self.stderr.write(
                f"  product_id={m.product_id} aggregate={m.aggregate_stock} "
                f"batches={m.batch_total} difference={m.difference}"
            )

        unrepaired = len(mismatches)

        if repair:
            self.stdout.write("")
            for m in mismatches:
                product = service.reconcile_aggregate(product_id=m.product_id)
                unrepaired -= 1
                self.stdout.write(
                    self.style.SUCCESS(f"[FIXED] product_id={product.id} aggregate={product.aggregate_stock}")
                )

        self.stdout.write("")
        if unrepaired == 0:
            self.stdout.write(self.style.SUCCESS("Aggregates repaired"))
        else:
            self.stderr.write(self.style.ERROR(f"Found {unrepaired} problem(s). Re-run with --repair to fix."))

        return self._exit(strict and unrepaired > 0)

    def _exit(self, fail: bool):
        if fail:
            raise SystemExit(1)
        return None
