from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.carts.conf import get_cart_settings
from apps.carts.repositories import MergeReceiptRepository
from apps.common import get_logger

logger = get_logger(__name__).bind(component="carts", layer="command")


class Command(BaseCommand):
    help = (
        "Delete merge receipts older than CART_MERGE_RECEIPT_TTL. "
        "Run it periodically, e.g. from cron."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only report how many receipts would be deleted",
        )

    def handle(self, *args, **options):
        ttl = get_cart_settings().merge_receipt_ttl
        cutoff = timezone.now() - ttl
        repo = MergeReceiptRepository()
        if options["dry_run"]:
            count = repo.list(merged_at__lt=cutoff).count()
            self.stdout.write(f"{count} merge receipts older than {cutoff:%Y-%m-%d %H:%M} would be deleted.")
            return
        deleted = repo.prune(cutoff)
        logger.info("Pruned merge receipts", deleted=deleted, cutoff=cutoff.isoformat())
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} merge receipts."))
