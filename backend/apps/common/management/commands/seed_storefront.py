from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from apps.auctions.models import Lot
from apps.carts.models import CartLine, CartMergeReceipt
from apps.catalog.models import Category, Product

CATEGORIES = ["fruits", "vegetables", "grains", "dairy"]

PRODUCTS = [
    ("Hass Avocados", "180.00", "kg", "Ripe, export grade.", ["fruits"]),
    ("Sweet Bananas", "120.00", "bunch", "", ["fruits"]),
    ("Red Onions", "90.00", "kg", "Sorted and dried.", ["vegetables"]),
    ("Sukuma Wiki", "40.00", "bunch", "", ["vegetables"]),
    ("Irish Potatoes", "1500.00", "bag", "50 kg bag, Shangi variety.", ["vegetables"]),
    ("White Maize", "4200.00", "bag", "90 kg bag.", ["grains"]),
    ("Green Grams", "160.00", "kg", "", ["grains"]),
    ("Fresh Milk", "60.00", "litre", "Pasteurised.", ["dairy"]),
    ("Natural Yoghurt", "150.00", "500ml", "", ["dairy"]),
]

# name, starting price, current price, quantity, location, days left
LOTS = [
    ("Maize, 20 bags", "60000.00", "72500.00", "20 bags", "Eldoret", 3),
    ("Coffee cherries", "30000.00", "30000.00", "500 kg", "Nyeri", 5),
    ("Dairy heifer", "85000.00", "96000.00", "1 head", "Nakuru", 2),
]

DEMO_USER = {"username": "demo", "password": "DemoPass123", "email": "demo@example.com"}


class Command(BaseCommand):
    help = "Seed the storefront catalog, live lots and a demo shopper."

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset", action="store_true", help="Delete carts, lots and products before seeding"
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options["reset"]:
            self.stdout.write("Removing existing carts, lots and products...")
            CartMergeReceipt.objects.all().delete()
            CartLine.objects.all().delete()
            Lot.objects.all().delete()
            Product.objects.all().delete()
            Category.objects.all().delete()

        self.stdout.write("Seeding categories...")
        name_to_cat = {}
        for name in CATEGORIES:
            cat, _ = Category.objects.get_or_create(name=name)
            name_to_cat[name] = cat

        self.stdout.write("Seeding products...")
        for title, price, unit, desc, cat_names in PRODUCTS:
            product, _ = Product.objects.get_or_create(
                title=title,
                defaults=dict(price=Decimal(price), unit=unit, description=desc),
            )
            product.categories.add(*(name_to_cat[c] for c in cat_names))

        self.stdout.write("Seeding lots...")
        now = timezone.now()
        for name, starting, current, quantity, location, days in LOTS:
            Lot.objects.update_or_create(
                name=name,
                defaults=dict(
                    starting_price=Decimal(starting),
                    current_price=Decimal(current),
                    available_quantity=quantity,
                    location=location,
                    start_time=now,
                    end_time=now + timedelta(days=days),
                    is_active=True,
                ),
            )

        self.stdout.write("Seeding demo shopper...")
        User = get_user_model()
        user, _ = User.objects.get_or_create(
            username=DEMO_USER["username"], defaults={"email": DEMO_USER["email"]}
        )
        user.set_password(DEMO_USER["password"])
        user.save()

        self.stdout.write(self.style.SUCCESS("Storefront seed completed."))
