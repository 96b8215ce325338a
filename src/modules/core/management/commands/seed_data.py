from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.accounts.constants import Role
from modules.accounts.models import Profile
from modules.cart.models import CartItem, Customization, Size
from modules.products.models import Product, ProductCategory


class Command(BaseCommand):
    help = "Seed database with demo users, products, customizations and carts."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users = self._seed_users()
        products = self._seed_products()
        customizations = self._seed_customizations(users["customer"], products)
        lines = self._seed_cart(users["customer"], customizations)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users)}, "
                f"products={len(products)}, "
                f"customizations={len(customizations)}, "
                f"cart_lines={lines}"
            )
        )

    def _seed_users(self) -> dict:
        self.stdout.write("Creating users...")
        User = get_user_model()
        users = {}
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")

        seed_users = [
            ("manager", "manager123", Role.MANAGER, "Meera (Manager)"),
            ("designer", "designer123", Role.DESIGNER, "Dev (Designer)"),
            ("designer2", "designer123", Role.DESIGNER, "Diya (Designer)"),
            ("customer", "customer123", Role.CUSTOMER, "Kavya"),
        ]
        for username, password, role, display_name in seed_users:
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(username, password=password)
            Profile.objects.update_or_create(
                user=user,
                defaults={"role": role, "display_name": display_name},
            )
            users[username] = user
        self.stdout.write(self.style.SUCCESS("Creating users... Done!"))
        return users

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("SHIRT-001", "Linen Shirt", ProductCategory.SHIRT, Decimal("1299.00")),
            ("SHIRT-002", "Oxford Shirt", ProductCategory.SHIRT, Decimal("1499.00")),
            ("KURTA-001", "Cotton Kurta", ProductCategory.KURTA, Decimal("999.00")),
            ("KURTA-002", "Silk Kurta", ProductCategory.KURTA, Decimal("2499.00")),
            ("DRESS-001", "Wrap Dress", ProductCategory.DRESS, Decimal("1899.00")),
            ("TROUS-001", "Chinos", ProductCategory.TROUSERS, Decimal("1199.00")),
        ]
        for sku, name, category, price in catalog:
            product, _ = Product.objects.get_or_create(
                sku=sku,
                defaults={"name": name, "category": category, "price": price},
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_customizations(self, customer, products: list[Product]) -> list[Customization]:
        self.stdout.write("Creating customizations...")
        fabrics = ["cotton", "linen", "silk", "denim"]
        colors = ["indigo", "ivory", "maroon", "olive"]
        customizations: list[Customization] = []

        for product in products[:2]:
            customization, _ = Customization.objects.get_or_create(
                owner=customer,
                product=product,
                defaults={
                    "name": product.name,
                    "fabric": random.choice(fabrics),
                    "color": random.choice(colors),
                    "size": random.choice(Size.values),
                    "unit_price": product.price,
                },
            )
            customizations.append(customization)

        custom, _ = Customization.objects.get_or_create(
            owner=customer,
            product=None,
            name="Custom Sherwani",
            defaults={
                "fabric": "silk",
                "color": "gold",
                "pattern": "paisley",
                "size": Size.L,
                "notes": "Mandarin collar, hand embroidery on cuffs.",
                "unit_price": Decimal("800.00"),
            },
        )
        customizations.append(custom)
        self.stdout.write(self.style.SUCCESS("Creating customizations... Done!"))
        return customizations

    def _seed_cart(self, customer, customizations: list[Customization]) -> int:
        self.stdout.write("Filling cart...")
        created = 0
        for customization in customizations:
            _, was_created = CartItem.objects.get_or_create(
                owner=customer,
                customization=customization,
                defaults={"quantity": random.randint(1, 2)},
            )
            created += int(was_created)
        self.stdout.write(self.style.SUCCESS("Filling cart... Done!"))
        return created
