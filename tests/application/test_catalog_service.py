"""Tests for the catalog service."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import FakeImageStore, make_product, make_user
from storefront.application.catalog_service import CatalogService, ProductInput
from storefront.application.review_service import ReviewService
from storefront.application.shopper_service import ShopperService
from storefront.domain.exceptions import ExternalServiceError, NotFoundError, ValidationError


class TestBrowse:
    """Tests for listing products."""

    async def test_search_and_category(self, session: AsyncSession) -> None:
        """Search matches names; category narrows the list."""
        await make_product(session, name="iPhone 15 Case", category="Accessories")
        await make_product(session, name="iPhone 15", category="New Phones")
        await make_product(session, name="Galaxy S23", category="Refurbished")
        service = CatalogService(session)

        found = await service.list_products(search="iphone")
        accessories = await service.list_products(search="iphone", category="Accessories")

        assert sorted(p.name for p in found) == ["iPhone 15", "iPhone 15 Case"]
        assert [p.name for p in accessories] == ["iPhone 15 Case"]

    async def test_missing_product(self, session: AsyncSession) -> None:
        """Unknown ids raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await CatalogService(session).get_product("missing")


class TestAdminProducts:
    """Tests for product management."""

    async def test_create_uploads_images(self, session: AsyncSession, images: FakeImageStore) -> None:
        """Images are uploaded and the first becomes primary."""
        product = await CatalogService(session, image_store=images).create_product(
            ProductInput(
                name=" Pixel 9 ",
                price_cents=79900,
                stock=3,
                variations=[{"name": "Color", "options": ["Obsidian", {"value": "Peony", "price": 81900}]}],
            ),
            ["data:image/png;base64,AAAA", "https://cdn.test/back.png"],
        )

        assert product.name == "Pixel 9"
        assert product.category == "New Phones"
        assert product.image_urls == ["https://images.test/1.jpg", "https://images.test/2.jpg"]
        assert product.image_url == "https://images.test/1.jpg"
        assert product.variations[0]["options"][1] == {"value": "Peony", "price": 81900}

    async def test_create_requires_image(self, session: AsyncSession, images: FakeImageStore) -> None:
        """A product needs at least one image."""
        with pytest.raises(ValidationError, match="At least one image"):
            await CatalogService(session, image_store=images).create_product(
                ProductInput(name="Pixel 9", price_cents=79900),
                [],
            )

    async def test_upload_failure(self, session: AsyncSession) -> None:
        """Image host failures surface as ExternalServiceError."""
        with pytest.raises(ExternalServiceError):
            await CatalogService(session, image_store=FakeImageStore(fail=True)).create_product(
                ProductInput(name="Pixel 9", price_cents=79900),
                ["data:image/png;base64,AAAA"],
            )

    async def test_update_keeps_and_appends_images(self, session: AsyncSession, images: FakeImageStore) -> None:
        """Kept URLs come first, then new uploads."""
        product = await make_product(session, image_urls=["https://old/1.jpg", "https://old/2.jpg"])
        service = CatalogService(session, image_store=images)

        updated = await service.update_product(
            product.id,
            ProductInput(price_cents=100),
            images=["data:image/png;base64,BBBB"],
            keep_image_urls=["https://old/2.jpg"],
        )

        assert updated.image_urls == ["https://old/2.jpg", "https://images.test/1.jpg"]
        assert updated.image_url == "https://old/2.jpg"
        assert updated.price_cents == 100

    async def test_update_must_keep_an_image(self, session: AsyncSession, images: FakeImageStore) -> None:
        """Dropping every image is rejected."""
        product = await make_product(session)
        with pytest.raises(ValidationError, match="At least one image must remain"):
            await CatalogService(session, image_store=images).update_product(
                product.id,
                ProductInput(),
                keep_image_urls=[],
            )

    async def test_delete_removes_dependents(self, session: AsyncSession) -> None:
        """Deleting a product removes its reviews and list entries."""
        user = await make_user(session)
        product = await make_product(session)
        await ReviewService(session).upsert_review(user, product.id, 5, "Great", "Love it")
        await ShopperService(session).add_to_wishlist(user.id, product.id)
        service = CatalogService(session)

        await service.delete_product(product.id)

        with pytest.raises(NotFoundError):
            await service.get_product(product.id)
        assert await ShopperService(session).list_wishlist(user.id) == []


class TestBundles:
    """Tests for bundles."""

    async def test_bundle_total(self, session: AsyncSession) -> None:
        """Totals sum product prices unless overridden."""
        phone = await make_product(session, name="Phone", price_cents=50000)
        case = await make_product(session, name="Case", price_cents=1500)
        service = CatalogService(session)

        bundle = await service.create_bundle(
            "Starter kit",
            [{"product_id": phone.id, "quantity": 1}, {"product_id": case.id, "quantity": 2}],
        )
        discounted = await service.create_bundle("Deal", [{"product_id": phone.id}], price_override_cents=45000)

        assert (await service.describe_bundle(bundle)).total_cents == 53000
        assert (await service.describe_bundle(discounted)).total_cents == 45000

    async def test_filter_by_product(self, session: AsyncSession) -> None:
        """Bundles can be listed for one product."""
        phone = await make_product(session, name="Phone")
        case = await make_product(session, name="Case")
        service = CatalogService(session)
        await service.create_bundle("Phone kit", [{"product_id": phone.id}])
        await service.create_bundle("Case pack", [{"product_id": case.id}])
        await service.create_bundle("Hidden", [{"product_id": case.id}], active=False)

        views = await service.list_bundles(product_id=case.id)

        assert [v.bundle.name for v in views] == ["Case pack"]

    async def test_unknown_products(self, session: AsyncSession) -> None:
        """Bundles must reference existing products."""
        with pytest.raises(ValidationError, match="Unknown products"):
            await CatalogService(session).create_bundle("Ghost", [{"product_id": "missing"}])
