"""Tests for wishlists, recently viewed products and comparisons."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import make_product, make_user
from storefront.application.shopper_service import ShopperService
from storefront.domain.exceptions import NotFoundError


class TestWishlist:
    """Tests for the wishlist."""

    async def test_add_is_idempotent(self, session: AsyncSession) -> None:
        """Adding twice keeps one entry."""
        user = await make_user(session)
        product = await make_product(session)
        service = ShopperService(session)

        first = await service.add_to_wishlist(user.id, product.id)
        second = await service.add_to_wishlist(user.id, product.id)

        assert first.id == second.id
        assert len(await service.list_wishlist(user.id)) == 1
        assert await service.in_wishlist(user.id, product.id)

    async def test_remove(self, session: AsyncSession) -> None:
        """Removing clears the entry."""
        user = await make_user(session)
        product = await make_product(session)
        service = ShopperService(session)
        await service.add_to_wishlist(user.id, product.id)

        await service.remove_from_wishlist(user.id, product.id)

        assert not await service.in_wishlist(user.id, product.id)

    async def test_unknown_product(self, session: AsyncSession) -> None:
        """Unknown products are rejected."""
        user = await make_user(session)
        with pytest.raises(NotFoundError):
            await ShopperService(session).add_to_wishlist(user.id, "missing")


class TestRecentlyViewed:
    """Tests for recently viewed products."""

    async def test_repeat_view_updates_entry(self, session: AsyncSession) -> None:
        """Viewing again bumps the existing entry instead of adding one."""
        user = await make_user(session)
        first = await make_product(session, name="First")
        second = await make_product(session, name="Second")
        service = ShopperService(session)

        entry = await service.record_view(user.id, first.id)
        await service.record_view(user.id, second.id)
        again = await service.record_view(user.id, first.id)

        viewed = await service.list_recently_viewed(user.id)
        assert again.id == entry.id
        assert [v.product_id for v in viewed] == [first.id, second.id]

    async def test_view_counts(self, session: AsyncSession) -> None:
        """Counts are per distinct viewer."""
        product = await make_product(session)
        service = ShopperService(session)
        for index in range(2):
            user = await make_user(session, email=f"viewer{index}@example.com")
            await service.record_view(user.id, product.id)
            await service.record_view(user.id, product.id)

        assert await service.view_counts() == {product.id: 2}


class TestComparison:
    """Tests for the comparison tray."""

    async def test_newest_first_and_capped(self, session: AsyncSession) -> None:
        """The tray keeps the four most recently added products."""
        user = await make_user(session)
        products = [await make_product(session, name=f"Phone {i}") for i in range(5)]
        service = ShopperService(session)

        for product in products:
            view = await service.add_to_comparison(user.id, product.id)

        assert view.ids == [p.id for p in reversed(products)][:4]
        assert len(view.products) == 4

    async def test_re_adding_moves_to_front(self, session: AsyncSession) -> None:
        """Adding an existing product moves it to the front without duplicating."""
        user = await make_user(session)
        first = await make_product(session, name="First")
        second = await make_product(session, name="Second")
        service = ShopperService(session)
        await service.add_to_comparison(user.id, first.id)
        await service.add_to_comparison(user.id, second.id)

        view = await service.add_to_comparison(user.id, first.id)

        assert view.ids == [first.id, second.id]

    async def test_remove(self, session: AsyncSession) -> None:
        """Removing drops the product from the tray."""
        user = await make_user(session)
        product = await make_product(session)
        service = ShopperService(session)
        await service.add_to_comparison(user.id, product.id)

        view = await service.remove_from_comparison(user.id, product.id)

        assert view.ids == []
        assert view.record_id is not None

    async def test_empty_tray(self, session: AsyncSession) -> None:
        """A user without a tray sees an empty one."""
        user = await make_user(session)
        view = await ShopperService(session).get_comparison(user.id)

        assert view.ids == [] and view.record_id is None
