"""Repositories for database operations.

Thin query helpers over the ORM models used by the application services.
"""

from collections.abc import Sequence

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.infrastructure.models import CartItem, Order, Product, User


class ProductRepository:
    """Repository for Product database operations.

    Example usage:
        async with async_session_factory() as session:
            repo = ProductRepository(session)
            phones = await repo.find_all(category="New Phones", search="pixel")
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def save(self, product: Product) -> Product:
        """Save a product to database.

        Args:
            product: Product to save.

        Returns:
            Saved product.
        """
        self.session.add(product)
        await self.session.flush()
        return product

    async def get_by_id(self, product_id: str) -> Product | None:
        """Get product by ID.

        Args:
            product_id: Product ID.

        Returns:
            Product if found, None otherwise.
        """
        return await self.session.get(Product, product_id)

    async def get_many(self, product_ids: Sequence[str]) -> dict[str, Product]:
        """Get products by ID, keyed by ID. Unknown IDs are left out."""
        if not product_ids:
            return {}
        result = await self.session.execute(select(Product).where(Product.id.in_(list(product_ids))))
        return {product.id: product for product in result.scalars()}

    async def find_all(
        self,
        search: str | None = None,
        category: str | None = None,
        limit: int | None = None,
    ) -> Sequence[Product]:
        """Find products, newest first.

        Args:
            search: Case-insensitive match on name or description.
            category: Exact category.
            limit: Maximum results.

        Returns:
            Sequence of matching products.
        """
        query = select(Product)

        if category:
            query = query.where(Product.category == category)

        if search:
            search_pattern = f"%{search}%"
            query = query.where(
                or_(
                    Product.name.ilike(search_pattern),
                    Product.description.ilike(search_pattern),
                )
            )

        query = query.order_by(Product.created_at.desc())
        if limit:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return result.scalars().all()

    async def take_stock(self, product_id: str, quantity: int) -> bool:
        """Decrement stock in one conditional UPDATE.

        Args:
            product_id: Product ID.
            quantity: Units to take.

        Returns:
            False if the product is missing or holds fewer than ``quantity`` units.
        """
        result = await self.session.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        taken = result.rowcount == 1
        await self._reload(product_id)
        return taken

    async def return_stock(self, product_id: str, quantity: int) -> None:
        """Increment stock in one UPDATE. Deleted products are skipped."""
        await self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock + quantity)
            .execution_options(synchronize_session=False)
        )
        await self._reload(product_id)

    async def _reload(self, product_id: str) -> Product | None:
        # Refresh an already loaded instance with the stored stock
        return await self.session.get(Product, product_id, populate_existing=True)

    async def delete(self, product: Product) -> None:
        """Delete a product."""
        await self.session.delete(product)
        await self.session.flush()


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def save(self, user: User) -> User:
        """Save a user to database."""
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: str) -> User | None:
        """Get user by ID."""
        return await self.session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email, ignoring case."""
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_by_verification_token(self, token: str) -> User | None:
        """Get user holding an email verification token."""
        result = await self.session.execute(select(User).where(User.verification_token == token))
        return result.scalars().first()

    async def get_by_reset_token(self, token: str) -> User | None:
        """Get user holding a password reset token."""
        result = await self.session.execute(select(User).where(User.reset_token == token))
        return result.scalars().first()

    async def list_all(self) -> Sequence[User]:
        """List all users, newest first."""
        result = await self.session.execute(select(User).order_by(User.created_at.desc()))
        return result.scalars().all()


class CartRepository:
    """Repository for cart lines."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_for_user(self, user_id: str) -> Sequence[CartItem]:
        """Get a user's cart lines, newest first."""
        result = await self.session.execute(
            select(CartItem)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.created_at.desc(), CartItem.id)
        )
        return result.unique().scalars().all()

    async def find_line(
        self,
        user_id: str,
        product_id: str,
        selected_variations: dict[str, str],
    ) -> CartItem | None:
        """Find the line holding the same product with an identical selection.

        JSON equality differs between backends, so selections are compared
        after loading.
        """
        result = await self.session.execute(
            select(CartItem).where(
                CartItem.user_id == user_id,
                CartItem.product_id == product_id,
            )
        )
        for line in result.unique().scalars():
            if (line.selected_variations or {}) == selected_variations:
                return line
        return None

    async def add(self, line: CartItem) -> CartItem:
        """Add a new cart line."""
        self.session.add(line)
        await self.session.flush()
        return line

    async def delete_line(self, user_id: str, item_id: str) -> int:
        """Delete one of the user's lines. Returns rows removed."""
        result = await self.session.execute(
            delete(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id)
        )
        return result.rowcount or 0

    async def clear(self, user_id: str) -> int:
        """Delete every line in the user's cart. Returns rows removed."""
        result = await self.session.execute(delete(CartItem).where(CartItem.user_id == user_id))
        return result.rowcount or 0


class OrderRepository:
    """Repository for Order database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def save(self, order: Order) -> Order:
        """Save an order to database."""
        self.session.add(order)
        await self.session.flush()
        return order

    async def get_by_id(self, order_id: str) -> Order | None:
        """Get order by ID with comments, invoice and returns."""
        return await self.session.get(Order, order_id)

    async def list_for_user(self, user_id: str) -> Sequence[Order]:
        """Get a user's orders, newest first."""
        result = await self.session.execute(
            select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc())
        )
        return result.unique().scalars().all()

    async def list_all(self, status: str | None = None) -> Sequence[Order]:
        """Get every order, newest first, optionally filtered by status."""
        query = select(Order)
        if status:
            query = query.where(Order.status == status)
        result = await self.session.execute(query.order_by(Order.created_at.desc()))
        return result.unique().scalars().all()
