import json
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ...domain.errors import DuplicateCategory, DuplicateUser, OutOfStock
from ...domain.models import (
    Category,
    Order,
    OrderStatus,
    PaymentResult,
    Product,
    ProductDraft,
    ProductPhoto,
    ProductQuery,
    User,
    UserRole,
)
from ...domain.ports.persistence import PersistenceGateway

_PRODUCT_COLUMNS = """
    p.id, p.name, p.slug, p.description, p.price, p.quantity, p.category_id,
    p.shipping, p.photo IS NOT NULL AS has_photo, p.created_at, p.updated_at,
    c.name AS category_name, c.slug AS category_slug
"""

_PRODUCT_FROM = "products p LEFT JOIN categories c ON c.id = p.category_id"


def _contains_casefold(haystack: Optional[str], needle: Optional[str]) -> int:
    if haystack is None or needle is None:
        return 0
    return int(needle.casefold() in haystack.casefold())


def _now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


class SQLitePersistence(PersistenceGateway):
    """SQLite-backed implementation of the persistence gateway."""

    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.create_function("contains_ci", 2, _contains_casefold, deterministic=True)
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self) -> None:
        with self._conn:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    phone TEXT NOT NULL,
                    address TEXT NOT NULL,
                    answer TEXT NOT NULL,
                    role TEXT NOT NULL DEFAULT 'customer',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS categories (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL UNIQUE,
                    slug TEXT NOT NULL UNIQUE,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS products (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    slug TEXT NOT NULL,
                    description TEXT NOT NULL,
                    price REAL NOT NULL CHECK (price > 0),
                    quantity INTEGER NOT NULL CHECK (quantity >= 0),
                    category_id TEXT NOT NULL,
                    shipping INTEGER NOT NULL DEFAULT 0,
                    photo BLOB,
                    photo_content_type TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_products_slug ON products(slug);
                CREATE INDEX IF NOT EXISTS idx_products_category ON products(category_id);
                CREATE INDEX IF NOT EXISTS idx_products_created ON products(created_at DESC);

                CREATE TABLE IF NOT EXISTS orders (
                    id TEXT PRIMARY KEY,
                    buyer_id TEXT NOT NULL REFERENCES users(id),
                    status TEXT NOT NULL,
                    payment TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_orders_buyer ON orders(buyer_id, created_at DESC);

                CREATE TABLE IF NOT EXISTS order_items (
                    order_id TEXT NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
                    position INTEGER NOT NULL,
                    product_id TEXT NOT NULL,
                    PRIMARY KEY (order_id, position)
                );
                """
            )

    def close(self) -> None:
        self._conn.close()

    # UserRepository API ------------------------------------------------------
    def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        phone: str,
        address: str,
        answer: str,
        role: UserRole = UserRole.CUSTOMER,
    ) -> User:
        user_id = _new_id()
        now = _now()
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    """
                    INSERT INTO users (
                        id, name, email, password_hash, phone, address, answer, role,
                        created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (user_id, name, email, password_hash, phone, address, answer, role.value, now, now),
                )
        except sqlite3.IntegrityError as exc:
            raise DuplicateUser() from exc
        return User(
            id=user_id,
            name=name,
            email=email,
            password_hash=password_hash,
            phone=phone,
            address=address,
            answer=answer,
            role=role,
            created_at=datetime.fromisoformat(now),
            updated_at=datetime.fromisoformat(now),
        )

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return self._fetch_user("SELECT * FROM users WHERE id = ?", (user_id,))

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self._fetch_user("SELECT * FROM users WHERE email = ?", (email,))

    def get_user_by_email_and_answer(self, email: str, answer: str) -> Optional[User]:
        return self._fetch_user(
            "SELECT * FROM users WHERE email = ? AND answer = ?", (email, answer)
        )

    def save_user_profile(self, user: User) -> User:
        now = _now()
        with self._lock, self._conn:
            self._conn.execute(
                """
                UPDATE users
                SET name = ?, phone = ?, address = ?, password_hash = ?, updated_at = ?
                WHERE id = ?
                """,
                (user.name, user.phone, user.address, user.password_hash, now, user.id),
            )
        saved = self.get_user_by_id(user.id)
        if saved is None:  # pragma: no cover - users are never deleted
            raise RuntimeError(f"User {user.id} disappeared during update")
        return saved

    def update_user_password(self, user_id: str, password_hash: str) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "UPDATE users SET password_hash = ?, updated_at = ? WHERE id = ?",
                (password_hash, _now(), user_id),
            )

    def set_user_role(self, user_id: str, role: UserRole) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "UPDATE users SET role = ?, updated_at = ? WHERE id = ?",
                (role.value, _now(), user_id),
            )

    def list_users(self) -> List[User]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM users ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
        return [self._row_to_user(row) for row in rows]

    def _fetch_user(self, sql: str, params: Tuple[Any, ...]) -> Optional[User]:
        with self._lock:
            row = self._conn.execute(sql, params).fetchone()
        return self._row_to_user(row) if row else None

    # CategoryRepository API --------------------------------------------------
    def create_category(self, name: str, slug: str) -> Category:
        category_id = _new_id()
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    "INSERT INTO categories (id, name, slug, created_at) VALUES (?, ?, ?, ?)",
                    (category_id, name, slug, _now()),
                )
        except sqlite3.IntegrityError as exc:
            raise DuplicateCategory() from exc
        return Category(id=category_id, name=name, slug=slug)

    def get_category(self, category_id: str) -> Optional[Category]:
        with self._lock:
            row = self._conn.execute(
                "SELECT id, name, slug FROM categories WHERE id = ?", (category_id,)
            ).fetchone()
        return Category(id=row["id"], name=row["name"], slug=row["slug"]) if row else None

    def get_category_by_slug(self, slug: str) -> Optional[Category]:
        with self._lock:
            row = self._conn.execute(
                "SELECT id, name, slug FROM categories WHERE slug = ?",
                (slug,),
            ).fetchone()
        return Category(id=row["id"], name=row["name"], slug=row["slug"]) if row else None

    def list_categories(self) -> List[Category]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT id, name, slug FROM categories ORDER BY name COLLATE NOCASE"
            ).fetchall()
        return [Category(id=row["id"], name=row["name"], slug=row["slug"]) for row in rows]

    # ProductRepository API ---------------------------------------------------
    def create_product(self, draft: ProductDraft, photo: Optional[ProductPhoto]) -> Product:
        product_id = _new_id()
        now = _now()
        with self._lock, self._conn:
            self._conn.execute(
                """
                INSERT INTO products (
                    id, name, slug, description, price, quantity, category_id, shipping,
                    photo, photo_content_type, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    product_id,
                    draft.name,
                    draft.slug,
                    draft.description,
                    draft.price,
                    draft.quantity,
                    draft.category_id,
                    int(draft.shipping),
                    photo.data if photo else None,
                    photo.content_type if photo else None,
                    now,
                    now,
                ),
            )
        created = self.get_product(product_id)
        if created is None:  # pragma: no cover - written in the same call
            raise RuntimeError(f"Product {product_id} was not persisted")
        return created

    def update_product(
        self, product_id: str, draft: ProductDraft, photo: Optional[ProductPhoto]
    ) -> Optional[Product]:
        assignments = [
            "name = ?",
            "slug = ?",
            "description = ?",
            "price = ?",
            "quantity = ?",
            "category_id = ?",
            "shipping = ?",
            "updated_at = ?",
        ]
        params: List[Any] = [
            draft.name,
            draft.slug,
            draft.description,
            draft.price,
            draft.quantity,
            draft.category_id,
            int(draft.shipping),
            _now(),
        ]
        if photo is not None:
            assignments.extend(["photo = ?", "photo_content_type = ?"])
            params.extend([photo.data, photo.content_type])
        params.append(product_id)
        with self._lock, self._conn:
            cur = self._conn.execute(
                f"UPDATE products SET {', '.join(assignments)} WHERE id = ?", params
            )
            updated = cur.rowcount
        if not updated:
            return None
        return self.get_product(product_id)

    def delete_product(self, product_id: str) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM products WHERE id = ?", (product_id,))
        return cur.rowcount > 0

    def get_product(self, product_id: str) -> Optional[Product]:
        with self._lock:
            row = self._conn.execute(
                f"SELECT {_PRODUCT_COLUMNS} FROM {_PRODUCT_FROM} WHERE p.id = ?",
                (product_id,),
            ).fetchone()
        return self._row_to_product(row) if row else None

    def find_products(self, query: ProductQuery) -> List[Product]:
        clauses: List[str] = []
        params: List[Any] = []
        if query.category_ids:
            placeholders = ", ".join("?" for _ in query.category_ids)
            clauses.append(f"p.category_id IN ({placeholders})")
            params.extend(query.category_ids)
        if query.price_range is not None:
            low, high = query.price_range
            clauses.append("p.price BETWEEN ? AND ?")
            params.extend([low, high])
        if query.keyword:
            clauses.append("(contains_ci(p.name, ?) OR contains_ci(p.description, ?))")
            params.extend([query.keyword, query.keyword])
        if query.slug is not None:
            clauses.append("p.slug = ?")
            params.append(query.slug)
        if query.exclude_id is not None:
            clauses.append("p.id != ?")
            params.append(query.exclude_id)

        sql = f"SELECT {_PRODUCT_COLUMNS} FROM {_PRODUCT_FROM}"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY p.created_at DESC, p.rowid DESC"
        if query.limit is not None or query.offset:
            sql += " LIMIT ? OFFSET ?"
            params.extend([query.limit if query.limit is not None else -1, query.offset])

        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return [self._row_to_product(row) for row in rows]

    def count_products(self) -> int:
        with self._lock:
            row = self._conn.execute("SELECT COUNT(*) AS total FROM products").fetchone()
        return int(row["total"])

    def get_product_photo(self, product_id: str) -> Optional[ProductPhoto]:
        with self._lock:
            row = self._conn.execute(
                "SELECT photo, photo_content_type FROM products WHERE id = ?", (product_id,)
            ).fetchone()
        if not row or row["photo"] is None:
            return None
        return ProductPhoto(
            data=bytes(row["photo"]),
            content_type=row["photo_content_type"] or "application/octet-stream",
        )

    def reserve_stock(self, quantities: Dict[str, int]) -> None:
        now = _now()
        with self._lock, self._conn:
            for product_id, amount in quantities.items():
                cur = self._conn.execute(
                    """
                    UPDATE products
                    SET quantity = quantity - ?, updated_at = ?
                    WHERE id = ? AND quantity >= ?
                    """,
                    (amount, now, product_id, amount),
                )
                if cur.rowcount != 1:
                    # leaving the ``with`` block rolls back earlier decrements
                    raise OutOfStock(f"Insufficient stock for product {product_id}")

    def release_stock(self, quantities: Dict[str, int]) -> None:
        now = _now()
        with self._lock, self._conn:
            self._conn.executemany(
                "UPDATE products SET quantity = quantity + ?, updated_at = ? WHERE id = ?",
                [(amount, now, product_id) for product_id, amount in quantities.items()],
            )

    # OrderRepository API -----------------------------------------------------
    def create_order(
        self,
        buyer_id: str,
        product_ids: List[str],
        payment: PaymentResult,
        status: OrderStatus = OrderStatus.NOT_PROCESSED,
    ) -> Order:
        order_id = _new_id()
        now = _now()
        payload = json.dumps(
            {
                "success": payment.success,
                "transaction": payment.transaction,
                "message": payment.message,
            },
            default=str,
        )
        with self._lock, self._conn:
            self._conn.execute(
                """
                INSERT INTO orders (id, buyer_id, status, payment, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (order_id, buyer_id, status.value, payload, now, now),
            )
            self._conn.executemany(
                "INSERT INTO order_items (order_id, position, product_id) VALUES (?, ?, ?)",
                [(order_id, position, product_id) for position, product_id in enumerate(product_ids)],
            )
        created = self.get_order(order_id)
        if created is None:  # pragma: no cover - written in the same call
            raise RuntimeError(f"Order {order_id} was not persisted")
        return created

    def get_order(self, order_id: str) -> Optional[Order]:
        orders = self._load_orders("WHERE o.id = ?", (order_id,))
        return orders[0] if orders else None

    def list_orders(self, buyer_id: Optional[str] = None) -> List[Order]:
        if buyer_id is None:
            return self._load_orders("", ())
        return self._load_orders("WHERE o.buyer_id = ?", (buyer_id,))

    def compare_and_set_order_status(
        self, order_id: str, expected: OrderStatus, status: OrderStatus
    ) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute(
                "UPDATE orders SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
                (status.value, _now(), order_id, expected.value),
            )
        return cur.rowcount == 1

    def _load_orders(self, where: str, params: Tuple[Any, ...]) -> List[Order]:
        with self._lock:
            rows = self._conn.execute(
                f"""
                SELECT o.*, u.name AS buyer_name
                FROM orders o
                LEFT JOIN users u ON u.id = o.buyer_id
                {where}
                ORDER BY o.created_at DESC, o.rowid DESC
                """,
                params,
            ).fetchall()
            if not rows:
                return []
            order_ids = [row["id"] for row in rows]
            placeholders = ", ".join("?" for _ in order_ids)
            item_rows = self._conn.execute(
                f"""
                SELECT oi.order_id, oi.product_id AS item_product_id, {_PRODUCT_COLUMNS}
                FROM order_items oi
                LEFT JOIN products p ON p.id = oi.product_id
                LEFT JOIN categories c ON c.id = p.category_id
                WHERE oi.order_id IN ({placeholders})
                ORDER BY oi.order_id, oi.position
                """,
                order_ids,
            ).fetchall()

        product_ids: Dict[str, List[str]] = {order_id: [] for order_id in order_ids}
        products: Dict[str, List[Product]] = {order_id: [] for order_id in order_ids}
        for item in item_rows:
            product_ids[item["order_id"]].append(item["item_product_id"])
            # deleted products stay referenced but are no longer populated
            if item["id"] is not None:
                products[item["order_id"]].append(self._row_to_product(item))

        return [
            self._row_to_order(row, product_ids[row["id"]], products[row["id"]])
            for row in rows
        ]

    # Row mappers -------------------------------------------------------------
    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
            phone=row["phone"],
            address=row["address"],
            answer=row["answer"],
            role=UserRole(row["role"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _row_to_product(row: sqlite3.Row) -> Product:
        category = None
        if row["category_name"] is not None:
            category = Category(
                id=row["category_id"],
                name=row["category_name"],
                slug=row["category_slug"],
            )
        return Product(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            description=row["description"],
            price=float(row["price"]),
            quantity=int(row["quantity"]),
            category_id=row["category_id"],
            shipping=bool(row["shipping"]),
            has_photo=bool(row["has_photo"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            category=category,
        )

    @staticmethod
    def _row_to_order(row: sqlite3.Row, product_ids: List[str], products: List[Product]) -> Order:
        payment = json.loads(row["payment"])
        return Order(
            id=row["id"],
            buyer_id=row["buyer_id"],
            product_ids=product_ids,
            status=OrderStatus(row["status"]),
            payment=PaymentResult(
                success=bool(payment.get("success")),
                transaction=payment.get("transaction") or {},
                message=payment.get("message"),
            ),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            buyer_name=row["buyer_name"],
            products=products,
        )
