import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from core.entities import Product
from core.exceptions import RecordStoreError
from core.ports import ProductRepository
from .models import DatabaseConfig, SupabaseConfig

def quote_ident(s: str) -> str:
    """Cita un identificador SQLite, escapando comillas dobles."""
    return '"' + str(s).replace('"', '""') + '"'

class SQLiteProductRepository(ProductRepository):
    """Adaptador para SQLite (las imágenes se guardan como lista JSON)."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._ensure_schema()

    def _get_connection(self):
        conn = sqlite3.connect(self.config.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self):
        Path(self.config.db_path).parent.mkdir(parents=True, exist_ok=True)
        table = quote_ident(self.config.products_table)
        conn = self._get_connection()
        try:
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    price REAL NOT NULL DEFAULT 0,
                    images TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def _row_to_product(self, row) -> Product:
        d = dict(row)
        d["images"] = json.loads(d.get("images") or "[]")
        return Product.from_record(d)

    def _execute(self, sql: str, params=()):
        conn = self._get_connection()
        try:
            cur = conn.execute(sql, params)
            rows = cur.fetchall()
            conn.commit()
            return cur, rows
        except sqlite3.Error as e:
            raise RecordStoreError(f"Error de base de datos: {e}") from e
        finally:
            conn.close()

    def list_products(self) -> List[Product]:
        table = quote_ident(self.config.products_table)
        _, rows = self._execute(f"SELECT * FROM {table} ORDER BY created_at DESC, id DESC")
        return [self._row_to_product(r) for r in rows]

    def get_product_by_id(self, product_id: int) -> Optional[Product]:
        table = quote_ident(self.config.products_table)
        _, rows = self._execute(f"SELECT * FROM {table} WHERE id = ?", [product_id])
        return self._row_to_product(rows[0]) if rows else None

    def insert(self, product: Product) -> Product:
        table = quote_ident(self.config.products_table)
        created_at = datetime.now(timezone.utc).isoformat()
        cur, _ = self._execute(
            f"INSERT INTO {table} (name, description, price, images, created_at) VALUES (?, ?, ?, ?, ?)",
            [product.name, product.description, product.price, json.dumps(product.images), created_at],
        )
        return self.get_product_by_id(cur.lastrowid)

    def update(self, product_id: int, product: Product) -> Product:
        table = quote_ident(self.config.products_table)
        cur, _ = self._execute(
            f"UPDATE {table} SET name = ?, description = ?, price = ?, images = ? WHERE id = ?",
            [product.name, product.description, product.price, json.dumps(product.images), product_id],
        )
        if cur.rowcount == 0:
            raise RecordStoreError(f"Producto no encontrado: {product_id}")
        return self.get_product_by_id(product_id)

    def delete(self, product_id: int) -> bool:
        table = quote_ident(self.config.products_table)
        cur, _ = self._execute(f"DELETE FROM {table} WHERE id = ?", [product_id])
        return cur.rowcount > 0

class SupabaseProductRepository(ProductRepository):
    """Adaptador para la tabla de productos de Supabase (PostgREST)."""

    def __init__(self, client, config: SupabaseConfig):
        self.client = client
        self.config = config

    def _table(self):
        return self.client.table(self.config.products_table)

    def list_products(self) -> List[Product]:
        try:
            result = self._table().select("*").order("created_at", desc=True).execute()
        except Exception as e:
            raise RecordStoreError(f"Error fetching products: {e}") from e
        return [Product.from_record(r) for r in result.data or []]

    def get_product_by_id(self, product_id: int) -> Optional[Product]:
        try:
            result = self._table().select("*").eq("id", product_id).limit(1).execute()
        except Exception as e:
            raise RecordStoreError(f"Error fetching product {product_id}: {e}") from e
        rows = result.data or []
        return Product.from_record(rows[0]) if rows else None

    def insert(self, product: Product) -> Product:
        try:
            result = self._table().insert(product.to_record()).execute()
        except Exception as e:
            raise RecordStoreError(f"Error creating product: {e}") from e
        rows = result.data or []
        return Product.from_record(rows[0]) if rows else product

    def update(self, product_id: int, product: Product) -> Product:
        try:
            result = self._table().update(product.to_record()).eq("id", product_id).execute()
        except Exception as e:
            raise RecordStoreError(f"Error updating product: {e}") from e
        rows = result.data or []
        if not rows:
            raise RecordStoreError(f"Producto no encontrado: {product_id}")
        return Product.from_record(rows[0])

    def delete(self, product_id: int) -> bool:
        try:
            result = self._table().delete().eq("id", product_id).execute()
        except Exception as e:
            raise RecordStoreError(f"Error deleting product: {e}") from e
        return bool(result.data)
