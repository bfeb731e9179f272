from dataclasses import dataclass

@dataclass
class DatabaseConfig:
    db_path: str
    products_table: str = "products"

@dataclass
class SupabaseConfig:
    url: str
    key: str
    products_table: str = "products"
    bucket: str = "product-images"

    def __post_init__(self):
        if not self.url or not self.key:
            raise ValueError("SUPABASE_URL y SUPABASE_KEY son obligatorios para el backend supabase")
