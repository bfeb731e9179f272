import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

@dataclass
class AppConfig:
    backend: str = "local"  # local | supabase
    db_path: str = str(BASE_DIR / "data.sqlite")
    storage_dir: str = str(BASE_DIR / "resources")
    public_base_url: Optional[str] = None  # por defecto se deriva de host y port
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_bucket: str = "product-images"
    products_table: str = "products"
    upload_workers: int = 4
    max_upload_mb: int = 16
    host: str = "127.0.0.1"
    port: int = 5057
    form_ttl_minutes: float = 30

    def __post_init__(self):
        if self.backend not in ("local", "supabase"):
            raise ValueError(f"CATALOG_BACKEND desconocido: {self.backend}")
        if not self.public_base_url:
            host = "127.0.0.1" if self.host in ("", "0.0.0.0") else self.host
            self.public_base_url = f"http://{host}:{self.port}/assets/"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "AppConfig":
        load_dotenv(env_file or BASE_DIR / ".env")
        defaults = cls()
        return cls(
            backend=os.getenv("CATALOG_BACKEND", defaults.backend).strip().lower(),
            db_path=os.getenv("CATALOG_DB_PATH", defaults.db_path),
            storage_dir=os.getenv("CATALOG_STORAGE_DIR", defaults.storage_dir),
            public_base_url=os.getenv("CATALOG_PUBLIC_BASE_URL"),
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=os.getenv("SUPABASE_KEY"),
            supabase_bucket=os.getenv("SUPABASE_BUCKET", defaults.supabase_bucket),
            products_table=os.getenv("CATALOG_PRODUCTS_TABLE", defaults.products_table),
            upload_workers=int(os.getenv("CATALOG_UPLOAD_WORKERS", defaults.upload_workers)),
            max_upload_mb=int(os.getenv("CATALOG_MAX_UPLOAD_MB", defaults.max_upload_mb)),
            host=os.getenv("CATALOG_HOST", defaults.host),
            port=int(os.getenv("CATALOG_PORT", defaults.port)),
            form_ttl_minutes=float(os.getenv("CATALOG_FORM_TTL_MINUTES", defaults.form_ttl_minutes)),
        )
