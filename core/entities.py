from dataclasses import dataclass, field
from typing import List, Optional, Any

@dataclass
class UploadFile:
    """Archivo local seleccionado por el usuario (aún no subido)"""
    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def extension(self) -> str:
        """Extensión original con el punto ('.png'), o '' si no tiene"""
        _, dot, ext = self.filename.rpartition(".")
        return f".{ext}" if dot and ext else ""

@dataclass
class PendingUpload:
    file: UploadFile
    preview: str  # referencia local efímera, nunca se persiste

@dataclass
class Product:
    name: str
    description: str
    price: float
    images: List[str] = field(default_factory=list)
    id: Optional[int] = None
    created_at: Optional[str] = None

    @property
    def image_url(self) -> Optional[str]:
        """URL de la imagen principal (la primera en orden de visualización)"""
        return self.images[0] if self.images else None

    @classmethod
    def from_record(cls, record: dict) -> "Product":
        images: Any = record.get("images") or []
        return cls(
            id=record.get("id"),
            name=record.get("name") or "",
            description=record.get("description") or "",
            price=float(record.get("price") or 0),
            images=list(images),
            created_at=record.get("created_at"),
        )

    def to_record(self) -> dict:
        """Campos escribibles del registro (sin id ni created_at)"""
        return {
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "images": list(self.images),
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "images": list(self.images),
            "image_url": self.image_url,
            "created_at": self.created_at,
        }
