class CatalogError(Exception):
    """Error base del catálogo"""

class ValidationError(CatalogError):
    """Datos de producto inválidos (nombre vacío, precio negativo...)"""

class ObjectStoreError(CatalogError):
    """Fallo de subida/borrado en el almacenamiento de objetos (no fatal)"""

class RecordStoreError(CatalogError):
    """Fallo al leer/escribir registros de productos (fatal para la operación)"""

class SubmissionInProgressError(CatalogError):
    """Ya hay un envío en curso para este formulario"""

class FormSessionNotFoundError(CatalogError):
    """El formulario no existe o ya fue descartado"""
