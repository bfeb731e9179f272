# controllers.py
import json
import logging

from flask import request, current_app

from application.services import ProductFormService, ProductService
from core.entities import UploadFile
from core.exceptions import (
    FormSessionNotFoundError,
    RecordStoreError,
    SubmissionInProgressError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# ========= utils =========
def json_response(payload, status: int = 200):
    return current_app.response_class(
        response=json.dumps(payload, ensure_ascii=False),
        status=status,
        mimetype="application/json; charset=utf-8",
    )

def error_response(message: str, status: int):
    return json_response({"error": message}, status)

def form_payload(form_id: str, manager) -> dict:
    return {
        "form_id": form_id,
        "product_id": manager.product_id,
        "mode": "edit" if manager.is_editing else "create",
        "existing_images": list(manager.existing_images),
        "pending_uploads": [
            {"filename": p.file.filename, "preview_url": p.preview}
            for p in manager.pending_uploads
        ],
        "pending_deletions": list(manager.pending_deletions),
        "is_submitting": manager.is_submitting,
    }

def request_fields() -> dict:
    """Campos del formulario, vengan como JSON o como form-data"""
    if request.is_json:
        body = request.get_json(silent=True)
        if body is None:
            return {}
        if not isinstance(body, dict):
            raise ValidationError("El cuerpo JSON debe ser un objeto")
        return body
    return request.form.to_dict()

# ========= catálogo =========
class ProductController:
    def __init__(self, product_service: ProductService):
        self.product_service = product_service

    def list_products(self):
        try:
            products = self.product_service.list_products()
        except RecordStoreError as e:
            logger.error("Error fetching products: %s", e)
            return error_response(str(e), 502)
        data = [p.to_dict() for p in products]
        return json_response({"total": len(data), "data": data})

    def get_product(self, product_id: int):
        try:
            product = self.product_service.get_product(product_id)
        except RecordStoreError as e:
            return error_response(str(e), 502)
        if product is None:
            return error_response("Producto no encontrado", 404)
        return json_response(product.to_dict())

    def delete_product(self, product_id: int):
        try:
            deleted = self.product_service.delete_product(product_id)
        except RecordStoreError as e:
            logger.error("Error deleting product: %s", e)
            return error_response(str(e), 502)
        if not deleted:
            return error_response("Producto no encontrado", 404)
        return json_response({"deleted": product_id})

# ========= formulario de alta / edición =========
class ProductFormController:
    def __init__(self, form_service: ProductFormService):
        self.form_service = form_service

    def open_form(self):
        body = request.get_json(silent=True)
        if body is None:
            body = {}
        if not isinstance(body, dict):
            return error_response("El cuerpo JSON debe ser un objeto", 400)
        product_id = body.get("product_id")
        if product_id is not None:
            try:
                product_id = int(product_id)
            except (TypeError, ValueError):
                return error_response(f"product_id inválido: {product_id!r}", 400)
        try:
            form_id, manager = self.form_service.open_form(product_id)
        except RecordStoreError as e:
            return error_response(str(e), 502)
        return json_response(form_payload(form_id, manager), 201)

    def get_form(self, form_id: str):
        try:
            manager = self.form_service.get_form(form_id)
        except FormSessionNotFoundError as e:
            return error_response(str(e), 404)
        return json_response(form_payload(form_id, manager))

    def discard_form(self, form_id: str):
        try:
            self.form_service.discard_form(form_id)
        except FormSessionNotFoundError as e:
            return error_response(str(e), 404)
        except SubmissionInProgressError as e:
            return error_response(str(e), 409)
        return ("", 204)

    def add_files(self, form_id: str):
        files = [
            UploadFile(filename=f.filename or "", content=f.read(), content_type=f.mimetype)
            for f in request.files.getlist("files")
            if f and f.filename
        ]
        try:
            rejected = self.form_service.add_files(form_id, files)
            manager = self.form_service.get_form(form_id)
        except FormSessionNotFoundError as e:
            return error_response(str(e), 404)
        except SubmissionInProgressError as e:
            return error_response(str(e), 409)
        payload = form_payload(form_id, manager)
        payload["rejected"] = rejected
        return json_response(payload)

    def remove_existing_image(self, form_id: str, index: int):
        try:
            self.form_service.remove_existing_image(form_id, index)
            manager = self.form_service.get_form(form_id)
        except FormSessionNotFoundError as e:
            return error_response(str(e), 404)
        except SubmissionInProgressError as e:
            return error_response(str(e), 409)
        except IndexError as e:
            return error_response(str(e), 400)
        return json_response(form_payload(form_id, manager))

    def remove_pending_upload(self, form_id: str, index: int):
        try:
            self.form_service.remove_pending_upload(form_id, index)
            manager = self.form_service.get_form(form_id)
        except FormSessionNotFoundError as e:
            return error_response(str(e), 404)
        except SubmissionInProgressError as e:
            return error_response(str(e), 409)
        except IndexError as e:
            return error_response(str(e), 400)
        return json_response(form_payload(form_id, manager))

    def submit(self, form_id: str):
        try:
            fields = request_fields()
            product, created = self.form_service.submit(
                form_id,
                fields.get("name"),
                fields.get("description"),
                fields.get("price"),
            )
        except FormSessionNotFoundError as e:
            return error_response(str(e), 404)
        except ValidationError as e:
            return error_response(str(e), 400)
        except SubmissionInProgressError as e:
            return error_response(str(e), 409)
        except RecordStoreError as e:
            # mensaje para mostrar inline en el formulario
            return error_response(f"Error saving product: {e}", 502)
        return json_response(product.to_dict(), 201 if created else 200)
