import logging

from flask import Flask, jsonify, request
from flask_cors import CORS, cross_origin
from werkzeug.exceptions import HTTPException

from infrastructure.config import AppConfig
from infrastructure.database.repositories import SQLiteProductRepository, SupabaseProductRepository
from infrastructure.database.models import DatabaseConfig, SupabaseConfig

from infrastructure.web.controllers import ProductController, ProductFormController
from infrastructure.web.image_service import LocalObjectStore, SupabaseObjectStore
from infrastructure.web.preview_service import InMemoryPreviewStore

from application.use_cases import DeleteProductUseCase, GetProductUseCase, ListProductsUseCase
from application.services import ProductFormService, ProductService

logger = logging.getLogger(__name__)


def build_stores(config: AppConfig, product_repository=None, object_store=None):
    """(repositorio de productos, object store); solo se construye lo que falte"""
    if product_repository is not None and object_store is not None:
        return product_repository, object_store

    if config.backend == "supabase":
        from supabase import create_client

        supabase_config = SupabaseConfig(
            url=config.supabase_url,
            key=config.supabase_key,
            products_table=config.products_table,
            bucket=config.supabase_bucket,
        )
        client = create_client(supabase_config.url, supabase_config.key)
        if product_repository is None:
            product_repository = SupabaseProductRepository(client, supabase_config)
        if object_store is None:
            object_store = SupabaseObjectStore(client, supabase_config)
        return product_repository, object_store

    if product_repository is None:
        db_config = DatabaseConfig(db_path=config.db_path, products_table=config.products_table)
        product_repository = SQLiteProductRepository(db_config)
    if object_store is None:
        object_store = LocalObjectStore(config.storage_dir, config.public_base_url)
    return product_repository, object_store


def create_app(config: AppConfig = None, product_repository=None, object_store=None):
    app = Flask(__name__)
    CORS(app, resources={r"/*": {"origins": "*"}})

    # Configuración
    config = config or AppConfig.from_env()
    app.config["MAX_CONTENT_LENGTH"] = config.max_upload_mb * 1024 * 1024

    # Inyección de dependencias (los stores pueden venir de fuera, p. ej. en tests)
    product_repository, object_store = build_stores(config, product_repository, object_store)
    preview_store = InMemoryPreviewStore("/previews/")

    get_use_case = GetProductUseCase(product_repository)
    product_service = ProductService(
        ListProductsUseCase(product_repository),
        get_use_case,
        DeleteProductUseCase(product_repository),
    )
    form_service = ProductFormService(
        get_use_case,
        object_store,
        product_repository,
        preview_store,
        upload_workers=config.upload_workers,
        form_ttl_seconds=config.form_ttl_minutes * 60,
    )

    product_controller = ProductController(product_service)
    form_controller = ProductFormController(form_service)

    app.extensions["catalog"] = {
        "product_repository": product_repository,
        "object_store": object_store,
        "preview_store": preview_store,
        "form_service": form_service,
    }

    # Rutas
    @app.route("/ping", methods=["GET"])
    def ping():
        return jsonify({"status": "ok"})

    @app.route("/products", methods=["GET", "OPTIONS"])
    @cross_origin(origins="*")
    def products():
        if request.method == "OPTIONS":
            return ("", 204)
        return product_controller.list_products()

    @app.route("/products/<int:product_id>", methods=["GET", "DELETE"])
    def product_detail(product_id: int):
        if request.method == "DELETE":
            return product_controller.delete_product(product_id)
        return product_controller.get_product(product_id)

    @app.route("/products/forms", methods=["POST"])
    def open_form():
        return form_controller.open_form()

    @app.route("/products/forms/<form_id>", methods=["GET", "DELETE"])
    def form_detail(form_id: str):
        if request.method == "DELETE":
            return form_controller.discard_form(form_id)
        return form_controller.get_form(form_id)

    @app.route("/products/forms/<form_id>/files", methods=["POST"])
    def form_files(form_id: str):
        return form_controller.add_files(form_id)

    @app.route("/products/forms/<form_id>/existing/<int:index>", methods=["DELETE"])
    def form_remove_existing(form_id: str, index: int):
        return form_controller.remove_existing_image(form_id, index)

    @app.route("/products/forms/<form_id>/pending/<int:index>", methods=["DELETE"])
    def form_remove_pending(form_id: str, index: int):
        return form_controller.remove_pending_upload(form_id, index)

    @app.route("/products/forms/<form_id>/submit", methods=["POST"])
    def form_submit(form_id: str):
        return form_controller.submit(form_id)

    @app.route("/previews/<token>", methods=["GET"])
    def preview_image(token: str):
        return preview_store.serve_preview(token)

    @app.route("/assets/<path:object_path>", methods=["GET"])
    def product_asset(object_path: str):
        if not isinstance(object_store, LocalObjectStore):
            return jsonify({"error": "Las imágenes se sirven desde el object store"}), 404
        return object_store.serve_object_file(object_path)

    # Manejo de errores
    @app.errorhandler(Exception)
    def handle_any_error(e):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.description}), e.code
        logger.exception("Unhandled error")
        return jsonify({"error": str(e)}), 500

    # CORS headers
    @app.after_request
    def add_cors_headers(resp):
        resp.headers.setdefault("Access-Control-Allow-Origin", "*")
        resp.headers.setdefault("Access-Control-Allow-Methods", "GET, POST, DELETE, OPTIONS")
        resp.headers.setdefault("Access-Control-Allow-Headers", "Content-Type, Authorization, X-Requested-With")
        resp.headers.setdefault("Access-Control-Max-Age", "86400")
        return resp

    return app


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    config = AppConfig.from_env()
    app = create_app(config)
    app.run(host=config.host, port=config.port, debug=True)
