# app/services/product_service.py
import logging
import uuid
from typing import Iterable

from fastapi import status
from sqlmodel import Session

from app.core.errors import InvalidImage, ProductInUse, ProductNotFound
from app.core.storage_utils import (
    upload_to_storage,
    delete_public_urls,
    generate_filename,
)
from app.models.product import Product
from app.repositories.product_repo import ProductRepository
from app.schemas.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


# --- Image config ---

MAX_IMAGES_PER_PRODUCT = 3
MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB per image

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class ProductService:
    """
    Business logic for the catalog.

    Responsibilities:
      - validation beyond pydantic (image count / type / size)
      - image upload/delete orchestration with Supabase Storage
      - admin-only operations (enforced at router via require_admin)
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    # ----- Helpers -----

    @staticmethod
    def _validate_images(files: list[tuple[str, bytes]]) -> list[str]:
        """
        Check count, type and size of uploaded images.

        Returns the file extension for each image, in order.
        """
        if not files:
            raise InvalidImage("At least one image is required")

        if len(files) > MAX_IMAGES_PER_PRODUCT:
            raise InvalidImage(f"Maximum {MAX_IMAGES_PER_PRODUCT} images allowed")

        extensions: list[str] = []
        for content_type, file_bytes in files:
            if content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
                raise InvalidImage("Unsupported image type. Allowed: JPEG, PNG, WEBP.")
            if len(file_bytes) > MAX_IMAGE_BYTES:
                raise InvalidImage(
                    "Image too large (max 5MB).",
                    status_code=status.HTTP_413_CONTENT_TOO_LARGE,
                )
            extensions.append(ALLOWED_IMAGE_CONTENT_TYPES[content_type])
        return extensions

    def _upload_images(
        self,
        product_id: uuid.UUID,
        files: list[tuple[str, bytes]],
    ) -> list[str]:
        """
        Upload images to random filenames.

        Path pattern:
            products/<product_id>/<uuid>.<ext>
        """
        extensions = self._validate_images(files)
        urls: list[str] = []
        for ext, (content_type, file_bytes) in zip(extensions, files):
            path = f"products/{product_id}/{generate_filename(ext)}"
            urls.append(upload_to_storage(path, file_bytes, content_type))
        return urls

    # ----- Products -----

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Product]:
        return self.repo.list_products(session, skip=skip, limit=limit)

    def get_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise ProductNotFound()
        return product

    def create_product(
        self,
        session: Session,
        payload: ProductCreate,
        images: list[tuple[str, bytes]],
    ) -> Product:
        """
        Create a new product with 1..3 uploaded images.

        Images are validated before anything is uploaded.
        """
        self._validate_images(images)

        product = Product(
            name=payload.name,
            description=payload.description,
            price=payload.price,
            stock=payload.stock,
            category=payload.category,
        )
        product.images = self._upload_images(product.id, images)

        product = self.repo.create(session, product)
        logger.info("Created product %s (%s)", product.id, product.name)
        return product

    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductUpdate,
        images: Iterable[tuple[str, bytes]] = (),
    ) -> Product:
        """
        Partial update of a product.

        If new images are uploaded they replace the whole image list;
        the previous files are removed from Storage (best-effort).
        """
        product = self.get_product(session, product_id)

        if payload.name is not None:
            product.name = payload.name

        if payload.description is not None:
            product.description = payload.description

        if payload.price is not None:
            product.price = payload.price

        if payload.stock is not None:
            product.stock = payload.stock

        if payload.category is not None:
            product.category = payload.category

        new_images = list(images)
        old_urls: list[str] = []
        if new_images:
            old_urls = list(product.images)
            product.images = self._upload_images(product.id, new_images)

        product = self.repo.update(session, product)
        if old_urls:
            delete_public_urls(old_urls)
        return product

    def delete_product(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> None:
        """
        Delete a product and clean up its Storage files.
        """
        product = self.get_product(session, product_id)
        if self.repo.has_order_items(session, product_id):
            raise ProductInUse()
        urls = list(product.images)

        self.repo.delete(session, product)
        delete_public_urls(urls)
        logger.info("Deleted product %s", product_id)
