"""
Category tree and product administration.
"""
from typing import List, Optional

import structlog

from database import create_document, now_utc, to_object_id
from errors import CircularCategory, DomainError, NotFound, ValidationError
from schemas import Category, CategoryUpdate, Product, ProductUpdate, slugify

logger = structlog.get_logger(__name__)


# ---------- Categories ----------

def find_category(database, category_id) -> dict:
    category = database["category"].find_one({"_id": to_object_id(category_id)})
    if not category:
        raise NotFound("Category not found")
    return category


def _level_under(database, parent_id) -> int:
    if not parent_id:
        return 1
    parent = database["category"].find_one({"_id": parent_id})
    if not parent:
        raise NotFound("Parent category not found")
    return parent.get("level", 1) + 1


def check_parent_chain(database, category_id, parent_id) -> None:
    """Refuse a parent assignment that would make a category its own ancestor."""
    if parent_id == category_id:
        raise CircularCategory("A category cannot be its own parent")
    current = database["category"].find_one({"_id": parent_id})
    if not current:
        raise NotFound("Parent category not found")
    seen = {parent_id}
    while current.get("parent"):
        ancestor_id = current["parent"]
        if ancestor_id == category_id:
            raise CircularCategory("Circular category relation detected")
        if ancestor_id in seen:
            # corrupt data already holds a loop that does not involve us
            break
        seen.add(ancestor_id)
        current = database["category"].find_one({"_id": ancestor_id})
        if not current:
            break


def create_category(database, payload: Category) -> dict:
    data = payload.model_dump(exclude_none=True)
    if payload.parent:
        data["parent"] = to_object_id(payload.parent, "parent")
    data["level"] = _level_under(database, data.get("parent"))
    create_document(database, "category", data)
    logger.info("category_created", category_id=str(data["_id"]), level=data["level"])
    return data


def update_category(database, category_id, payload: CategoryUpdate) -> dict:
    category = find_category(database, category_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name") and "slug" not in changes:
        changes["slug"] = slugify(changes["name"])
    if "parent" in changes:
        if changes["parent"]:
            parent_id = to_object_id(changes["parent"], "parent")
            check_parent_chain(database, category["_id"], parent_id)
            changes["parent"] = parent_id
        changes["level"] = _level_under(database, changes["parent"])
    changes["updatedAt"] = now_utc()
    database["category"].update_one({"_id": category["_id"]}, {"$set": changes})
    if "level" in changes and changes["level"] != category.get("level"):
        _relevel_children(database, category["_id"], changes["level"])
    return database["category"].find_one({"_id": category["_id"]})


def _relevel_children(database, category_id, level: int) -> None:
    for child in database["category"].find({"parent": category_id}):
        database["category"].update_one({"_id": child["_id"]}, {"$set": {"level": level + 1}})
        _relevel_children(database, child["_id"], level + 1)


def delete_category(database, category_id) -> None:
    category = find_category(database, category_id)
    if database["category"].find_one({"parent": category["_id"]}):
        raise DomainError("This category has subcategories. Delete them first")
    if database["product"].find_one({"category": category["_id"]}):
        raise DomainError("This category still has products. Delete or move them first")
    database["category"].delete_one({"_id": category["_id"]})
    logger.info("category_deleted", category_id=str(category["_id"]))


def get_subcategories(database, category_id) -> List[dict]:
    return list(database["category"].find({"parent": to_object_id(category_id)}))


def get_category_path(database, category_id) -> List[dict]:
    """Breadcrumb from the root down to the category."""
    current = find_category(database, category_id)
    path = []
    seen = set()
    while current and current["_id"] not in seen:
        seen.add(current["_id"])
        path.insert(0, {"_id": current["_id"], "name": current["name"], "slug": current["slug"]})
        if not current.get("parent"):
            break
        current = database["category"].find_one({"_id": current["parent"]})
    return path


def category_family_ids(database, category_id) -> list:
    category = find_category(database, category_id)
    return [category["_id"]] + [c["_id"] for c in database["category"].find({"parent": category["_id"]}, {"_id": 1})]


# ---------- Products ----------

def find_product(database, product_id) -> dict:
    product = database["product"].find_one({"_id": to_object_id(product_id)})
    if not product:
        raise NotFound("Product not found")
    return product


def create_product(database, payload: Product) -> dict:
    data = payload.model_dump(exclude_none=True)
    data["category"] = find_category(database, payload.category)["_id"]
    data.update({"sold": 0, "rating": 0, "numReviews": 0})
    create_document(database, "product", data)
    logger.info("product_created", product_id=str(data["_id"]), slug=data["slug"])
    return data


def update_product(database, product_id, payload: ProductUpdate) -> dict:
    product = find_product(database, product_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("category"):
        changes["category"] = find_category(database, changes["category"])["_id"]
    if changes.get("name") and "slug" not in changes:
        changes["slug"] = slugify(changes["name"])
    price = changes.get("price", product.get("price"))
    discount = changes.get("discountPrice", product.get("discountPrice"))
    if discount is not None and discount >= price:
        raise ValidationError("Validation error", errors={"discountPrice": "discountPrice must be lower than price"})
    changes["updatedAt"] = now_utc()
    database["product"].update_one({"_id": product["_id"]}, {"$set": changes})
    return database["product"].find_one({"_id": product["_id"]})


def set_product_stock(database, product_id, stock: int) -> dict:
    product = find_product(database, product_id)
    database["product"].update_one({"_id": product["_id"]}, {"$set": {"stock": stock, "updatedAt": now_utc()}})
    logger.info("product_stock_set", product_id=str(product["_id"]), stock=stock)
    return database["product"].find_one({"_id": product["_id"]})


def delete_product(database, product_id) -> None:
    product = find_product(database, product_id)
    database["product"].delete_one({"_id": product["_id"]})
    logger.info("product_deleted", product_id=str(product["_id"]))


def parse_sort(sort: Optional[str], default: List[tuple]) -> List[tuple]:
    """Turn "price,-createdAt" into a pymongo sort spec."""
    if not sort:
        return default
    spec = []
    for field in sort.split(","):
        field = field.strip()
        if not field:
            continue
        if field.startswith("-"):
            spec.append((field[1:], -1))
        else:
            spec.append((field, 1))
    return spec or default


def paginate(collection, query: dict, sort_spec: List[tuple], page: int, limit: int):
    page = max(page, 1)
    limit = max(limit, 1)
    cursor = collection.find(query).sort(sort_spec).skip((page - 1) * limit).limit(limit)
    items = list(cursor)
    total = collection.count_documents(query)
    pagination = {"page": page, "limit": limit, "totalPages": -(-total // limit)}
    return items, total, pagination
