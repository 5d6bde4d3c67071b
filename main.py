import os
import re
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from bson.errors import InvalidId
from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from jose import ExpiredSignatureError, JWTError
from pymongo.errors import DuplicateKeyError

import catalog
import database as store
import orders
import reviews
from database import create_document, ensure_indexes, get_db, get_documents, now_utc, populate, serialize, to_object_id
from errors import AppError, Conflict, NotFound, Unauthenticated, ValidationError
from logging_setup import configure_logging
from schemas import (
    Category as CategorySchema,
    CategoryUpdate,
    ForgotPasswordRequest,
    LoginRequest,
    Order as OrderSchema,
    OrderStatus,
    PaymentChange,
    PaymentStatus,
    Product as ProductSchema,
    ProductUpdate,
    ProfileUpdate,
    RegisterRequest,
    ResetPasswordRequest,
    Review as ReviewSchema,
    ReviewApproval,
    ReviewUpdate,
    StatusChange,
    StockUpdate,
    UpdatePasswordRequest,
    User as UserSchema,
    UserRole,
)
from security import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    generate_one_time_token,
    get_current_user,
    get_optional_user,
    get_password_hash,
    hash_token,
    is_admin,
    password_changed_after,
    require_roles,
    reset_token_expiry,
    verify_password,
)
from seed import seed_catalog
from settings import API_PREFIX, CLIENT_URL, REFRESH_TOKEN_EXPIRE_DAYS, is_production

configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if store.db is not None:
        ensure_indexes(store.db)
        orders.reapply_pending_side_effects(store.db)
    yield


app = FastAPI(title="Storefront API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[CLIENT_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

admin_only = require_roles(UserRole.admin)


# ---------- Error translation ----------

def error_response(status_code: int, message: str, errors: Optional[dict] = None, exc: Optional[Exception] = None) -> JSONResponse:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    if exc is not None and not is_production():
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(AppError)
def handle_app_error(request: Request, exc: AppError):
    return error_response(exc.status_code, exc.message, exc.errors, exc)


@app.exception_handler(RequestValidationError)
def handle_request_validation(request: Request, exc: RequestValidationError):
    errors = {}
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())[1:]) or "body"
        errors[field] = err.get("msg", "Invalid value")
    return error_response(400, "Validation error", errors)


@app.exception_handler(DuplicateKeyError)
def handle_duplicate_key(request: Request, exc: DuplicateKeyError):
    key_value = (exc.details or {}).get("keyValue") or {}
    errors = {field: f"The value '{value}' is already in use" for field, value in key_value.items()}
    return error_response(Conflict.status_code, "Duplicate value", errors or None, exc)


@app.exception_handler(InvalidId)
def handle_invalid_id(request: Request, exc: InvalidId):
    return error_response(ValidationError.status_code, "Invalid identifier", {"id": str(exc)}, exc)


@app.exception_handler(ExpiredSignatureError)
def handle_expired_token(request: Request, exc: ExpiredSignatureError):
    return error_response(Unauthenticated.status_code, "Your session has expired. Please log in again", exc=exc)


@app.exception_handler(JWTError)
def handle_invalid_token(request: Request, exc: JWTError):
    return error_response(Unauthenticated.status_code, "Invalid token. Please log in again", exc=exc)


@app.exception_handler(Exception)
def handle_unexpected(request: Request, exc: Exception):
    logger.error("unhandled_error", path=request.url.path, exc_info=exc)
    return error_response(500, "Server error", exc=exc)


# ---------- Helpers ----------

def send_token_response(response: Response, user: dict) -> dict:
    token = create_access_token(user["_id"])
    refresh = create_refresh_token(user["_id"])
    response.set_cookie(
        REFRESH_COOKIE,
        refresh,
        max_age=REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=is_production(),
        samesite="lax",
    )
    return {"success": True, "token": token, "user": serialize(user)}


def listing(items, total=None, pagination=None, **extra) -> dict:
    body = {"success": True, "count": len(items)}
    if total is not None:
        body["total"] = total
    if pagination is not None:
        body["pagination"] = pagination
    body.update(extra)
    body["data"] = [serialize(i) for i in items]
    return body


def single(doc) -> dict:
    return {"success": True, "data": serialize(doc)}


@app.get("/")
def read_root():
    return {"message": "Storefront API is running"}


@app.get("/health")
def health():
    response = {
        "status": "OK",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
        "collections": [],
    }
    if store.db is not None:
        try:
            response["collections"] = store.db.list_collection_names()[:10]
            response["database"] = "✅ Connected & Working"
        except Exception as e:
            logger.warning("health_check_failed", error=str(e))
            response["database"] = f"⚠️ Connected but Error: {str(e)[:50]}"
    return response


# ---------- Auth ----------

@app.post(f"{API_PREFIX}/auth/register", status_code=201)
def register(payload: RegisterRequest, response: Response, db=Depends(get_db)):
    if db["user"].find_one({"email": payload.email}):
        raise Conflict("Email already registered")
    user = UserSchema(
        firstName=payload.firstName,
        lastName=payload.lastName,
        email=payload.email,
        password=get_password_hash(payload.password),
    ).model_dump(mode="json", exclude_none=True)
    _raw, verification_hash = generate_one_time_token()
    user["verificationToken"] = verification_hash
    create_document(db, "user", user)
    logger.info("user_registered", user_id=str(user["_id"]))
    return send_token_response(response, user)


@app.post(f"{API_PREFIX}/auth/login")
def login(payload: LoginRequest, response: Response, db=Depends(get_db)):
    user = db["user"].find_one({"email": payload.email})
    if not user or not verify_password(payload.password, user.get("password", "")):
        logger.info("login_failed", email=payload.email)
        raise Unauthenticated("Incorrect email or password")
    return send_token_response(response, user)


@app.get(f"{API_PREFIX}/auth/logout")
def logout(response: Response):
    response.set_cookie(REFRESH_COOKIE, "none", max_age=10, httponly=True)
    response.delete_cookie(ACCESS_COOKIE)
    return {"success": True, "message": "Logged out"}


@app.get(f"{API_PREFIX}/auth/verify-email/{{token}}")
def verify_email(token: str, db=Depends(get_db)):
    user = db["user"].find_one({"verificationToken": hash_token(token)})
    if not user:
        raise ValidationError("Invalid or expired token")
    db["user"].update_one(
        {"_id": user["_id"]},
        {"$set": {"isEmailVerified": True, "updatedAt": now_utc()}, "$unset": {"verificationToken": ""}},
    )
    return {"success": True, "message": "Email verified"}


@app.post(f"{API_PREFIX}/auth/forgot-password")
def forgot_password(payload: ForgotPasswordRequest, db=Depends(get_db)):
    user = db["user"].find_one({"email": payload.email.lower()})
    if not user:
        raise NotFound("No user found with this email")
    _raw, reset_hash = generate_one_time_token()
    db["user"].update_one(
        {"_id": user["_id"]},
        {"$set": {"resetPasswordToken": reset_hash, "resetPasswordExpires": reset_token_expiry()}},
    )
    # TODO: email the raw reset token once a mail transport exists
    logger.info("password_reset_requested", user_id=str(user["_id"]))
    return {"success": True, "message": "Password reset email sent"}


@app.put(f"{API_PREFIX}/auth/reset-password/{{token}}")
def reset_password(token: str, payload: ResetPasswordRequest, response: Response, db=Depends(get_db)):
    user = db["user"].find_one({
        "resetPasswordToken": hash_token(token),
        "resetPasswordExpires": {"$gt": now_utc()},
    })
    if not user:
        raise ValidationError("Invalid or expired token")
    db["user"].update_one(
        {"_id": user["_id"]},
        {
            "$set": {"password": get_password_hash(payload.password), "passwordChangedAt": now_utc(), "updatedAt": now_utc()},
            "$unset": {"resetPasswordToken": "", "resetPasswordExpires": ""},
        },
    )
    logger.info("password_reset", user_id=str(user["_id"]))
    return send_token_response(response, db["user"].find_one({"_id": user["_id"]}))


@app.post(f"{API_PREFIX}/auth/refresh-token")
def refresh_token(request: Request, db=Depends(get_db)):
    raw = request.cookies.get(REFRESH_COOKIE)
    if not raw or raw == "none":
        raise Unauthenticated("Please log in")
    payload = decode_refresh_token(raw)
    user = db["user"].find_one({"_id": to_object_id(payload["sub"])})
    if not user:
        raise Unauthenticated("The user belonging to this token no longer exists")
    if password_changed_after(user, payload.get("iat", 0)):
        raise Unauthenticated("Password was changed recently. Please log in again")
    return {"success": True, "token": create_access_token(user["_id"])}


@app.get(f"{API_PREFIX}/auth/profile")
def get_profile(current: dict = Depends(get_current_user)):
    return single(current)


@app.put(f"{API_PREFIX}/auth/profile")
def update_profile(payload: ProfileUpdate, current: dict = Depends(get_current_user), db=Depends(get_db)):
    changes = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    if "email" in changes:
        changes["email"] = changes["email"].lower()
        if changes["email"] != current["email"] and db["user"].find_one({"email": changes["email"]}):
            raise Conflict("Email already registered")
    changes["updatedAt"] = now_utc()
    db["user"].update_one({"_id": current["_id"]}, {"$set": changes})
    return single(db["user"].find_one({"_id": current["_id"]}))


@app.put(f"{API_PREFIX}/auth/update-password")
def update_password(payload: UpdatePasswordRequest, response: Response, current: dict = Depends(get_current_user), db=Depends(get_db)):
    if not verify_password(payload.currentPassword, current.get("password", "")):
        raise Unauthenticated("Current password is incorrect")
    db["user"].update_one(
        {"_id": current["_id"]},
        {"$set": {"password": get_password_hash(payload.newPassword), "passwordChangedAt": now_utc(), "updatedAt": now_utc()}},
    )
    logger.info("password_changed", user_id=str(current["_id"]))
    return send_token_response(response, db["user"].find_one({"_id": current["_id"]}))


# ---------- Products ----------

@app.get(f"{API_PREFIX}/products")
def list_products(
    keyword: Optional[str] = None,
    category: Optional[str] = None,
    minPrice: Optional[float] = None,
    maxPrice: Optional[float] = None,
    isOrganic: Optional[bool] = None,
    isVegan: Optional[bool] = None,
    isGlutenFree: Optional[bool] = None,
    page: int = 1,
    limit: int = 10,
    sort: Optional[str] = None,
    db=Depends(get_db),
):
    query = {}
    if keyword:
        pattern = re.escape(keyword)
        query["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
        ]
    if category:
        cat = db["category"].find_one({"slug": category})
        query["category"] = cat["_id"] if cat else None
    for flag, value in (("isOrganic", isOrganic), ("isVegan", isVegan), ("isGlutenFree", isGlutenFree)):
        if value is not None:
            query[flag] = value
    if minPrice is not None or maxPrice is not None:
        price_filter = {}
        if minPrice is not None:
            price_filter["$gte"] = minPrice
        if maxPrice is not None:
            price_filter["$lte"] = maxPrice
        query["price"] = price_filter

    items, total, pagination = catalog.paginate(
        db["product"], query, catalog.parse_sort(sort, [("createdAt", -1)]), page, limit
    )
    return listing(populate(db, items, "category", "category"), total, pagination)


@app.get(f"{API_PREFIX}/products/featured")
def featured_products(limit: int = 6, db=Depends(get_db)):
    items = get_documents(db, "product", {"featured": True}, limit)
    return listing(populate(db, items, "category", "category"))


@app.get(f"{API_PREFIX}/products/slug/{{slug}}")
def get_product_by_slug(slug: str, db=Depends(get_db)):
    product = db["product"].find_one({"slug": slug})
    if not product:
        raise NotFound("Product not found")
    return single(populate(db, [product], "category", "category")[0])


@app.get(f"{API_PREFIX}/products/{{product_id}}")
def get_product(product_id: str, db=Depends(get_db)):
    product = catalog.find_product(db, product_id)
    return single(populate(db, [product], "category", "category")[0])


@app.get(f"{API_PREFIX}/products/{{product_id}}/similar")
def similar_products(product_id: str, limit: int = 4, db=Depends(get_db)):
    product = catalog.find_product(db, product_id)
    items = get_documents(db, "product", {"_id": {"$ne": product["_id"]}, "category": product["category"]}, limit)
    return listing(populate(db, items, "category", "category"))


@app.get(f"{API_PREFIX}/products/{{product_id}}/reviews")
def product_reviews(
    product_id: str,
    rating: Optional[int] = None,
    verifiedPurchase: Optional[bool] = None,
    page: int = 1,
    limit: int = 10,
    sort: Optional[str] = None,
    current: Optional[dict] = Depends(get_optional_user),
    db=Depends(get_db),
):
    product = catalog.find_product(db, product_id)
    query = {"product": product["_id"]}
    if not (current and is_admin(current)):
        query["approved"] = "approved"
    if rating is not None:
        query["rating"] = rating
    if verifiedPurchase is not None:
        query["verifiedPurchase"] = verifiedPurchase
    items, total, pagination = catalog.paginate(
        db["review"], query, catalog.parse_sort(sort, [("createdAt", -1)]), page, limit
    )
    items = [reviews.with_approval_flag(r) for r in populate(db, items, "user", "user", ("firstName", "lastName"))]
    distribution = {str(k): v for k, v in reviews.rating_distribution(db, product["_id"]).items()}
    return listing(items, total, pagination, ratingDistribution=distribution)


@app.post(f"{API_PREFIX}/products", status_code=201)
def create_product(payload: ProductSchema, admin: dict = Depends(admin_only), db=Depends(get_db)):
    return single(catalog.create_product(db, payload))


@app.put(f"{API_PREFIX}/products/{{product_id}}")
def update_product(product_id: str, payload: ProductUpdate, admin: dict = Depends(admin_only), db=Depends(get_db)):
    return single(catalog.update_product(db, product_id, payload))


@app.delete(f"{API_PREFIX}/products/{{product_id}}")
def delete_product(product_id: str, admin: dict = Depends(admin_only), db=Depends(get_db)):
    catalog.delete_product(db, product_id)
    return {"success": True, "message": "Product deleted"}


@app.put(f"{API_PREFIX}/products/{{product_id}}/stock")
def update_product_stock(product_id: str, payload: StockUpdate, admin: dict = Depends(admin_only), db=Depends(get_db)):
    return single(catalog.set_product_stock(db, product_id, payload.stock))


# ---------- Categories ----------

@app.get(f"{API_PREFIX}/categories")
def list_categories(
    level: Optional[int] = None,
    parent: Optional[str] = None,
    active: Optional[bool] = None,
    sort: Optional[str] = None,
    db=Depends(get_db),
):
    query = {}
    if level is not None:
        query["level"] = level
    if parent:
        query["parent"] = None if parent == "null" else to_object_id(parent, "parent")
    if active is not None:
        query["isActive"] = active
    items = list(db["category"].find(query).sort(catalog.parse_sort(sort, [("name", 1)])))
    return listing(populate(db, items, "parent", "category"))


@app.get(f"{API_PREFIX}/categories/slug/{{slug}}")
def get_category_by_slug(slug: str, db=Depends(get_db)):
    category = db["category"].find_one({"slug": slug})
    if not category:
        raise NotFound("Category not found")
    return single(populate(db, [category], "parent", "category")[0])


@app.get(f"{API_PREFIX}/categories/{{category_id}}")
def get_category(category_id: str, db=Depends(get_db)):
    category = catalog.find_category(db, category_id)
    return single(populate(db, [category], "parent", "category")[0])


@app.get(f"{API_PREFIX}/categories/{{category_id}}/subcategories")
def subcategories(category_id: str, db=Depends(get_db)):
    return listing(catalog.get_subcategories(db, category_id))


@app.get(f"{API_PREFIX}/categories/{{category_id}}/path")
def category_path(category_id: str, db=Depends(get_db)):
    return {"success": True, "data": [serialize(p) for p in catalog.get_category_path(db, category_id)]}


@app.get(f"{API_PREFIX}/categories/{{category_id}}/products")
def category_products(category_id: str, page: int = 1, limit: int = 10, sort: Optional[str] = None, db=Depends(get_db)):
    ids = catalog.category_family_ids(db, category_id)
    items, total, pagination = catalog.paginate(
        db["product"], {"category": {"$in": ids}}, catalog.parse_sort(sort, [("createdAt", -1)]), page, limit
    )
    return listing(populate(db, items, "category", "category"), total, pagination)


@app.post(f"{API_PREFIX}/categories", status_code=201)
def create_category(payload: CategorySchema, admin: dict = Depends(admin_only), db=Depends(get_db)):
    return single(catalog.create_category(db, payload))


@app.put(f"{API_PREFIX}/categories/{{category_id}}")
def update_category(category_id: str, payload: CategoryUpdate, admin: dict = Depends(admin_only), db=Depends(get_db)):
    return single(catalog.update_category(db, category_id, payload))


@app.delete(f"{API_PREFIX}/categories/{{category_id}}")
def delete_category(category_id: str, admin: dict = Depends(admin_only), db=Depends(get_db)):
    catalog.delete_category(db, category_id)
    return {"success": True, "message": "Category deleted"}


# ---------- Orders ----------

@app.post(f"{API_PREFIX}/orders", status_code=201)
def create_order(payload: OrderSchema, current: dict = Depends(get_current_user), db=Depends(get_db)):
    order = orders.place_order(
        db,
        current["_id"],
        payload.items,
        payload.shippingAddress.model_dump(),
        payload.paymentMethod.value,
    )
    return single(order)


@app.get(f"{API_PREFIX}/orders/me")
def my_orders(status: Optional[OrderStatus] = None, page: int = 1, limit: int = 10, current: dict = Depends(get_current_user), db=Depends(get_db)):
    query = {"user": current["_id"]}
    if status:
        query["status"] = status.value
    items, total, pagination = catalog.paginate(db["order"], query, [("createdAt", -1)], page, limit)
    return listing(items, total, pagination)


@app.get(f"{API_PREFIX}/orders/stats")
def order_stats(startDate: Optional[datetime] = None, endDate: Optional[datetime] = None, admin: dict = Depends(admin_only), db=Depends(get_db)):
    now = datetime.now(timezone.utc)
    start = startDate or now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    end = endDate or now
    stats = orders.order_stats(db, start, end)
    stats["topProducts"] = [serialize(p) for p in stats["topProducts"]]
    return {"success": True, "data": stats}


@app.get(f"{API_PREFIX}/orders")
def list_orders(
    status: Optional[OrderStatus] = None,
    paymentStatus: Optional[PaymentStatus] = None,
    orderNumber: Optional[str] = None,
    user: Optional[str] = None,
    startDate: Optional[datetime] = None,
    endDate: Optional[datetime] = None,
    page: int = 1,
    limit: int = 10,
    sort: Optional[str] = None,
    admin: dict = Depends(admin_only),
    db=Depends(get_db),
):
    query = {}
    if status:
        query["status"] = status.value
    if paymentStatus:
        query["paymentStatus"] = paymentStatus.value
    if orderNumber:
        query["orderNumber"] = orderNumber
    if user:
        query["user"] = to_object_id(user, "user")
    if startDate and endDate:
        query["createdAt"] = {"$gte": startDate, "$lte": endDate}
    items, total, pagination = catalog.paginate(
        db["order"], query, catalog.parse_sort(sort, [("createdAt", -1)]), page, limit
    )
    items = populate(db, items, "user", "user", ("firstName", "lastName", "email"))
    return listing(items, total, pagination)


@app.get(f"{API_PREFIX}/orders/{{order_id}}")
def get_order(order_id: str, current: dict = Depends(get_current_user), db=Depends(get_db)):
    order = orders.find_order(db, order_id)
    orders.check_order_access(order, current)
    return single(populate(db, [order], "user", "user", ("firstName", "lastName", "email"))[0])


@app.put(f"{API_PREFIX}/orders/{{order_id}}/status")
def change_order_status(order_id: str, payload: StatusChange, admin: dict = Depends(admin_only), db=Depends(get_db)):
    return single(orders.update_order_status(db, order_id, payload.status, admin))


@app.put(f"{API_PREFIX}/orders/{{order_id}}/payment")
def change_payment_status(order_id: str, payload: PaymentChange, admin: dict = Depends(admin_only), db=Depends(get_db)):
    return single(orders.update_payment_status(db, order_id, payload.paymentStatus, payload.transactionId))


@app.put(f"{API_PREFIX}/orders/{{order_id}}/cancel")
def cancel_order(order_id: str, current: dict = Depends(get_current_user), db=Depends(get_db)):
    return single(orders.cancel_order(db, order_id, current))


# ---------- Reviews ----------

@app.get(f"{API_PREFIX}/reviews/most-helpful")
def most_helpful_reviews(limit: int = 5, product: Optional[str] = None, db=Depends(get_db)):
    product_id = to_object_id(product, "product") if product else None
    items = populate(db, reviews.most_helpful(db, limit, product_id), "user", "user", ("firstName", "lastName"))
    return listing(items)


@app.get(f"{API_PREFIX}/reviews/pending")
def pending_reviews(page: int = 1, limit: int = 10, admin: dict = Depends(admin_only), db=Depends(get_db)):
    items, total, pagination = catalog.paginate(db["review"], {"approved": "pending"}, [("createdAt", -1)], page, limit)
    items = populate(db, items, "user", "user", ("firstName", "lastName"))
    items = populate(db, items, "product", "product", ("name", "slug", "images"))
    return listing([reviews.with_approval_flag(r) for r in items], total, pagination)


@app.get(f"{API_PREFIX}/reviews/{{review_id}}")
def get_review(review_id: str, current: Optional[dict] = Depends(get_optional_user), db=Depends(get_db)):
    review = reviews.with_approval_flag(reviews.find_review(db, review_id))
    if not review["isApproved"]:
        if current is None or (review["user"] != current["_id"] and not is_admin(current)):
            raise NotFound("Review not found")
    review = populate(db, [review], "user", "user", ("firstName", "lastName"))[0]
    review = populate(db, [review], "product", "product", ("name", "slug", "images"))[0]
    return single(review)


@app.post(f"{API_PREFIX}/reviews", status_code=201)
def create_review(payload: ReviewSchema, current: dict = Depends(get_current_user), db=Depends(get_db)):
    return single(reviews.create_review(db, current, payload))


@app.put(f"{API_PREFIX}/reviews/{{review_id}}")
def update_review(review_id: str, payload: ReviewUpdate, current: dict = Depends(get_current_user), db=Depends(get_db)):
    return single(reviews.update_review(db, review_id, current, payload))


@app.delete(f"{API_PREFIX}/reviews/{{review_id}}")
def delete_review(review_id: str, current: dict = Depends(get_current_user), db=Depends(get_db)):
    reviews.delete_review(db, review_id, current)
    return {"success": True, "message": "Review deleted"}


@app.put(f"{API_PREFIX}/reviews/{{review_id}}/approve")
def approve_review(review_id: str, payload: ReviewApproval, admin: dict = Depends(admin_only), db=Depends(get_db)):
    return single(reviews.set_approval(db, review_id, payload.isApproved))


@app.put(f"{API_PREFIX}/reviews/{{review_id}}/like")
def like_review(review_id: str, current: dict = Depends(get_current_user), db=Depends(get_db)):
    return single(reviews.like_review(db, review_id))


# Seed sample data if empty
@app.post(f"{API_PREFIX}/seed")
def seed(admin: dict = Depends(admin_only), db=Depends(get_db)):
    return {"success": True, "data": seed_catalog(db)}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
