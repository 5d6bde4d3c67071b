"""
Product reviews and rating aggregation.

A product's `rating`/`numReviews` are derived from its approved reviews and
recomputed in full after every create, rating update, approval change and
delete.
"""
from typing import Optional

import structlog
from pymongo.errors import DuplicateKeyError

from catalog import find_product
from database import create_document, now_utc, to_object_id
from errors import DuplicateReview, Forbidden, NotFound, PurchaseRequired, TooManyImages
from orders import PURCHASED_STATUSES
from schemas import ApprovalStatus, Review, ReviewUpdate
from security import is_admin
from settings import MAX_REVIEW_IMAGES

logger = structlog.get_logger(__name__)


def recompute_product_rating(database, product_id) -> dict:
    stats = list(database["review"].aggregate([
        {"$match": {"product": product_id, "approved": ApprovalStatus.approved.value}},
        {"$group": {"_id": "$product", "avgRating": {"$avg": "$rating"}, "numReviews": {"$sum": 1}}},
    ]))
    if stats:
        values = {"rating": float(stats[0]["avgRating"]), "numReviews": stats[0]["numReviews"]}
    else:
        values = {"rating": 0, "numReviews": 0}
    database["product"].update_one({"_id": product_id}, {"$set": values})
    logger.info("product_rating_recomputed", product_id=str(product_id), **values)
    return values


def has_user_purchased_product(database, user_id, product_id) -> bool:
    return database["order"].find_one({
        "user": user_id,
        "items.product": product_id,
        "status": {"$in": list(PURCHASED_STATUSES)},
    }) is not None


def _check_images(images) -> None:
    if images and len(images) > MAX_REVIEW_IMAGES:
        raise TooManyImages(MAX_REVIEW_IMAGES)


def with_approval_flag(review: Optional[dict]) -> Optional[dict]:
    if review is not None:
        review["isApproved"] = review.get("approved") == ApprovalStatus.approved.value
    return review


def create_review(database, principal: dict, payload: Review) -> dict:
    product = find_product(database, payload.product)
    user_id = principal["_id"]
    if not has_user_purchased_product(database, user_id, product["_id"]):
        raise PurchaseRequired()
    if database["review"].find_one({"user": user_id, "product": product["_id"]}):
        raise DuplicateReview()
    _check_images(payload.images)

    review = {
        "user": user_id,
        "product": product["_id"],
        "rating": payload.rating,
        "title": payload.title.strip(),
        "comment": payload.comment.strip(),
        "images": payload.images,
        "verifiedPurchase": True,
        "approved": ApprovalStatus.pending.value,
        "helpfulCount": 0,
    }
    try:
        create_document(database, "review", review)
    except DuplicateKeyError:
        # lost a race with a concurrent submission for the same pair
        raise DuplicateReview()
    recompute_product_rating(database, product["_id"])
    logger.info("review_created", review_id=str(review["_id"]), product_id=str(product["_id"]))
    return with_approval_flag(review)


def find_review(database, review_id) -> dict:
    review = database["review"].find_one({"_id": to_object_id(review_id)})
    if not review:
        raise NotFound("Review not found")
    return review


def _check_owner(review: dict, principal: dict) -> None:
    if review["user"] != principal["_id"] and not is_admin(principal):
        raise Forbidden("Not authorized")


def update_review(database, review_id, principal: dict, payload: ReviewUpdate) -> dict:
    review = find_review(database, review_id)
    _check_owner(review, principal)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    _check_images(changes.get("images"))
    changes["updatedAt"] = now_utc()
    database["review"].update_one({"_id": review["_id"]}, {"$set": changes})
    if "rating" in changes:
        recompute_product_rating(database, review["product"])
    return with_approval_flag(database["review"].find_one({"_id": review["_id"]}))


def delete_review(database, review_id, principal: dict) -> None:
    review = find_review(database, review_id)
    _check_owner(review, principal)
    database["review"].delete_one({"_id": review["_id"]})
    recompute_product_rating(database, review["product"])
    logger.info("review_deleted", review_id=str(review["_id"]), deleted_by=str(principal["_id"]))


def set_approval(database, review_id, approved: bool) -> dict:
    review = find_review(database, review_id)
    state = ApprovalStatus.approved if approved else ApprovalStatus.rejected
    database["review"].update_one({"_id": review["_id"]}, {"$set": {"approved": state.value, "updatedAt": now_utc()}})
    recompute_product_rating(database, review["product"])
    return with_approval_flag(database["review"].find_one({"_id": review["_id"]}))


def like_review(database, review_id) -> dict:
    review = find_review(database, review_id)
    database["review"].update_one({"_id": review["_id"]}, {"$inc": {"helpfulCount": 1}})
    return with_approval_flag(database["review"].find_one({"_id": review["_id"]}))


def rating_distribution(database, product_id) -> dict:
    rows = database["review"].aggregate([
        {"$match": {"product": product_id, "approved": ApprovalStatus.approved.value}},
        {"$group": {"_id": "$rating", "count": {"$sum": 1}}},
    ])
    distribution = {star: 0 for star in (5, 4, 3, 2, 1)}
    for row in rows:
        if row["_id"] in distribution:
            distribution[row["_id"]] = row["count"]
    return distribution


def most_helpful(database, limit: int = 5, product_id=None) -> list:
    query = {"approved": ApprovalStatus.approved.value}
    if product_id is not None:
        query["product"] = product_id
    cursor = database["review"].find(query).sort([("helpfulCount", -1), ("createdAt", -1)]).limit(limit)
    return [with_approval_flag(r) for r in cursor]
