import logging
import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import AliasChoices, BaseModel, Field
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database
from slugify import slugify

import config
from database import create_document, get_db, parse_object_id, serialize_doc
from payments import charge, generate_client_token, get_gateway
from schemas import Order as OrderSchema, Photo, Product as ProductSchema
from security import is_admin, require_sign_in

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/product", tags=["Product"])

NO_PHOTO = {"photo": 0}


# ----------------------- Models -----------------------
class FilterBody(BaseModel):
    checked: List[str] = []
    radio: List[float] = []


class CartItem(BaseModel):
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    price: Optional[float] = None


class PaymentBody(BaseModel):
    nonce: Optional[str] = None
    cart: List[CartItem] = []


# ----------------------- Helpers -----------------------
def with_category(db: Database, products) -> list:
    """Serialize products with their category reference resolved."""
    products = list(products)
    category_ids = {p["category"] for p in products if p.get("category")}
    categories = {c["_id"]: c for c in db["category"].find({"_id": {"$in": list(category_ids)}})}

    out = []
    for p in products:
        p = dict(p)
        p["category"] = categories.get(p.get("category"))
        out.append(serialize_doc(p))
    return out


def _read_photo(photo: Optional[UploadFile]) -> Optional[Photo]:
    if photo is None:
        return None
    data = photo.file.read()
    if len(data) >= config.PHOTO_MAX_BYTES:
        raise HTTPException(status_code=400, detail="Photo should be less than 1mb")
    return Photo(data=data, content_type=photo.content_type or "application/octet-stream")


def _build_product(db: Database, name, description, price, category, quantity, shipping, photo=None) -> ProductSchema:
    required = [
        (name, "Name is Required"),
        (description, "Description is Required"),
        (price, "Price is Required"),
        (category, "Category is Required"),
        (quantity, "Quantity is Required"),
    ]
    for value, message in required:
        if value is None or str(value).strip() == "":
            raise HTTPException(status_code=400, detail=message)

    category_id = parse_object_id(category, "category")
    if not db["category"].find_one({"_id": category_id}):
        raise HTTPException(status_code=404, detail="Category not found")

    return ProductSchema(
        name=name,
        slug=slugify(name),
        description=description,
        price=price,
        category=category_id,
        quantity=quantity,
        shipping=shipping if shipping not in (None, "") else None,
        photo=photo,
    )


# ----------------------- Admin -----------------------
@router.post("/create-product", status_code=201)
def create_product(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    quantity: Optional[str] = Form(None),
    shipping: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    user=Depends(is_admin),
    db: Database = Depends(get_db),
):
    if photo is None:
        # field errors take precedence over the missing photo
        _build_product(db, name, description, price, category, quantity, shipping)
        raise HTTPException(status_code=400, detail="Photo is Required")

    product = _build_product(db, name, description, price, category, quantity, shipping, _read_photo(photo))
    pid = create_document(db, "product", product)
    logger.info("Created product %s (%s)", product.name, pid)

    saved = db["product"].find_one({"_id": parse_object_id(pid, "product")}, NO_PHOTO)
    return {"success": True, "message": "Product Created Successfully", "products": serialize_doc(saved)}


@router.put("/update-product/{pid}")
def update_product(
    pid: str,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    quantity: Optional[str] = Form(None),
    shipping: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    user=Depends(is_admin),
    db: Database = Depends(get_db),
):
    oid = parse_object_id(pid, "product")
    product = _build_product(db, name, description, price, category, quantity, shipping, _read_photo(photo))

    update = product.model_dump()
    if product.photo is None:
        update.pop("photo")
    if product.shipping is None:
        update.pop("shipping")
    update["updated_at"] = datetime.now(timezone.utc)

    saved = db["product"].find_one_and_update(
        {"_id": oid},
        {"$set": update},
        projection=NO_PHOTO,
        return_document=ReturnDocument.AFTER,
    )
    if not saved:
        raise HTTPException(status_code=404, detail="Product Not Found")
    logger.info("Updated product %s", pid)
    return {"success": True, "message": "Product Updated Successfully", "products": serialize_doc(saved)}


@router.delete("/delete-product/{pid}")
def delete_product(pid: str, user=Depends(is_admin), db: Database = Depends(get_db)):
    res = db["product"].delete_one({"_id": parse_object_id(pid, "product")})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Product Not Found")
    logger.info("Deleted product %s", pid)
    return {"success": True, "message": "Product Deleted successfully"}


# ----------------------- Catalog -----------------------
@router.get("/get-product")
def get_products(db: Database = Depends(get_db)):
    cursor = db["product"].find({}, NO_PHOTO).sort("created_at", DESCENDING).limit(config.LATEST_PRODUCTS_LIMIT)
    products = with_category(db, cursor)
    return {"success": True, "countTotal": len(products), "message": "All Products", "products": products}


@router.get("/get-product/{slug}")
def get_product(slug: str, db: Database = Depends(get_db)):
    product = db["product"].find_one({"slug": slug}, NO_PHOTO)
    if not product:
        raise HTTPException(status_code=404, detail="Product Not Found")
    return {"success": True, "message": "Single Product Fetched", "product": with_category(db, [product])[0]}


@router.get("/product-photo/{pid}")
def product_photo(pid: str, db: Database = Depends(get_db)):
    product = db["product"].find_one({"_id": parse_object_id(pid, "product")}, {"photo": 1})
    photo = (product or {}).get("photo") or {}
    if not photo.get("data"):
        raise HTTPException(status_code=404, detail="No photo found")
    return Response(content=bytes(photo["data"]), media_type=photo.get("content_type"))


@router.post("/product-filters")
def product_filters(body: FilterBody, db: Database = Depends(get_db)):
    args = {}
    if body.checked:
        args["category"] = {"$in": [parse_object_id(c, "category") for c in body.checked]}
    if body.radio:
        if len(body.radio) != 2:
            raise HTTPException(status_code=400, detail="Price range must be [min, max]")
        args["price"] = {"$gte": body.radio[0], "$lte": body.radio[1]}

    products = [serialize_doc(p) for p in db["product"].find(args, NO_PHOTO)]
    return {"success": True, "products": products}


@router.get("/product-count")
def product_count(db: Database = Depends(get_db)):
    return {"success": True, "total": db["product"].estimated_document_count()}


@router.get("/product-list")
@router.get("/product-list/{page}")
def product_list(page: int = 1, db: Database = Depends(get_db)):
    if page < 1:
        raise HTTPException(status_code=400, detail="Page must be 1 or greater")
    per_page = config.PRODUCTS_PER_PAGE
    cursor = (
        db["product"].find({}, NO_PHOTO)
        .sort("created_at", DESCENDING)
        .skip((page - 1) * per_page)
        .limit(per_page)
    )
    return {"success": True, "products": [serialize_doc(p) for p in cursor]}


@router.get("/search/{keyword}")
def search_products(keyword: str, db: Database = Depends(get_db)):
    pattern = {"$regex": re.escape(keyword), "$options": "i"}
    cursor = db["product"].find({"$or": [{"name": pattern}, {"description": pattern}]}, NO_PHOTO)
    return [serialize_doc(p) for p in cursor]


@router.get("/related-product/{pid}/{cid}")
def related_products(pid: str, cid: str, db: Database = Depends(get_db)):
    cursor = db["product"].find(
        {"category": parse_object_id(cid, "category"), "_id": {"$ne": parse_object_id(pid, "product")}},
        NO_PHOTO,
    ).limit(config.RELATED_PRODUCTS_LIMIT)
    return {"success": True, "products": with_category(db, cursor)}


@router.get("/product-category/{slug}")
def products_by_category(slug: str, db: Database = Depends(get_db)):
    category = db["category"].find_one({"slug": slug})
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    cursor = db["product"].find({"category": category["_id"]}, NO_PHOTO)
    return {"success": True, "category": serialize_doc(category), "products": with_category(db, cursor)}


# ----------------------- Payments -----------------------
@router.get("/braintree/token")
def braintree_token(gateway=Depends(get_gateway)):
    try:
        token = generate_client_token(gateway)
    except Exception:
        logger.exception("Could not generate Braintree client token")
        raise HTTPException(status_code=500, detail="Error generating client token")
    return {"clientToken": token}


@router.post("/braintree/payment")
def braintree_payment(
    body: PaymentBody,
    user=Depends(require_sign_in),
    db: Database = Depends(get_db),
    gateway=Depends(get_gateway),
):
    if not body.nonce:
        raise HTTPException(status_code=400, detail="Payment nonce is required")
    if not body.cart:
        raise HTTPException(status_code=400, detail="Cart is empty")

    product_ids = [parse_object_id(item.id, "product") for item in body.cart]
    prices = {p["_id"]: p["price"] for p in db["product"].find({"_id": {"$in": product_ids}}, {"price": 1})}
    if any(pid not in prices for pid in product_ids):
        raise HTTPException(status_code=400, detail="Cart contains unknown products")

    total = sum((Decimal(str(prices[pid])) for pid in product_ids), Decimal("0")).quantize(Decimal("0.01"))

    try:
        result = charge(gateway, total, body.nonce)
    except Exception:
        logger.exception("Braintree sale failed for user %s", user["_id"])
        raise HTTPException(status_code=500, detail="Payment processing failed")

    if not result["success"]:
        raise HTTPException(status_code=400, detail=result["message"] or "Payment declined")

    order = OrderSchema(products=product_ids, payment=result, buyer=user["_id"])
    oid = create_document(db, "order", order)
    logger.info("Order %s placed by %s for %s", oid, user["_id"], total)
    return {"ok": True}
