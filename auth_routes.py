import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

import config
from database import create_document, get_db, parse_object_id, serialize_doc
from schemas import ORDER_STATUSES, User as UserSchema
from security import compare_password, create_token, hash_password, is_admin, public_user, require_sign_in

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


# ----------------------- Models -----------------------
class RegisterBody(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    answer: Optional[str] = None


class LoginBody(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordBody(BaseModel):
    email: Optional[str] = None
    answer: Optional[str] = None
    new_password: Optional[str] = Field(None, alias="newPassword")


class ProfileBody(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class OrderStatusBody(BaseModel):
    status: Optional[str] = None


def populate_orders(db: Database, orders) -> list:
    """Resolve product and buyer references on a list of order documents."""
    orders = list(orders)
    product_ids = {pid for o in orders for pid in o.get("products", [])}
    buyer_ids = {o["buyer"] for o in orders if o.get("buyer")}

    products = {p["_id"]: p for p in db["product"].find({"_id": {"$in": list(product_ids)}}, {"photo": 0})}
    buyers = {u["_id"]: u for u in db["user"].find({"_id": {"$in": list(buyer_ids)}}, {"name": 1})}

    populated = []
    for o in orders:
        o = dict(o)
        o["products"] = [products[pid] for pid in o.get("products", []) if pid in products]
        o["buyer"] = buyers.get(o.get("buyer"))
        populated.append(serialize_doc(o))
    return populated


# ----------------------- Account -----------------------
@router.post("/register", status_code=201)
def register(body: RegisterBody, db: Database = Depends(get_db)):
    required = [
        ("name", "Name is Required"),
        ("email", "Email is Required"),
        ("password", "Password is Required"),
        ("phone", "Phone no is Required"),
        ("address", "Address is Required"),
        ("answer", "Answer is Required"),
    ]
    for field, message in required:
        if not getattr(body, field):
            raise HTTPException(status_code=400, detail=message)

    user = UserSchema(
        name=body.name,
        email=body.email,
        password_hash=hash_password(body.password),
        phone=body.phone,
        address=body.address,
        answer=body.answer,
    )
    if db["user"].find_one({"email": user.email}):
        raise HTTPException(status_code=409, detail="Already Registered please login")

    user_id = create_document(db, "user", user)
    logger.info("Registered user %s", user_id)

    saved = serialize_doc(db["user"].find_one({"_id": parse_object_id(user_id, "user")}))
    return {"success": True, "message": "User Registered Successfully", "user": public_user(saved)}


@router.post("/login")
def login(body: LoginBody, db: Database = Depends(get_db)):
    if not body.email or not body.password:
        raise HTTPException(status_code=400, detail="Invalid email or password")

    user = db["user"].find_one({"email": body.email})
    if not user:
        raise HTTPException(status_code=404, detail="Email is not registered")
    if not compare_password(body.password, user.get("password_hash", "")):
        raise HTTPException(status_code=401, detail="Invalid Password")

    suser = public_user(serialize_doc(user))
    token = create_token({"id": suser["id"]})
    return {"success": True, "message": "login successfully", "user": suser, "token": token}


@router.post("/forgot-password")
def forgot_password(body: ForgotPasswordBody, db: Database = Depends(get_db)):
    if not body.email:
        raise HTTPException(status_code=400, detail="Email is required")
    if not body.answer:
        raise HTTPException(status_code=400, detail="Answer is required")
    if not body.new_password:
        raise HTTPException(status_code=400, detail="New Password is required")

    user = db["user"].find_one({"email": body.email, "answer": body.answer})
    if not user:
        raise HTTPException(status_code=404, detail="Wrong Email Or Answer")

    db["user"].update_one(
        {"_id": user["_id"]},
        {"$set": {"password_hash": hash_password(body.new_password), "updated_at": datetime.now(timezone.utc)}},
    )
    logger.info("Password reset for user %s", user["_id"])
    return {"success": True, "message": "Password Reset Successfully"}


@router.get("/test")
def protected_test(user=Depends(is_admin)):
    return "Protected Routes"


@router.get("/user-auth")
def user_auth(user=Depends(require_sign_in)):
    return {"ok": True}


@router.get("/admin-auth")
def admin_auth(user=Depends(is_admin)):
    return {"ok": True}


@router.put("/profile")
def update_profile(body: ProfileBody, user=Depends(require_sign_in), db: Database = Depends(get_db)):
    if body.password and len(body.password) < config.MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password is required to be at least {config.MIN_PASSWORD_LENGTH} characters long",
        )

    update = {
        "name": body.name or user.get("name"),
        "phone": body.phone or user.get("phone"),
        "address": body.address or user.get("address"),
        "updated_at": datetime.now(timezone.utc),
    }
    if body.password:
        update["password_hash"] = hash_password(body.password)

    updated = db["user"].find_one_and_update(
        {"_id": user["_id"]},
        {"$set": update},
        return_document=ReturnDocument.AFTER,
    )
    return {
        "success": True,
        "message": "Profile Updated Successfully",
        "updatedUser": public_user(serialize_doc(updated)),
    }


# ----------------------- Orders -----------------------
@router.get("/orders")
def get_orders(user=Depends(require_sign_in), db: Database = Depends(get_db)):
    orders = db["order"].find({"buyer": user["_id"]}).sort("created_at", DESCENDING)
    return populate_orders(db, orders)


@router.get("/all-orders")
def get_all_orders(user=Depends(is_admin), db: Database = Depends(get_db)):
    orders = db["order"].find({}).sort("created_at", DESCENDING)
    return populate_orders(db, orders)


@router.put("/order-status/{order_id}")
def update_order_status(
    order_id: str,
    body: OrderStatusBody,
    user=Depends(is_admin),
    db: Database = Depends(get_db),
):
    if body.status not in ORDER_STATUSES:
        raise HTTPException(status_code=400, detail=f"Status must be one of: {', '.join(ORDER_STATUSES)}")

    order = db["order"].find_one_and_update(
        {"_id": parse_object_id(order_id, "order")},
        {"$set": {"status": body.status, "updated_at": datetime.now(timezone.utc)}},
        return_document=ReturnDocument.AFTER,
    )
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    logger.info("Order %s moved to %s", order_id, body.status)
    return serialize_doc(order)
