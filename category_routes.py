import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from pymongo import ReturnDocument
from pymongo.database import Database
from slugify import slugify

from database import create_document, get_db, parse_object_id, serialize_doc
from schemas import Category as CategorySchema
from security import is_admin

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/category", tags=["Category"])


class CategoryBody(BaseModel):
    name: Optional[str] = None


def _clean_name(body: CategoryBody) -> str:
    name = (body.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name is required")
    return name


@router.post("/create-category", status_code=201)
def create_category(body: CategoryBody, user=Depends(is_admin), db: Database = Depends(get_db)):
    name = _clean_name(body)
    slug = slugify(name)
    if db["category"].find_one({"$or": [{"name": name}, {"slug": slug}]}):
        raise HTTPException(status_code=409, detail="Category Already Exists")

    cid = create_document(db, "category", CategorySchema(name=name, slug=slug))
    logger.info("Created category %s (%s)", name, cid)
    category = db["category"].find_one({"_id": parse_object_id(cid, "category")})
    return {"success": True, "message": "new category created", "category": serialize_doc(category)}


@router.put("/update-category/{category_id}")
def update_category(category_id: str, body: CategoryBody, user=Depends(is_admin), db: Database = Depends(get_db)):
    name = _clean_name(body)
    oid = parse_object_id(category_id, "category")
    slug = slugify(name)

    clash = db["category"].find_one({"$or": [{"name": name}, {"slug": slug}], "_id": {"$ne": oid}})
    if clash:
        raise HTTPException(status_code=409, detail="Category with this name already exists")

    category = db["category"].find_one_and_update(
        {"_id": oid},
        {"$set": {"name": name, "slug": slug, "updated_at": datetime.now(timezone.utc)}},
        return_document=ReturnDocument.AFTER,
    )
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"success": True, "message": "Category Updated Successfully", "category": serialize_doc(category)}


@router.get("/get-category")
def list_categories(db: Database = Depends(get_db)):
    categories = [serialize_doc(c) for c in db["category"].find({}).sort("name", 1)]
    return {"success": True, "message": "All Categories List", "category": categories}


@router.get("/single-category/{slug}")
def single_category(slug: str, db: Database = Depends(get_db)):
    category = db["category"].find_one({"slug": slug})
    if not category:
        raise HTTPException(status_code=404, detail="No category of the given slug was found")
    return {"success": True, "message": "Get Single Category Successfully", "category": serialize_doc(category)}


@router.delete("/delete-category/{category_id}")
def delete_category(category_id: str, user=Depends(is_admin), db: Database = Depends(get_db)):
    res = db["category"].delete_one({"_id": parse_object_id(category_id, "category")})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Category not found")
    logger.info("Deleted category %s", category_id)
    return {"success": True, "message": "Category Deleted Successfully"}
