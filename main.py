"""
Storefront API - application entry point

Run with: uvicorn main:app --reload
"""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError
from slugify import slugify
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
import database
from auth_routes import router as auth_router
from category_routes import router as category_router
from database import create_document, ensure_indexes, get_db, parse_object_id
from product_routes import router as product_router
from schemas import ADMIN, Category as CategorySchema, Product as ProductSchema, User as UserSchema
from security import hash_password

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is not None:
        try:
            ensure_indexes(database.db)
        except PyMongoError as e:
            logger.error("Could not create indexes: %s", e)
    else:
        logger.warning("DATABASE_URL / DATABASE_NAME not set, running without a database")
    yield


app = FastAPI(title="Storefront API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(category_router)
app.include_router(product_router)


# ----------------------- Errors -----------------------
def envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def _first_error(errors) -> str:
    if not errors:
        return "Invalid request"
    err = errors[0]
    loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
    return f"{'.'.join(loc)}: {err['msg']}" if loc else err["msg"]


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return envelope(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_error(request: Request, exc: RequestValidationError):
    return envelope(400, _first_error(exc.errors()))


@app.exception_handler(ValidationError)
async def model_validation_error(request: Request, exc: ValidationError):
    return envelope(400, _first_error(exc.errors()))


@app.exception_handler(DuplicateKeyError)
async def duplicate_key_error(request: Request, exc: DuplicateKeyError):
    logger.warning("Duplicate key on %s: %s", request.url.path, exc)
    return envelope(409, "Duplicate key")


@app.exception_handler(PyMongoError)
async def database_error(request: Request, exc: PyMongoError):
    logger.exception("Database error on %s", request.url.path)
    return envelope(500, "Database error")


# ----------------------- Health -----------------------
@app.get("/")
def root():
    return {"message": "Storefront API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "Running",
        "database": "Not Available",
        "database_url": "Set" if config.DATABASE_URL else "Not Set",
        "database_name": "Set" if config.DATABASE_NAME else "Not Set",
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        if database.db is not None:
            response["collections"] = database.db.list_collection_names()[:10]
            response["database"] = "Connected & Working"
            response["connection_status"] = "Connected"
    except PyMongoError as e:
        response["database"] = f"Error: {str(e)[:80]}"
    return response


# ----------------------- Seed Demo Data -----------------------
DEMO_CATEGORIES = ["Electronics", "Books", "Clothing"]

DEMO_PRODUCTS = [
    {
        "name": "Laptop",
        "description": "A high-performance laptop for work and play.",
        "price": 1499.99,
        "category": "Electronics",
        "quantity": 30,
        "shipping": True,
    },
    {
        "name": "Smartphone",
        "description": "A latest-gen smartphone with a great camera.",
        "price": 999.99,
        "category": "Electronics",
        "quantity": 50,
        "shipping": True,
    },
    {
        "name": "Textbook",
        "description": "A comprehensive textbook on software testing.",
        "price": 79.99,
        "category": "Books",
        "quantity": 100,
        "shipping": True,
    },
    {
        "name": "Novel",
        "description": "A bestselling novel.",
        "price": 14.99,
        "category": "Books",
        "quantity": 200,
        "shipping": False,
    },
    {
        "name": "Cotton T-shirt",
        "description": "Plain cotton t-shirt.",
        "price": 4.99,
        "category": "Clothing",
        "quantity": 200,
        "shipping": True,
    },
]


def seed_enabled():
    if not config.SEED_ENABLED:
        raise HTTPException(status_code=404, detail="Not Found")


# resolved before get_db
@app.post("/seed", dependencies=[Depends(seed_enabled)])
def seed(db: Database = Depends(get_db)):
    if db["product"].count_documents({}) > 0:
        return {"seeded": False, "message": "Products already exist"}

    category_ids = {}
    for name in DEMO_CATEGORIES:
        existing = db["category"].find_one({"name": name})
        if existing:
            category_ids[name] = existing["_id"]
        else:
            cid = create_document(db, "category", CategorySchema(name=name, slug=slugify(name)))
            category_ids[name] = parse_object_id(cid, "category")

    for p in DEMO_PRODUCTS:
        prod = ProductSchema(**{**p, "slug": slugify(p["name"]), "category": category_ids[p["category"]]})
        create_document(db, "product", prod)

    # create admin user if none
    if db["user"].count_documents({"role": ADMIN}) == 0:
        admin = UserSchema(
            name="Admin",
            email="admin@shop.com",
            password_hash=hash_password(config.SEED_ADMIN_PASSWORD),
            phone="00000000",
            address="Admin HQ",
            answer="admin",
            role=ADMIN,
        )
        create_document(db, "user", admin)
    return {"seeded": True, "products": db["product"].count_documents({})}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
